import secrets
import string

BASE36_ALPHABET = string.digits + string.ascii_lowercase
SUFFIX_LENGTH = 6
DEFAULT_PREFIX = "packager-temp-"


def generate_repo_name(prefix: str = DEFAULT_PREFIX, length: int = SUFFIX_LENGTH) -> str:
    """prefix + short base-36 suffix. Unique enough for humans, not guaranteed."""
    suffix = "".join(secrets.choice(BASE36_ALPHABET) for _ in range(length))
    return f"{prefix}{suffix}"
