from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_NAME: str = "packager-remote-build"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    MONGODB_URI: str = "mongodb://localhost:27017"
    MONGODB_DB: str = "packager_remote_build"
    BUILD_JOB_TTL_HOURS: int = 72

    GITHUB_API_BASE: str = "https://api.github.com"
    GITHUB_TOKEN: str | None = None
    GITHUB_USER: str | None = None
    HTTP_TIMEOUT_SECONDS: float = 30.0

    TEMPLATE_OWNER: str = "Deep-sea-lab"
    TEMPLATE_REPO: str = "02packager-template"
    WORKFLOW_FILE: str = "main.yml"
    DISPATCH_REF: str = "main"
    REPO_NAME_PREFIX: str = "packager-temp-"
    AUTO_DELETE: bool = False

    POLL_INTERVAL_MS: int = 10_000
    POLL_MAX_ATTEMPTS: int = 60
    INITIAL_POLL_DELAY_MS: int = 2_000  # dispatch propagation latency, tune per host

    EXTENSION_FETCH_FALLBACK: bool = False
    EXTENSION_STRICT_TIMEOUT_SECONDS: float = 10.0

settings = Settings()
