from __future__ import annotations

WORKFLOW_COMMIT_MESSAGE = "Add Cordova build workflow"
RELEASE_TAG = "deep-sea-build"

CORDOVA_BUILD_WORKFLOW = """name: Cordova Build

on:
  push:
    branches:
      - main
  pull_request:
    branches:
      - main
  workflow_dispatch:

permissions:
  # required to modify releases
  contents: write

jobs:
  build:
    runs-on: ubuntu-latest

    steps:
      - name: Checkout code
        uses: actions/checkout@v4

      - name: Set up Node.js
        uses: actions/setup-node@v4
        with:
          node-version: '20'

      - name: Set up JDK 17
        uses: actions/setup-java@v4
        with:
          java-version: '17'
          distribution: 'adopt'

      - name: Set up Android SDK
        uses: android-actions/setup-android@v3
        with:
          cmdline-tools-version: 'latest'

      - name: Install Android Build Tools
        run: |
          sdkmanager "build-tools;30.0.3" "platform-tools" "platforms;android-33"
        env:
          ANDROID_HOME: ${{ env.ANDROID_HOME }}
          ANDROID_SDK_ROOT: ${{ env.ANDROID_HOME }}

      - name: Set up Gradle
        uses: gradle/actions/setup-gradle@v4
        with:
          gradle-version: '7.6.5'

      - name: Install Cordova
        run: npm install -g cordova

      - name: Unzip project
        run: |
          ZIP_FILE=$(find . -maxdepth 1 -name "*.zip" -type f)
          if [ -z "$ZIP_FILE" ]; then
            echo "No zip file found"
            exit 1
          fi
          unzip "$ZIP_FILE" -d project
          rm "$ZIP_FILE"

      - name: Install dependencies
        run: |
          cd project
          npm install

      - name: Build project
        run: |
          cd project
          npm run build
        env:
          ANDROID_HOME: ${{ env.ANDROID_HOME }}
          ANDROID_SDK_ROOT: ${{ env.ANDROID_HOME }}

      - name: Upload artifacts to tag
        uses: xresloader/upload-to-github-release@2bcae85344d41e21f7fc4c47fa2ed68223afdb49
        with:
          file: ./project/platforms/android/app/build/outputs/apk/debug/app-debug.apk
          draft: false
          tag_name: "%(release_tag)s"
"""


def workflow_path(workflow_file: str) -> str:
    return f".github/workflows/{workflow_file}"


def render_workflow(release_tag: str = RELEASE_TAG) -> str:
    return CORDOVA_BUILD_WORKFLOW % {"release_tag": release_tag}
