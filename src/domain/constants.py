"""
Domain Constants: 파이프라인 전역 상수.

Cordova 프로젝트 구조, 산출물 경로, 파일명 정책 등
시스템 전반에서 사용되는 값들.
"""

# =============================================================================
# Workspace Structure (작업 디렉토리 구조)
# =============================================================================
# cordova_projects/<build_id>/
# ├── config.xml          # manifest
# ├── www/                # content root
# │   └── index.html
# ├── res/                # resource root
# │   └── icon/android/icon.png
# └── platforms/android/  # platform add 이후 생성

WORKSPACE_CONTENT_DIR = "www"
WORKSPACE_RESOURCE_DIR = "res"
WORKSPACE_MANIFEST_FILENAME = "config.xml"

ENTRY_DOCUMENT_FILENAME = "index.html"

# =============================================================================
# Icon (아이콘 정책)
# =============================================================================
# resource root 기준 상대 경로. manifest에는 프로젝트 루트 기준 경로로 기록됨.

ICON_DIR_PARTS = ("icon", "android")
ICON_FILENAME = "icon.png"

# =============================================================================
# Toolchain Defaults (외부 빌드 도구)
# =============================================================================

DEFAULT_TOOLCHAIN_COMMAND = ("cordova",)
DEFAULT_PLATFORM = "android"
DEFAULT_PACKAGE_PREFIX = "com.example"

# 초 단위. None이면 무제한
DEFAULT_TIMEOUTS = {
    "create": 300,
    "platform_add": 600,
    "build": 1800,
}

# 플랫폼별 release(unsigned) 산출물 경로 (프로젝트 루트 기준)
ARTIFACT_RELATIVE_PATHS = {
    "android": (
        "platforms", "android", "app", "build", "outputs",
        "apk", "release", "app-release-unsigned.apk",
    ),
}

# =============================================================================
# Archive Limits (압축 해제 제한)
# =============================================================================

DEFAULT_MAX_ARCHIVE_ENTRIES = 20_000
DEFAULT_MAX_EXTRACTED_MB = 200

# =============================================================================
# Naming
# =============================================================================

APP_NAME_SEPARATOR = "_"
FALLBACK_ARTIFACT_STEM = "app"

# 산출물 파일명 중 appName 부분 최대 길이 (UTF-8 바이트, 파일명 255바이트 제한 대비)
MAX_ARTIFACT_STEM_BYTES = 100

# =============================================================================
# MIME Types
# =============================================================================

MIME_TYPES = {
    ".apk": "application/vnd.android.package-archive",
    ".zip": "application/zip",
    ".png": "image/png",
    ".html": "text/html",
}
