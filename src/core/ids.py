"""
ID 생성: build_id, package id, 산출물 파일명

규칙:
- build_id는 요청마다 새로 발급 (UUID v4)
- workspace 경로, package id, 산출물 파일명 모두 build_id로 namespacing
  → 동일 appName 동시 요청도 충돌 없음
"""

import re
import uuid
from urllib.parse import quote

from src.domain.constants import (
    APP_NAME_SEPARATOR,
    DEFAULT_PACKAGE_PREFIX,
    FALLBACK_ARTIFACT_STEM,
    MAX_ARTIFACT_STEM_BYTES,
)

_WHITESPACE_RUN = re.compile(r"\s+")
_PATH_SEPARATORS = re.compile(r"[\\/]")


def generate_build_id() -> str:
    """
    Build ID 생성.

    고유성 보장: UUID v4
    포맷: 8-4-4-4-12 (하이픈 포함)

    Returns:
        build_id 문자열
    """
    return str(uuid.uuid4())


def derive_package_id(build_id: str, prefix: str = DEFAULT_PACKAGE_PREFIX) -> str:
    """
    reverse-domain package id 생성.

    Android는 각 세그먼트가 문자로 시작해야 하므로 hex 앞에 "app"을 붙임.
    포맷: {prefix}.app{build_id hex}

    Args:
        build_id: generate_build_id() 결과
        prefix: reverse-domain 접두어 (예: com.example)

    Returns:
        package id (하이픈 없음)
    """
    return f"{prefix}.app{build_id.replace('-', '')}"


def sanitize_app_name(app_name: str) -> str:
    """
    appName을 파일명으로 사용할 수 있도록 정리.

    - 연속 공백 → 밑줄 하나
    - 경로 구분자(/ \\) → 밑줄
    - 앞쪽 점 제거 (숨김 파일/상위 경로 방지)
    - 비ASCII 문자는 유지
    - UTF-8 기준 MAX_ARTIFACT_STEM_BYTES로 자름 (멀티바이트 문자 중간은 버림)
    """
    sanitized = _WHITESPACE_RUN.sub(APP_NAME_SEPARATOR, app_name.strip())
    sanitized = _PATH_SEPARATORS.sub(APP_NAME_SEPARATOR, sanitized)
    sanitized = sanitized.lstrip(".")
    sanitized = sanitized.encode("utf-8")[:MAX_ARTIFACT_STEM_BYTES].decode("utf-8", errors="ignore")
    return sanitized or FALLBACK_ARTIFACT_STEM


def artifact_filename(app_name: str, build_id: str, extension: str = ".apk") -> str:
    """공개 디렉터리에 놓일 산출물 파일명: {sanitized_app_name}-{build_id}{ext}"""
    return f"{sanitize_app_name(app_name)}-{build_id}{extension}"


def download_url_for(filename: str) -> str:
    """정적 서버 기준 다운로드 URL. 비ASCII 파일명은 percent-encoding."""
    return "/" + quote(filename)
