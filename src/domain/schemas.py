"""
Data schemas for the build pipeline.

규칙:
- BuildRequest는 불변: 검증을 통과한 뒤에만 생성됨
- inline/url/archive 중 정확히 하나만 채워짐 (input_kind와 일치)
- BuildResult는 terminal: 파이프라인이 재시도하지 않음
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

from src.domain.errors import ClientInputError, ErrorCodes

# URL host: 도메인/IPv4 또는 IPv6 (CSP 헤더에 그대로 들어감)
URL_HOST_PATTERN = re.compile(r"[0-9A-Za-z._-]+|[0-9A-Fa-f:.]+")

# appName에 허용하지 않는 제어 문자 (NUL 포함, 프로세스 인자로 전달 불가)
CONTROL_CHAR_PATTERN = re.compile(r"[\x00-\x1f\x7f]")

# =============================================================================
# Enums
# =============================================================================


class InputKind(str, Enum):
    """콘텐츠 입력 종류. 값은 업로드 폼의 type 필드와 동일."""

    INLINE_MARKUP = "html_code"
    REMOTE_URL = "url"
    ARCHIVE = "file"


class Stage(str, Enum):
    """파이프라인 stage. 순서대로 실행됨."""

    VALIDATE = "validate"
    ALLOCATE = "allocate"
    INSTALL_CONTENT = "install_content"
    INSTALL_ICON = "install_icon"
    ADD_PLATFORM = "add_platform"
    BUILD = "build"
    EXPORT = "export"


def is_remote_url(url: str) -> bool:
    """http/https 절대 URL이고 host가 도메인/IP 형태인지 확인."""
    try:
        parts = urlsplit(url)
        parts.port  # 범위 밖/숫자 아님이면 ValueError
    except ValueError:
        return False
    if parts.scheme not in ("http", "https") or not parts.hostname:
        return False
    return URL_HOST_PATTERN.fullmatch(parts.hostname) is not None


# =============================================================================
# Request Schemas
# =============================================================================


@dataclass
class BuildSubmission:
    """
    업로드 수신부가 전달하는 원본 폼 데이터.

    검증 전 상태이므로 어떤 조합이든 올 수 있음.
    archive_path / icon_path는 이미 디스크에 저장된 임시 파일.
    """

    type: str | None = None
    app_name: str | None = None
    html_code: str | None = None
    url: str | None = None
    archive_path: Path | None = None
    icon_path: Path | None = None


@dataclass(frozen=True)
class BuildRequest:
    """검증된 빌드 요청 (파이프라인 1회 실행의 불변 입력)."""

    input_kind: InputKind
    app_name: str
    inline_markup: str | None = None
    remote_url: str | None = None
    archive_path: Path | None = None
    icon_path: Path | None = None

    def __post_init__(self) -> None:
        populated = {
            InputKind.INLINE_MARKUP: self.inline_markup is not None,
            InputKind.REMOTE_URL: self.remote_url is not None,
            InputKind.ARCHIVE: self.archive_path is not None,
        }
        if not populated[self.input_kind] or sum(populated.values()) != 1:
            raise ClientInputError(
                ErrorCodes.INVALID_INPUT,
                input_kind=self.input_kind.value,
            )

    @classmethod
    def from_submission(cls, submission: BuildSubmission) -> "BuildRequest":
        """
        원본 폼 데이터를 검증하여 BuildRequest 생성.

        Raises:
            ClientInputError: type 미지원, 필수 필드 누락, appName 제어 문자, URL 형식 오류
        """
        try:
            kind = InputKind(submission.type)
        except ValueError:
            raise ClientInputError(
                ErrorCodes.UNSUPPORTED_INPUT_KIND,
                type=submission.type,
            ) from None

        app_name = (submission.app_name or "").strip()
        if not app_name:
            raise ClientInputError(ErrorCodes.MISSING_REQUIRED_FIELD, field="appName")
        if CONTROL_CHAR_PATTERN.search(app_name):
            raise ClientInputError(ErrorCodes.INVALID_INPUT, field="appName")

        if kind is InputKind.INLINE_MARKUP:
            if not submission.html_code or not submission.html_code.strip():
                raise ClientInputError(ErrorCodes.MISSING_REQUIRED_FIELD, field="htmlCode")
            return cls(
                input_kind=kind,
                app_name=app_name,
                inline_markup=submission.html_code,
                icon_path=submission.icon_path,
            )

        if kind is InputKind.REMOTE_URL:
            url = (submission.url or "").strip()
            if not url:
                raise ClientInputError(ErrorCodes.MISSING_REQUIRED_FIELD, field="url")
            if not is_remote_url(url):
                raise ClientInputError(ErrorCodes.INVALID_URL, url=url)
            return cls(
                input_kind=kind,
                app_name=app_name,
                remote_url=url,
                icon_path=submission.icon_path,
            )

        if submission.archive_path is None:
            raise ClientInputError(ErrorCodes.MISSING_REQUIRED_FIELD, field="zipFile")
        return cls(
            input_kind=kind,
            app_name=app_name,
            archive_path=submission.archive_path,
            icon_path=submission.icon_path,
        )


# =============================================================================
# Result Schemas
# =============================================================================


@dataclass(frozen=True)
class BuildSuccess:
    """빌드 성공. download_url은 공개 디렉터리 기준 상대 URL."""

    build_id: str
    download_url: str
    artifact_path: Path

    success = True
    http_status = 200

    def to_response(self) -> dict[str, Any]:
        return {"success": True, "downloadUrl": self.download_url}


@dataclass(frozen=True)
class BuildFailure:
    """빌드 실패. stage는 실패가 발생한 단계."""

    build_id: str
    stage: Stage
    code: str
    message: str
    diagnostics: str | None = None
    client_error: bool = False

    success = False

    @property
    def http_status(self) -> int:
        return 400 if self.client_error else 500

    def to_response(self) -> dict[str, Any]:
        response: dict[str, Any] = {"success": False, "message": self.message}
        if self.diagnostics:
            response["error"] = self.diagnostics
        return response


BuildResult = BuildSuccess | BuildFailure


# =============================================================================
# Run Log Schemas
# =============================================================================


@dataclass
class StageLog:
    """단일 stage 실행 기록."""

    stage: str
    started_at: str  # ISO 8601
    duration_ms: int = 0
    result: str = "pending"  # pending, success, failed
    error_code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "stage": self.stage,
            "started_at": self.started_at,
            "duration_ms": self.duration_ms,
            "result": self.result,
            "error_code": self.error_code,
        }


@dataclass
class RunLog:
    """
    실행 로그.

    빌드 1회 단위 실행 결과 및 stage 타임라인. 메모리에만 유지되고
    완료 시 로그 한 줄로 출력됨.
    """

    build_id: str
    started_at: str  # ISO 8601
    app_name: str | None = None
    input_kind: str | None = None
    finished_at: str | None = None
    result: str = "pending"  # pending, success, failed

    stages: list[StageLog] = field(default_factory=list)

    # Error (if failed)
    failed_stage: str | None = None
    error_code: str | None = None
    error_context: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "build_id": self.build_id,
            "app_name": self.app_name,
            "input_kind": self.input_kind,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "result": self.result,
            "stages": [s.to_dict() for s in self.stages],
            "failed_stage": self.failed_stage,
            "error_code": self.error_code,
            "error_context": self.error_context,
        }
