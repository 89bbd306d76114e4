"""
Error definitions for the build pipeline.

규칙:
- 조용한 실패 금지 → BuildPipelineError 계열로 명시적 실패
- 외부 도구 실패 시 stderr는 diagnostics로 보존
- 모든 에러는 stage 경계에서 처리되고 cleanup 이후 응답으로 변환됨
"""

from typing import Any


class BuildPipelineError(Exception):
    """
    파이프라인 stage 실패 시 발생하는 에러의 기반 클래스.

    Usage:
        raise ToolError(
            ErrorCodes.PLATFORM_ADD_FAILED,
            "Failed to add Android platform.",
            diagnostics=result.stderr,
        )
    """

    default_message = "An internal server error occurred."

    def __init__(
        self,
        code: str,
        message: str | None = None,
        diagnostics: str | None = None,
        **context: Any,
    ) -> None:
        self.code = code
        self.message = message or self.default_message
        self.diagnostics = diagnostics
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        base = f"[{self.code}] {self.message}"
        return f"{base} ({ctx_str})" if ctx_str else base

    def to_dict(self) -> dict[str, Any]:
        """로그/JSON 직렬화용."""
        data: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            **self.context,
        }
        if self.diagnostics:
            data["diagnostics"] = self.diagnostics
        return data


class ClientInputError(BuildPipelineError):
    """요청 필드 누락/불일치. HTTP 400으로 응답."""

    default_message = "Invalid input type or missing data."


class ProvisionError(BuildPipelineError):
    """프로젝트 스캐폴딩(cordova create) 실패."""

    default_message = "Failed to create Cordova project."


class ContentError(BuildPipelineError):
    """아카이브 압축 해제 실패."""

    default_message = "Failed to extract zip file."


class IconError(BuildPipelineError):
    """아이콘 복사 또는 manifest 재작성 실패."""

    default_message = "Failed to install app icon."


class ToolError(BuildPipelineError):
    """외부 플랫폼/빌드 도구 실패. diagnostics에 stderr 보존."""

    default_message = "Failed to build Android app."


class ArtifactMissingError(BuildPipelineError):
    """도구는 성공했지만 기대 산출물이 없음."""

    default_message = "APK build failed or APK file not found."


class ExportError(BuildPipelineError):
    """산출물을 공개 디렉터리로 복사하지 못함."""

    default_message = "Failed to export the built artifact."


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCodes:
    """에러 코드 상수."""

    # === Client Input ===
    INVALID_INPUT = "INVALID_INPUT"
    UNSUPPORTED_INPUT_KIND = "UNSUPPORTED_INPUT_KIND"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    INVALID_URL = "INVALID_URL"

    # === Workspace ===
    PROJECT_CREATE_FAILED = "PROJECT_CREATE_FAILED"

    # === Content ===
    ARCHIVE_EXTRACT_FAILED = "ARCHIVE_EXTRACT_FAILED"
    ARCHIVE_UNSAFE_ENTRY = "ARCHIVE_UNSAFE_ENTRY"
    ARCHIVE_TOO_LARGE = "ARCHIVE_TOO_LARGE"

    # === Icon ===
    ICON_INSTALL_FAILED = "ICON_INSTALL_FAILED"

    # === Toolchain ===
    PLATFORM_ADD_FAILED = "PLATFORM_ADD_FAILED"
    BUILD_FAILED = "BUILD_FAILED"
    TOOL_TIMEOUT = "TOOL_TIMEOUT"
    TOOL_NOT_FOUND = "TOOL_NOT_FOUND"

    # === Artifact ===
    ARTIFACT_MISSING = "ARTIFACT_MISSING"
    EXPORT_FAILED = "EXPORT_FAILED"

    # === Other ===
    INTERNAL_ERROR = "INTERNAL_ERROR"
