"""
네이티브 빌드 stage: platform 추가 + release 빌드.

규칙:
- 외부 도구 실패 → ToolError (stderr를 diagnostics로 보존), 재시도 없음
- 도구가 성공해도 산출물 존재를 다시 확인 → 없으면 ArtifactMissingError
"""

import logging
from pathlib import Path

from src.core.toolchain import CordovaToolchain
from src.core.workspace import Workspace
from src.domain.constants import DEFAULT_PLATFORM
from src.domain.errors import ArtifactMissingError, ErrorCodes, ToolError

logger = logging.getLogger(__name__)


class PlatformProvisioner:
    """프로젝트에 대상 플랫폼 추가 (cordova platform add <platform> --save)."""

    def __init__(self, toolchain: CordovaToolchain):
        self.toolchain = toolchain

    async def add_platform(self, workspace: Workspace, platform: str = DEFAULT_PLATFORM) -> None:
        """
        Raises:
            ToolError: PLATFORM_ADD_FAILED, TOOL_TIMEOUT, TOOL_NOT_FOUND
        """
        result = await self.toolchain.add_platform(workspace.project_dir, platform)
        if not result.ok:
            raise ToolError(
                result.failure_code(ErrorCodes.PLATFORM_ADD_FAILED),
                f"Failed to add {platform.capitalize()} platform.",
                diagnostics=result.diagnostics,
                platform=platform,
                exit_code=result.exit_code,
            )


class ArtifactBuilder:
    """release(unsigned) 바이너리 빌드 (cordova build <platform> --release)."""

    def __init__(self, toolchain: CordovaToolchain):
        self.toolchain = toolchain

    async def build(
        self,
        workspace: Workspace,
        platform: str = DEFAULT_PLATFORM,
        release: bool = True,
    ) -> Path:
        """
        Returns:
            toolchain 산출물 경로 (존재 확인됨)

        Raises:
            ToolError: BUILD_FAILED, TOOL_TIMEOUT, TOOL_NOT_FOUND
            ArtifactMissingError: 도구 성공 후에도 산출물 없음
        """
        result = await self.toolchain.build(workspace.project_dir, platform, release=release)
        if not result.ok:
            raise ToolError(
                result.failure_code(ErrorCodes.BUILD_FAILED),
                f"Failed to build {platform.capitalize()} app.",
                diagnostics=result.diagnostics,
                platform=platform,
                exit_code=result.exit_code,
            )

        artifact = workspace.artifact_path(platform)
        if not artifact.is_file():
            logger.error(f"Build reported success but artifact is missing: {artifact}")
            raise ArtifactMissingError(
                ErrorCodes.ARTIFACT_MISSING,
                expected=str(artifact.relative_to(workspace.project_dir)),
            )
        return artifact
