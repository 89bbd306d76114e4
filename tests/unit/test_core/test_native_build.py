"""
test_native_build.py - platform add / build stage 테스트

검증 포인트:
1. 도구 실패 → ToolError + stderr diagnostics
2. 도구 성공 + 산출물 없음 → ArtifactMissingError
3. timeout → TOOL_TIMEOUT
"""

from pathlib import Path

import pytest
import pytest_asyncio

from src.core.native_build import ArtifactBuilder, PlatformProvisioner
from src.core.toolchain import CordovaToolchain
from src.core.workspace import Workspace, WorkspaceAllocator
from src.domain.errors import ArtifactMissingError, ErrorCodes, ToolError


@pytest_asyncio.fixture
async def workspace(tmp_path: Path, toolchain: CordovaToolchain) -> Workspace:
    allocator = WorkspaceAllocator(tmp_path / "cordova_projects", toolchain)
    return await allocator.allocate("build-a", "App")


class TestPlatformProvisioner:
    """PlatformProvisioner 테스트."""

    @pytest.mark.asyncio
    async def test_adds_platform(self, toolchain: CordovaToolchain, workspace: Workspace):
        await PlatformProvisioner(toolchain).add_platform(workspace, "android")

        assert (workspace.project_dir / "platforms" / "android").is_dir()

    @pytest.mark.asyncio
    async def test_failure_carries_stderr(
        self, toolchain: CordovaToolchain, workspace: Workspace, monkeypatch: pytest.MonkeyPatch
    ):
        monkeypatch.setenv("FAKE_CORDOVA_FAIL", "platform")

        with pytest.raises(ToolError) as exc_info:
            await PlatformProvisioner(toolchain).add_platform(workspace, "android")

        error = exc_info.value
        assert error.code == ErrorCodes.PLATFORM_ADD_FAILED
        assert error.message == "Failed to add Android platform."
        assert "fake platform failure" in error.diagnostics


class TestArtifactBuilder:
    """ArtifactBuilder 테스트."""

    @pytest.mark.asyncio
    async def test_returns_existing_artifact(self, toolchain: CordovaToolchain, workspace: Workspace):
        await PlatformProvisioner(toolchain).add_platform(workspace)

        artifact = await ArtifactBuilder(toolchain).build(workspace)

        assert artifact == workspace.artifact_path("android")
        assert artifact.is_file()

    @pytest.mark.asyncio
    async def test_build_failure(
        self, toolchain: CordovaToolchain, workspace: Workspace, monkeypatch: pytest.MonkeyPatch
    ):
        await PlatformProvisioner(toolchain).add_platform(workspace)
        monkeypatch.setenv("FAKE_CORDOVA_FAIL", "build")

        with pytest.raises(ToolError) as exc_info:
            await ArtifactBuilder(toolchain).build(workspace)

        assert exc_info.value.code == ErrorCodes.BUILD_FAILED
        assert exc_info.value.message == "Failed to build Android app."
        assert "fake build failure" in exc_info.value.diagnostics

    @pytest.mark.asyncio
    async def test_success_without_artifact(
        self, toolchain: CordovaToolchain, workspace: Workspace, monkeypatch: pytest.MonkeyPatch
    ):
        await PlatformProvisioner(toolchain).add_platform(workspace)
        monkeypatch.setenv("FAKE_CORDOVA_SKIP_ARTIFACT", "1")

        with pytest.raises(ArtifactMissingError) as exc_info:
            await ArtifactBuilder(toolchain).build(workspace)

        assert exc_info.value.code == ErrorCodes.ARTIFACT_MISSING
        assert exc_info.value.message == "APK build failed or APK file not found."

    @pytest.mark.asyncio
    async def test_build_timeout(
        self,
        fake_cordova_command: tuple[str, ...],
        toolchain: CordovaToolchain,
        workspace: Workspace,
        monkeypatch: pytest.MonkeyPatch,
    ):
        await PlatformProvisioner(toolchain).add_platform(workspace)
        monkeypatch.setenv("FAKE_CORDOVA_HANG", "build")
        slow_toolchain = CordovaToolchain(command=fake_cordova_command, timeouts={"build": 0.5})

        with pytest.raises(ToolError) as exc_info:
            await ArtifactBuilder(slow_toolchain).build(workspace)

        assert exc_info.value.code == ErrorCodes.TOOL_TIMEOUT
