"""
Build Pipeline: 폼 입력 → 설치 가능한 APK

Stage 순서 (병렬 없음):
    validate → allocate → install_content → install_icon
    → add_platform → build → export

규칙:
- 어느 stage든 실패하면 즉시 Failed, 이후 stage 실행 안 함
- cleanup은 모든 경로에서 동일: 업로드 임시 파일 1회 삭제, workspace 1회 삭제
- 성공 경로: export(동기, 원자적 복사) 완료 → workspace 삭제 → 성공 응답
- 자동 재시도 없음
"""

import asyncio
import logging
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from src.app.services.uploads import UploadedFiles
from src.core.content import ContentInstaller
from src.core.export import ArtifactExporter
from src.core.icons import IconInstaller
from src.core.ids import generate_build_id
from src.core.logging import complete_run_log, create_run_log, log_run_summary, track_stage
from src.core.native_build import ArtifactBuilder, PlatformProvisioner
from src.core.toolchain import CordovaToolchain
from src.core.workspace import WorkspaceAllocator
from src.domain.constants import (
    DEFAULT_MAX_ARCHIVE_ENTRIES,
    DEFAULT_MAX_EXTRACTED_MB,
    DEFAULT_PACKAGE_PREFIX,
    DEFAULT_PLATFORM,
    DEFAULT_TIMEOUTS,
    DEFAULT_TOOLCHAIN_COMMAND,
)
from src.domain.errors import BuildPipelineError, ClientInputError, ErrorCodes
from src.domain.schemas import (
    BuildFailure,
    BuildRequest,
    BuildResult,
    BuildSubmission,
    BuildSuccess,
    RunLog,
    Stage,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Settings
# =============================================================================


@dataclass(frozen=True)
class PipelineSettings:
    """파이프라인 설정 (default.yaml → 타입 있는 값)."""

    projects_root: Path
    uploads_root: Path
    public_dir: Path
    toolchain_command: tuple[str, ...] = DEFAULT_TOOLCHAIN_COMMAND
    platform: str = DEFAULT_PLATFORM
    release: bool = True
    timeouts: dict[str, float | None] = field(default_factory=lambda: dict(DEFAULT_TIMEOUTS))
    package_prefix: str = DEFAULT_PACKAGE_PREFIX
    max_archive_entries: int = DEFAULT_MAX_ARCHIVE_ENTRIES
    max_extracted_mb: int = DEFAULT_MAX_EXTRACTED_MB

    @classmethod
    def from_config(cls, config: dict, base_dir: Path) -> "PipelineSettings":
        """
        설정 dict에서 생성.

        Args:
            config: default.yaml 내용 (없는 키는 기본값)
            base_dir: 상대 경로 기준 디렉터리 (프로젝트 루트)
        """
        paths = config.get("paths", {})
        toolchain = config.get("toolchain", {})
        content = config.get("content", {})

        def resolve(key: str, default: str) -> Path:
            path = Path(paths.get(key, default))
            return path if path.is_absolute() else base_dir / path

        command = toolchain.get("command", list(DEFAULT_TOOLCHAIN_COMMAND))
        if isinstance(command, str):
            command = [command]

        return cls(
            projects_root=resolve("projects_root", "cordova_projects"),
            uploads_root=resolve("uploads_root", "uploads"),
            public_dir=resolve("public_dir", "public"),
            toolchain_command=tuple(command),
            platform=toolchain.get("platform", DEFAULT_PLATFORM),
            release=toolchain.get("release", True),
            timeouts={**DEFAULT_TIMEOUTS, **toolchain.get("timeouts", {})},
            package_prefix=config.get("app", {}).get("package_prefix", DEFAULT_PACKAGE_PREFIX),
            max_archive_entries=content.get("max_archive_entries", DEFAULT_MAX_ARCHIVE_ENTRIES),
            max_extracted_mb=content.get("max_extracted_mb", DEFAULT_MAX_EXTRACTED_MB),
        )


# =============================================================================
# Pipeline
# =============================================================================


class BuildPipeline:
    """
    빌드 오케스트레이터.

    요청마다 run()을 한 번 호출. 실행 간 공유 상태는 없고
    파일시스템 경로는 build_id로 분리됨.
    """

    def __init__(self, settings: PipelineSettings):
        self.settings = settings

        toolchain = CordovaToolchain(
            command=settings.toolchain_command,
            timeouts=settings.timeouts,
        )
        self.allocator = WorkspaceAllocator(
            settings.projects_root,
            toolchain,
            package_prefix=settings.package_prefix,
        )
        self.content_installer = ContentInstaller(
            max_archive_entries=settings.max_archive_entries,
            max_extracted_mb=settings.max_extracted_mb,
        )
        self.icon_installer = IconInstaller()
        self.provisioner = PlatformProvisioner(toolchain)
        self.builder = ArtifactBuilder(toolchain)
        self.exporter = ArtifactExporter(settings.public_dir)

    async def run(self, submission: BuildSubmission) -> BuildResult:
        """
        파이프라인 1회 실행.

        예외를 밖으로 던지지 않음: 모든 실패는 BuildFailure로 반환.

        Args:
            submission: 업로드 수신부가 전달한 원본 폼 데이터

        Returns:
            BuildSuccess 또는 BuildFailure
        """
        build_id = generate_build_id()
        run_log = create_run_log(build_id)
        uploads = UploadedFiles.from_submission(submission)
        settings = self.settings

        try:
            async with AsyncExitStack() as cleanup:
                cleanup.callback(uploads.discard)

                with track_stage(run_log, Stage.VALIDATE):
                    request = BuildRequest.from_submission(submission)
                run_log.app_name = request.app_name
                run_log.input_kind = request.input_kind.value

                with track_stage(run_log, Stage.ALLOCATE):
                    workspace = await cleanup.enter_async_context(
                        self.allocator.allocated(build_id, request.app_name)
                    )

                with track_stage(run_log, Stage.INSTALL_CONTENT):
                    await asyncio.to_thread(self.content_installer.install, workspace, request)

                with track_stage(run_log, Stage.INSTALL_ICON):
                    await asyncio.to_thread(
                        self.icon_installer.install, workspace, request.icon_path
                    )

                with track_stage(run_log, Stage.ADD_PLATFORM):
                    await self.provisioner.add_platform(workspace, settings.platform)

                with track_stage(run_log, Stage.BUILD):
                    artifact = await self.builder.build(
                        workspace, settings.platform, release=settings.release
                    )

                with track_stage(run_log, Stage.EXPORT):
                    public_path, download_url = await asyncio.to_thread(
                        self.exporter.export, artifact, request.app_name, build_id
                    )

        except BuildPipelineError as e:
            result: BuildResult = self._failure(run_log, e)

        except Exception as e:
            logger.exception(f"Unexpected error in build {build_id}")
            result = self._failure(
                run_log,
                BuildPipelineError(ErrorCodes.INTERNAL_ERROR, error=f"{type(e).__name__}: {e}"),
            )

        else:
            complete_run_log(run_log, success=True)
            result = BuildSuccess(
                build_id=build_id,
                download_url=download_url,
                artifact_path=public_path,
            )

        log_run_summary(run_log)
        return result

    def _failure(self, run_log: RunLog, error: BuildPipelineError) -> BuildFailure:
        """에러 → BuildFailure 변환 + RunLog 완료 처리."""
        error_context: dict[str, Any] = {"message": error.message, **error.context}
        complete_run_log(
            run_log,
            success=False,
            error_code=error.code,
            error_context=error_context,
        )
        return BuildFailure(
            build_id=run_log.build_id,
            stage=_failed_stage(run_log),
            code=error.code,
            message=error.message,
            diagnostics=error.diagnostics,
            client_error=isinstance(error, ClientInputError),
        )


def _failed_stage(run_log: RunLog) -> Stage:
    """실패 stage. stage 밖(cleanup 등)에서 난 에러면 마지막 실행 stage."""
    if run_log.failed_stage:
        return Stage(run_log.failed_stage)
    if run_log.stages:
        return Stage(run_log.stages[-1].stage)
    return Stage.VALIDATE
