"""
Workspace 관리: 빌드 1회 전용 Cordova 프로젝트 디렉터리.

규칙:
- 경로는 항상 projects_root/<build_id> → 동시 실행/이전 실패 잔재와 충돌 없음
- 생성: cordova create (외부 도구)
- 해제: 성공/실패 모든 경로에서 정확히 한 번, 이미 없으면 no-op
- 스캐폴딩 실패 시 부분 생성된 디렉터리도 삭제 시도
"""

import asyncio
import logging
import shutil
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path

from src.core.ids import derive_package_id
from src.core.toolchain import CordovaToolchain
from src.domain.constants import (
    ARTIFACT_RELATIVE_PATHS,
    DEFAULT_PACKAGE_PREFIX,
    WORKSPACE_CONTENT_DIR,
    WORKSPACE_MANIFEST_FILENAME,
    WORKSPACE_RESOURCE_DIR,
)
from src.domain.errors import ErrorCodes, ProvisionError

logger = logging.getLogger(__name__)


@dataclass
class Workspace:
    """빌드 1회가 독점 소유하는 프로젝트 트리."""

    build_id: str
    project_dir: Path

    @property
    def content_dir(self) -> Path:
        return self.project_dir / WORKSPACE_CONTENT_DIR

    @property
    def resource_dir(self) -> Path:
        return self.project_dir / WORKSPACE_RESOURCE_DIR

    @property
    def manifest_path(self) -> Path:
        return self.project_dir / WORKSPACE_MANIFEST_FILENAME

    def artifact_path(self, platform: str) -> Path:
        """플랫폼별 toolchain 산출물 경로."""
        try:
            parts = ARTIFACT_RELATIVE_PATHS[platform]
        except KeyError:
            raise ValueError(f"Unsupported platform: {platform}") from None
        return self.project_dir.joinpath(*parts)

    def release(self) -> bool:
        """
        Workspace 삭제.

        이미 삭제된 경로면 no-op (idempotent).

        Returns:
            True if 이번 호출에서 삭제함
        """
        return remove_tree(self.project_dir)


def remove_tree(path: Path) -> bool:
    """
    디렉터리 재귀 삭제. 없으면 no-op.

    삭제 실패는 warning 로그만 남기고 False 반환
    (cleanup 실패가 원래 결과를 가리지 않도록).
    """
    if not path.exists():
        return False
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.warning(
            f"Workspace cleanup failed for {path}: {e}. "
            f"Manual cleanup may be required: rm -rf {path}"
        )
        return False
    logger.info(f"Cleaned up project directory: {path}")
    return True


class WorkspaceAllocator:
    """
    Workspace 할당기.

    projects_root 아래에 build_id 이름으로 Cordova 프로젝트를 생성.
    """

    def __init__(
        self,
        projects_root: Path,
        toolchain: CordovaToolchain,
        package_prefix: str = DEFAULT_PACKAGE_PREFIX,
    ):
        """
        Args:
            projects_root: 모든 workspace의 상위 디렉터리
            toolchain: Cordova CLI 어댑터
            package_prefix: package id 접두어
        """
        self.projects_root = projects_root
        self.toolchain = toolchain
        self.package_prefix = package_prefix

    async def allocate(self, build_id: str, app_name: str) -> Workspace:
        """
        Workspace 생성.

        Args:
            build_id: 이번 실행의 Build ID
            app_name: 앱 표시 이름 (cordova create의 name 인자)

        Returns:
            Workspace (content root 존재 보장)

        Raises:
            ProvisionError: 스캐폴딩 도구 실패
        """
        self.projects_root.mkdir(parents=True, exist_ok=True)
        project_dir = self.projects_root / build_id
        package_id = derive_package_id(build_id, self.package_prefix)

        result = await self.toolchain.create(project_dir, package_id, app_name)
        if not result.ok:
            # 도구가 디렉터리를 일부 만들었을 수 있음
            await asyncio.to_thread(remove_tree, project_dir)
            raise ProvisionError(
                result.failure_code(ErrorCodes.PROJECT_CREATE_FAILED),
                diagnostics=result.diagnostics,
                build_id=build_id,
            )

        workspace = Workspace(build_id=build_id, project_dir=project_dir)
        workspace.content_dir.mkdir(parents=True, exist_ok=True)
        return workspace

    @asynccontextmanager
    async def allocated(self, build_id: str, app_name: str) -> AsyncIterator[Workspace]:
        """
        Workspace 생성 + 블록 종료 시 해제.

        사용법:
            async with allocator.allocated(build_id, app_name) as workspace:
                ...
        """
        workspace = await self.allocate(build_id, app_name)
        try:
            yield workspace
        finally:
            await asyncio.to_thread(workspace.release)
