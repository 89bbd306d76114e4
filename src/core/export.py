"""
산출물 export: toolchain 출력 → 공개(정적 서빙) 디렉터리.

규칙:
- 파일명: {sanitized appName}-{build_id}.apk → 동시 요청 간 충돌 없음
- 원자적 복사: 같은 디렉터리 temp → fsync → os.replace
  → 정적 서버가 덜 복사된 파일을 서빙하지 않음
- export 완료 후에만 성공 응답 (지연 삭제 불필요)
"""

import logging
import os
import shutil
import tempfile
from pathlib import Path

from src.core.ids import artifact_filename, download_url_for
from src.domain.errors import ErrorCodes, ExportError

logger = logging.getLogger(__name__)


def _fsync_dir(dir_path: Path) -> None:
    """
    디렉토리 fsync (가능한 환경에서).

    rename 후 디렉토리 엔트리까지 내구성을 강화하려면 필요.
    """
    try:
        dir_fd = os.open(str(dir_path), os.O_RDONLY | os.O_DIRECTORY)
        try:
            os.fsync(dir_fd)
        finally:
            os.close(dir_fd)
    except (OSError, AttributeError) as e:
        # O_DIRECTORY 미지원, 권한 문제 등
        logger.warning(
            f"Directory fsync failed for {dir_path}: {e}. "
            f"Rename durability may not be guaranteed."
        )


def atomic_copy(src: Path, dst: Path) -> None:
    """
    원자적 파일 복사.

    동작:
    - 중간 상태 없음: 같은 디렉터리의 temp 파일에 복사 → rename
    - 파일 fsync 실패 시 경고 남기고 계속 진행
    - 실패 시 cleanup: temp 파일 삭제

    Args:
        src: 원본 파일
        dst: 최종 경로
    """
    dir_path = dst.parent
    dir_path.mkdir(parents=True, exist_ok=True)

    temp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="wb",
            dir=dir_path,
            prefix=".",
            suffix=".tmp",
            delete=False,
        ) as f:
            temp_path = Path(f.name)
            with open(src, "rb") as source:
                shutil.copyfileobj(source, f)
            f.flush()
            try:
                os.fsync(f.fileno())
            except OSError as e:
                logger.warning(
                    f"File fsync failed for {dst}: {e}. "
                    f"Data may not be durable on power loss."
                )

        # NamedTemporaryFile은 0600으로 생성됨 → 정적 서빙용 권한으로
        os.chmod(temp_path, 0o644)
        os.replace(temp_path, dst)

        _fsync_dir(dir_path)

    except Exception:
        if temp_path and temp_path.exists():
            try:
                temp_path.unlink()
            except OSError:
                pass
        raise


class ArtifactExporter:
    """빌드 산출물을 공개 디렉터리로 내보냄."""

    def __init__(self, public_dir: Path):
        self.public_dir = public_dir

    def export(self, artifact: Path, app_name: str, build_id: str) -> tuple[Path, str]:
        """
        산출물 export.

        Args:
            artifact: toolchain 산출물 경로
            app_name: 앱 표시 이름 (파일명 유도용)
            build_id: Build ID

        Returns:
            (공개 파일 경로, 다운로드 URL)

        Raises:
            ExportError: 복사 실패
        """
        filename = artifact_filename(app_name, build_id, artifact.suffix or ".apk")
        destination = self.public_dir / filename

        try:
            atomic_copy(artifact, destination)
        except OSError as e:
            raise ExportError(
                ErrorCodes.EXPORT_FAILED,
                destination=str(destination),
                error=str(e),
            ) from e

        logger.info(f"Exported artifact: {destination}")
        return destination, download_url_for(filename)
