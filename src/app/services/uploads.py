"""
Upload Service: multipart 파일 → uploads/ 임시 파일

규칙:
- 저장 파일명: {uuid4}-{원본 basename} (경로 성분 제거)
- 빈 파일 파트(파일명 없음)는 미첨부로 취급
- 저장된 파일은 빌드 1회가 소유, 종료 시 정확히 한 번 삭제 (UploadedFiles)
"""

import asyncio
import logging
import re
import uuid
from dataclasses import dataclass, field
from pathlib import Path

from fastapi import UploadFile

from src.domain.schemas import BuildSubmission

logger = logging.getLogger(__name__)

# 청크 단위 저장 (대용량 zip 대비)
CHUNK_SIZE = 1024 * 1024

_PATH_COMPONENT = re.compile(r"[\\/]")


def safe_upload_name(filename: str) -> str:
    """클라이언트 파일명에서 디렉터리 성분 제거."""
    basename = _PATH_COMPONENT.split(filename)[-1].strip()
    basename = basename.lstrip(".")
    return basename or "upload"


class UploadStore:
    """업로드 파일 저장소."""

    def __init__(self, uploads_root: Path):
        """
        Args:
            uploads_root: 임시 업로드 디렉터리
        """
        self.uploads_root = uploads_root

    async def save(self, upload: UploadFile | None) -> Path | None:
        """
        업로드 파일 저장.

        Args:
            upload: multipart 파일 파트 (없으면 None)

        Returns:
            저장된 경로 (미첨부면 None)
        """
        if upload is None or not upload.filename:
            return None

        await asyncio.to_thread(self.uploads_root.mkdir, parents=True, exist_ok=True)
        destination = self.uploads_root / f"{uuid.uuid4()}-{safe_upload_name(upload.filename)}"

        # 디스크 I/O는 이벤트 루프 밖(스레드)에서
        try:
            f = await asyncio.to_thread(open, destination, "wb")
            try:
                while chunk := await upload.read(CHUNK_SIZE):
                    await asyncio.to_thread(f.write, chunk)
            finally:
                await asyncio.to_thread(f.close)
        except OSError:
            destination.unlink(missing_ok=True)
            raise

        logger.info(f"Saved upload {upload.filename!r} → {destination.name}")
        return destination


@dataclass
class UploadedFiles:
    """
    빌드 1회가 소유한 업로드 임시 파일.

    discard()는 idempotent: 두 번째 호출부터 no-op.
    """

    archive_path: Path | None = None
    icon_path: Path | None = None
    _discarded: bool = field(default=False, init=False, repr=False)

    @classmethod
    def from_submission(cls, submission: BuildSubmission) -> "UploadedFiles":
        return cls(archive_path=submission.archive_path, icon_path=submission.icon_path)

    @property
    def discarded(self) -> bool:
        return self._discarded

    def discard(self) -> list[Path]:
        """
        소유 중인 임시 파일 삭제.

        Returns:
            이번 호출에서 삭제된 경로 목록
        """
        if self._discarded:
            return []
        self._discarded = True

        removed: list[Path] = []
        for path in (self.archive_path, self.icon_path):
            if path is None:
                continue
            try:
                path.unlink()
                removed.append(path)
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning(f"Failed to remove upload {path}: {e}")
        return removed
