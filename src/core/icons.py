"""
앱 아이콘 설치: res/icon/android/icon.png + config.xml 재작성.

규칙:
- 아이콘이 없으면 no-op
- 기존 <icon> 선언 전부 제거 (속성 구성, 닫는 태그 형태 무관)
- 새 <icon src="res/icon/android/icon.png" /> 하나를 </widget> 직전에 삽입
- XML 구조 편집이 아닌 텍스트 치환 (manifest가 well-formed라고 가정)
"""

import logging
import re
import shutil
from pathlib import Path

from src.core.workspace import Workspace
from src.domain.constants import (
    ICON_DIR_PARTS,
    ICON_FILENAME,
    WORKSPACE_RESOURCE_DIR,
)
from src.domain.errors import ErrorCodes, IconError

logger = logging.getLogger(__name__)

# <icon .../>, <icon ...>, <icon ...></icon> (속성 순서 무관)
ICON_DECLARATION_PATTERN = re.compile(r"<icon\b[^>]*>(?:\s*</icon>)?")

MANIFEST_CLOSING_TAG = "</widget>"

# manifest에 기록되는 아이콘 경로 (프로젝트 루트 기준, 항상 / 구분자)
ICON_MANIFEST_SRC = "/".join((WORKSPACE_RESOURCE_DIR, *ICON_DIR_PARTS, ICON_FILENAME))


def rewrite_manifest_icons(manifest_text: str, icon_src: str = ICON_MANIFEST_SRC) -> str:
    """
    manifest 텍스트에서 아이콘 선언 교체.

    Args:
        manifest_text: config.xml 원문
        icon_src: 새 아이콘 경로

    Returns:
        재작성된 manifest 텍스트

    Raises:
        IconError: 닫는 root 태그(</widget>)가 없음
    """
    if MANIFEST_CLOSING_TAG not in manifest_text:
        raise IconError(
            ErrorCodes.ICON_INSTALL_FAILED,
            error=f"{MANIFEST_CLOSING_TAG} not found in manifest",
        )

    text = ICON_DECLARATION_PATTERN.sub("", manifest_text)

    # 마지막 </widget> 앞에 삽입
    head, sep, tail = text.rpartition(MANIFEST_CLOSING_TAG)
    return f'{head}    <icon src="{icon_src}" />\n{sep}{tail}'


class IconInstaller:
    """아이콘 파일 복사 + manifest 갱신."""

    def install(self, workspace: Workspace, icon_path: Path | None) -> Path | None:
        """
        아이콘 설치.

        Args:
            workspace: 대상 workspace
            icon_path: 업로드된 아이콘 파일 (없으면 no-op)

        Returns:
            설치된 아이콘 경로 (no-op이면 None)

        Raises:
            IconError: 복사 또는 manifest 재작성 실패
        """
        if icon_path is None:
            return None

        icon_dir = workspace.resource_dir.joinpath(*ICON_DIR_PARTS)
        destination = icon_dir / ICON_FILENAME

        try:
            icon_dir.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(icon_path, destination)

            manifest_path = workspace.manifest_path
            if manifest_path.exists():
                manifest_text = manifest_path.read_text(encoding="utf-8")
                manifest_path.write_text(
                    rewrite_manifest_icons(manifest_text),
                    encoding="utf-8",
                )
            else:
                logger.warning(f"Manifest not found, icon copied only: {manifest_path}")

        except OSError as e:
            raise IconError(
                ErrorCodes.ICON_INSTALL_FAILED,
                icon=icon_path.name,
                error=str(e),
            ) from e

        return destination
