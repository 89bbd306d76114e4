"""
Content 설치: workspace의 www/ 채우기.

규칙:
- 설치 전 www/ 전체를 비움 (스캐폴딩 기본 템플릿 제거, 입력 종류 무관)
- html_code: index.html에 원문 그대로 기록
- url: iframe wrapper 문서 생성 (appName/url은 HTML escape)
- file: zip 전체를 www/에 압축 해제 (기존 경로 덮어씀)
- 압축 해제 실패는 ContentError, 입력 누락/불일치는 ClientInputError
"""

import logging
import shutil
import stat
import zipfile
import zlib
from pathlib import Path
from urllib.parse import urlsplit

from jinja2 import Environment, FileSystemLoader

from src.core.workspace import Workspace
from src.domain.constants import (
    DEFAULT_MAX_ARCHIVE_ENTRIES,
    DEFAULT_MAX_EXTRACTED_MB,
    ENTRY_DOCUMENT_FILENAME,
)
from src.domain.errors import ClientInputError, ContentError, ErrorCodes
from src.domain.schemas import BuildRequest, InputKind

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"
WRAPPER_TEMPLATE_NAME = "webview_wrapper.html"

_jinja_env = Environment(
    loader=FileSystemLoader(TEMPLATES_DIR),
    autoescape=True,
    keep_trailing_newline=True,
)


# =============================================================================
# Wrapper Document
# =============================================================================


def render_url_wrapper(url: str, app_name: str) -> str:
    """
    원격 URL을 전체 화면 iframe으로 감싼 index.html 생성.

    appName과 url은 autoescape로 escape됨. CSP frame-src에는
    url의 origin만 허용.

    Args:
        url: 검증된 http/https URL
        app_name: 앱 표시 이름 (title)

    Returns:
        HTML 문서 문자열
    """
    template = _jinja_env.get_template(WRAPPER_TEMPLATE_NAME)
    return template.render(url=url, app_name=app_name, frame_origin=frame_origin(url))


def frame_origin(url: str) -> str:
    """scheme://host[:port]. userinfo는 제외 (CSP source 문법에 없음)."""
    parts = urlsplit(url)
    host = parts.hostname or ""
    if ":" in host:
        host = f"[{host}]"
    if parts.port is not None:
        host = f"{host}:{parts.port}"
    return f"{parts.scheme}://{host}"


# =============================================================================
# Archive Extraction
# =============================================================================


def _is_symlink_entry(info: zipfile.ZipInfo) -> bool:
    mode = info.external_attr >> 16
    return stat.S_ISLNK(mode)


def extract_archive(
    archive_path: Path,
    dest_dir: Path,
    max_entries: int = DEFAULT_MAX_ARCHIVE_ENTRIES,
    max_extracted_bytes: int = DEFAULT_MAX_EXTRACTED_MB * 1024 * 1024,
) -> list[str]:
    """
    zip 아카이브를 dest_dir에 압축 해제.

    보안:
    - dest_dir 밖으로 나가는 엔트리(절대 경로, ..) 거절
    - symlink 엔트리 거절
    - 엔트리 개수/해제 후 총 크기 제한

    Args:
        archive_path: 업로드된 zip 경로
        dest_dir: 압축 해제 대상 (content root)
        max_entries: 최대 엔트리 수
        max_extracted_bytes: 최대 해제 크기 (bytes)

    Returns:
        해제된 엔트리 이름 목록

    Raises:
        ContentError: ARCHIVE_EXTRACT_FAILED, ARCHIVE_UNSAFE_ENTRY, ARCHIVE_TOO_LARGE
    """
    dest_root = dest_dir.resolve()

    try:
        with zipfile.ZipFile(archive_path) as zf:
            infos = zf.infolist()

            if len(infos) > max_entries:
                raise ContentError(
                    ErrorCodes.ARCHIVE_TOO_LARGE,
                    entries=len(infos),
                    max_entries=max_entries,
                )

            total_size = sum(info.file_size for info in infos)
            if total_size > max_extracted_bytes:
                raise ContentError(
                    ErrorCodes.ARCHIVE_TOO_LARGE,
                    extracted_bytes=total_size,
                    max_extracted_bytes=max_extracted_bytes,
                )

            for info in infos:
                if _is_symlink_entry(info):
                    raise ContentError(ErrorCodes.ARCHIVE_UNSAFE_ENTRY, entry=info.filename)
                target = (dest_root / info.filename).resolve()
                try:
                    target.relative_to(dest_root)
                except ValueError:
                    raise ContentError(
                        ErrorCodes.ARCHIVE_UNSAFE_ENTRY,
                        entry=info.filename,
                    ) from None

            zf.extractall(dest_root)
            return [info.filename for info in infos]

    except ContentError:
        raise
    except (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError, RuntimeError, OSError) as e:
        # 손상된 zip, 미지원 압축 방식, 암호화 등
        logger.error(f"Unzip error for {archive_path.name}: {e}")
        raise ContentError(
            ErrorCodes.ARCHIVE_EXTRACT_FAILED,
            archive=archive_path.name,
            error=str(e),
        ) from e


# =============================================================================
# Content Installer
# =============================================================================


def clear_directory(directory: Path) -> None:
    """디렉터리 내용 전체 삭제 (디렉터리 자체는 유지)."""
    directory.mkdir(parents=True, exist_ok=True)
    for entry in directory.iterdir():
        if entry.is_dir() and not entry.is_symlink():
            shutil.rmtree(entry)
        else:
            entry.unlink()


class ContentInstaller:
    """입력 종류에 따라 workspace content root 구성."""

    def __init__(
        self,
        max_archive_entries: int = DEFAULT_MAX_ARCHIVE_ENTRIES,
        max_extracted_mb: int = DEFAULT_MAX_EXTRACTED_MB,
    ):
        self.max_archive_entries = max_archive_entries
        self.max_extracted_bytes = max_extracted_mb * 1024 * 1024

    def install(self, workspace: Workspace, request: BuildRequest) -> None:
        """
        Content 설치.

        Args:
            workspace: 대상 workspace
            request: 검증된 빌드 요청

        Raises:
            ClientInputError: 입력 종류/필드 불일치
            ContentError: 압축 해제 실패
        """
        content_dir = workspace.content_dir
        clear_directory(content_dir)

        entry_path = content_dir / ENTRY_DOCUMENT_FILENAME

        if request.input_kind is InputKind.INLINE_MARKUP and request.inline_markup:
            entry_path.write_text(request.inline_markup, encoding="utf-8")

        elif request.input_kind is InputKind.REMOTE_URL and request.remote_url:
            entry_path.write_text(
                render_url_wrapper(request.remote_url, request.app_name),
                encoding="utf-8",
            )

        elif request.input_kind is InputKind.ARCHIVE and request.archive_path:
            entries = extract_archive(
                request.archive_path,
                content_dir,
                max_entries=self.max_archive_entries,
                max_extracted_bytes=self.max_extracted_bytes,
            )
            logger.info(f"Extracted {len(entries)} entries into {content_dir}")

        else:
            raise ClientInputError(
                ErrorCodes.INVALID_INPUT,
                input_kind=request.input_kind.value,
            )
