"""
test_content.py - Content 설치 테스트

검증 포인트:
1. 설치 전 www/ 비움 (스캐폴딩 기본 파일 제거)
2. html_code → index.html 원문 그대로
3. url → iframe wrapper (escape, CSP frame-src)
4. file → zip 압축 해제, 손상/위험 아카이브 거절
"""

import stat
import zipfile
from collections.abc import Callable
from pathlib import Path

import pytest

from src.core.content import ContentInstaller, extract_archive, frame_origin, render_url_wrapper
from src.core.workspace import Workspace
from src.domain.errors import ContentError, ErrorCodes
from src.domain.schemas import BuildRequest, InputKind


@pytest.fixture
def installer() -> ContentInstaller:
    return ContentInstaller()


def _installed_files(workspace: Workspace) -> set[str]:
    return {
        p.relative_to(workspace.content_dir).as_posix()
        for p in workspace.content_dir.rglob("*")
        if p.is_file()
    }


# =============================================================================
# html_code
# =============================================================================


class TestInlineMarkup:
    """html_code 입력."""

    def test_writes_markup_verbatim(self, installer: ContentInstaller, scaffolded_workspace: Workspace):
        markup = "<!DOCTYPE html><h1>Hi</h1>\n<script>alert('x')</script>"
        request = BuildRequest(InputKind.INLINE_MARKUP, "App", inline_markup=markup)

        installer.install(scaffolded_workspace, request)

        index = scaffolded_workspace.content_dir / "index.html"
        assert index.read_text(encoding="utf-8") == markup
        assert _installed_files(scaffolded_workspace) == {"index.html"}


# =============================================================================
# url
# =============================================================================


class TestRemoteUrl:
    """url 입력."""

    def test_wrapper_document(self, installer: ContentInstaller, scaffolded_workspace: Workspace):
        request = BuildRequest(InputKind.REMOTE_URL, "My App", remote_url="https://example.com/page")

        installer.install(scaffolded_workspace, request)

        html = (scaffolded_workspace.content_dir / "index.html").read_text(encoding="utf-8")
        assert '<iframe src="https://example.com/page"></iframe>' in html
        assert "<title>My App</title>" in html
        assert "frame-src https://example.com;" in html
        assert '<script src="cordova.js"></script>' in html
        assert _installed_files(scaffolded_workspace) == {"index.html"}

    def test_app_name_and_url_are_escaped(self):
        html = render_url_wrapper(
            'https://example.com/?a=1&b="2"',
            "</title><script>alert(1)</script>",
        )

        assert "<script>alert(1)</script>" not in html
        assert "&lt;/title&gt;&lt;script&gt;" in html
        assert 'src="https://example.com/?a=1&amp;b=&#34;2&#34;"' in html

    def test_frame_origin_keeps_port(self):
        html = render_url_wrapper("http://localhost:8080/app", "App")
        assert "frame-src http://localhost:8080;" in html

    def test_frame_origin_drops_userinfo(self):
        """자격 증명은 CSP에 들어가지 않음. iframe src는 URL 그대로."""
        html = render_url_wrapper("https://user:pw@example.com/app", "App")

        csp_line = next(line for line in html.splitlines() if "Content-Security-Policy" in line)
        assert "frame-src https://example.com;" in csp_line
        assert "pw" not in csp_line
        assert 'src="https://user:pw@example.com/app"' in html

    def test_frame_origin_ipv6(self):
        assert frame_origin("http://[::1]:8080/app") == "http://[::1]:8080"
        assert frame_origin("https://[2001:db8::1]/") == "https://[2001:db8::1]"


# =============================================================================
# file (zip)
# =============================================================================


class TestArchive:
    """zip 입력."""

    def test_extracts_archive_over_cleared_root(
        self,
        installer: ContentInstaller,
        scaffolded_workspace: Workspace,
        make_zip: Callable[..., Path],
    ):
        archive = make_zip({
            "index.html": "<h1>Site</h1>",
            "js/app.js": "console.log(1)",
            "img/": "",
        })
        request = BuildRequest(InputKind.ARCHIVE, "App", archive_path=archive)

        installer.install(scaffolded_workspace, request)

        assert _installed_files(scaffolded_workspace) == {"index.html", "js/app.js"}
        assert (scaffolded_workspace.content_dir / "img").is_dir()
        # 스캐폴딩 기본 css는 제거됨
        assert not (scaffolded_workspace.content_dir / "css").exists()

    def test_corrupt_archive(
        self, installer: ContentInstaller, scaffolded_workspace: Workspace, tmp_path: Path
    ):
        archive = tmp_path / "broken.zip"
        archive.write_bytes(b"this is not a zip file")
        request = BuildRequest(InputKind.ARCHIVE, "App", archive_path=archive)

        with pytest.raises(ContentError) as exc_info:
            installer.install(scaffolded_workspace, request)

        assert exc_info.value.code == ErrorCodes.ARCHIVE_EXTRACT_FAILED
        assert exc_info.value.message == "Failed to extract zip file."

    def test_rejects_parent_traversal(self, make_zip: Callable[..., Path], tmp_path: Path):
        archive = make_zip({"../evil.txt": "x"})
        dest = tmp_path / "www"
        dest.mkdir()

        with pytest.raises(ContentError) as exc_info:
            extract_archive(archive, dest)

        assert exc_info.value.code == ErrorCodes.ARCHIVE_UNSAFE_ENTRY
        assert not (tmp_path / "evil.txt").exists()

    def test_rejects_absolute_path(self, make_zip: Callable[..., Path], tmp_path: Path):
        archive = make_zip({"/tmp/evil.txt": "x"})
        dest = tmp_path / "www"
        dest.mkdir()

        with pytest.raises(ContentError) as exc_info:
            extract_archive(archive, dest)

        assert exc_info.value.code == ErrorCodes.ARCHIVE_UNSAFE_ENTRY

    def test_rejects_symlink_entry(self, tmp_path: Path):
        archive = tmp_path / "link.zip"
        info = zipfile.ZipInfo("link")
        info.external_attr = (stat.S_IFLNK | 0o777) << 16
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr(info, "/etc/passwd")
        dest = tmp_path / "www"
        dest.mkdir()

        with pytest.raises(ContentError) as exc_info:
            extract_archive(archive, dest)

        assert exc_info.value.code == ErrorCodes.ARCHIVE_UNSAFE_ENTRY

    def test_entry_count_limit(self, make_zip: Callable[..., Path], tmp_path: Path):
        archive = make_zip({f"f{i}.txt": "x" for i in range(5)})

        with pytest.raises(ContentError) as exc_info:
            extract_archive(archive, tmp_path, max_entries=4)

        assert exc_info.value.code == ErrorCodes.ARCHIVE_TOO_LARGE

    def test_extracted_size_limit(self, make_zip: Callable[..., Path], tmp_path: Path):
        archive = make_zip({"big.bin": b"0" * 2048})

        with pytest.raises(ContentError) as exc_info:
            extract_archive(archive, tmp_path, max_extracted_bytes=1024)

        assert exc_info.value.code == ErrorCodes.ARCHIVE_TOO_LARGE
