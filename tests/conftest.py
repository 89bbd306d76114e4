"""
Pytest fixtures for the build pipeline tests.

- 외부 Cordova CLI 대신 tests/fixtures/fake_cordova.py 사용 (sys.executable로 실행)
- 모든 작업 디렉터리는 tmp_path 아래
"""

import sys
import zipfile
from collections.abc import Callable
from pathlib import Path

import pytest
import yaml

from src.app.services.pipeline import BuildPipeline, PipelineSettings
from src.core.toolchain import CordovaToolchain
from src.core.workspace import Workspace

FAKE_CORDOVA = Path(__file__).parent / "fixtures" / "fake_cordova.py"

# 테스트용 도구 timeout (초)
TEST_TIMEOUTS = {"create": 30, "platform_add": 30, "build": 30}

# 1x1 PNG
PNG_BYTES = bytes.fromhex(
    "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
    "1f15c4890000000d49444154789c6360000002000154a24f5d0000000049454e44ae426082"
)


# =============================================================================
# Path Fixtures
# =============================================================================

@pytest.fixture
def project_root() -> Path:
    """프로젝트 루트 경로."""
    return Path(__file__).parent.parent


@pytest.fixture
def default_config_path(project_root: Path) -> Path:
    """default.yaml 경로."""
    return project_root / "default.yaml"


@pytest.fixture
def default_config(default_config_path: Path) -> dict:
    """기본 설정 로드."""
    with open(default_config_path, encoding="utf-8") as f:
        return yaml.safe_load(f)


# =============================================================================
# Toolchain Fixtures
# =============================================================================

@pytest.fixture
def fake_cordova_command() -> tuple[str, ...]:
    """가짜 Cordova CLI argv prefix."""
    return (sys.executable, str(FAKE_CORDOVA))


@pytest.fixture
def toolchain(fake_cordova_command: tuple[str, ...]) -> CordovaToolchain:
    """가짜 CLI를 호출하는 toolchain."""
    return CordovaToolchain(command=fake_cordova_command, timeouts=dict(TEST_TIMEOUTS))


@pytest.fixture
def cordova_log(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """가짜 CLI 호출 기록 파일 (JSON lines)."""
    log_path = tmp_path / "cordova_calls.jsonl"
    monkeypatch.setenv("FAKE_CORDOVA_LOG", str(log_path))
    return log_path


# =============================================================================
# Pipeline Fixtures
# =============================================================================

@pytest.fixture
def pipeline_settings(tmp_path: Path, fake_cordova_command: tuple[str, ...]) -> PipelineSettings:
    """tmp_path 기반 파이프라인 설정."""
    return PipelineSettings(
        projects_root=tmp_path / "cordova_projects",
        uploads_root=tmp_path / "uploads",
        public_dir=tmp_path / "public",
        toolchain_command=fake_cordova_command,
        timeouts=dict(TEST_TIMEOUTS),
    )


@pytest.fixture
def pipeline(pipeline_settings: PipelineSettings) -> BuildPipeline:
    """가짜 CLI 기반 파이프라인."""
    for directory in (
        pipeline_settings.projects_root,
        pipeline_settings.uploads_root,
        pipeline_settings.public_dir,
    ):
        directory.mkdir(parents=True, exist_ok=True)
    return BuildPipeline(pipeline_settings)


@pytest.fixture
def scaffolded_workspace(tmp_path: Path) -> Workspace:
    """
    cordova create 결과를 흉내 낸 workspace.

    포함:
    - config.xml (기본 아이콘 선언 포함)
    - www/index.html, www/css/index.css
    """
    project_dir = tmp_path / "cordova_projects" / "build-0001"
    (project_dir / "www" / "css").mkdir(parents=True)
    (project_dir / "www" / "index.html").write_text("<h1>Apache Cordova</h1>")
    (project_dir / "www" / "css" / "index.css").write_text("body {}")
    (project_dir / "config.xml").write_text(
        "<?xml version='1.0' encoding='utf-8'?>\n"
        '<widget id="com.example.app0001" version="1.0.0">\n'
        "    <name>Test</name>\n"
        '    <icon src="res/icon.png" />\n'
        '    <icon density="ldpi" src="res/icon/android/ldpi.png" />\n'
        "</widget>\n",
        encoding="utf-8",
    )
    return Workspace(build_id="build-0001", project_dir=project_dir)


# =============================================================================
# Input Fixtures
# =============================================================================

@pytest.fixture
def make_zip(tmp_path: Path) -> Callable[..., Path]:
    """
    zip 파일 생성 헬퍼.

    사용법:
        archive = make_zip({"index.html": "<h1>Hi</h1>"})
    """
    def _make_zip(files: dict[str, str | bytes], name: str = "site.zip") -> Path:
        archive_path = tmp_path / "inputs" / name
        archive_path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(archive_path, "w") as zf:
            for entry, data in files.items():
                zf.writestr(entry, data)
        return archive_path

    return _make_zip


@pytest.fixture
def icon_file(tmp_path: Path) -> Path:
    """PNG 아이콘 파일."""
    icon_path = tmp_path / "inputs" / "icon.png"
    icon_path.parent.mkdir(parents=True, exist_ok=True)
    icon_path.write_bytes(PNG_BYTES)
    return icon_path
