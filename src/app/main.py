"""
FastAPI 애플리케이션 진입점.

실행:
- 개발: uvicorn src.app.main:app --reload --port 3000
- 프로덕션: uvicorn src.app.main:app --host 0.0.0.0 --port 3000
"""

import mimetypes
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import yaml
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

# Routes
from src.app.routes import build
from src.app.services.pipeline import BuildPipeline, PipelineSettings
from src.app.services.uploads import UploadStore
from src.core.logging import configure_logging
from src.domain.constants import MIME_TYPES

PROJECT_ROOT = Path(__file__).parent.parent.parent

# =============================================================================
# Configuration
# =============================================================================


def load_config(config_path: Path | None = None) -> dict:
    """설정 파일 로드."""
    if config_path is None:
        # 프로젝트 루트의 default.yaml
        config_path = PROJECT_ROOT / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path, encoding="utf-8") as f:
        data: dict[Any, Any] = yaml.safe_load(f) or {}
        return data


config = load_config()
settings = PipelineSettings.from_config(config, PROJECT_ROOT)


# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    애플리케이션 생명주기 관리.

    시작 시: 로깅 설정, 작업 디렉터리 생성, 파이프라인 준비
    """
    # Startup
    configure_logging(config)
    for directory in (settings.projects_root, settings.uploads_root, settings.public_dir):
        directory.mkdir(parents=True, exist_ok=True)

    app.state.config = config
    app.state.settings = settings
    app.state.pipeline = BuildPipeline(settings)
    app.state.upload_store = UploadStore(settings.uploads_root)

    yield


# =============================================================================
# App Instance
# =============================================================================

app = FastAPI(
    title="Web to APK",
    description="HTML / URL / ZIP → Cordova Android APK",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.get("server", {}).get("cors_origins", ["*"]),
    allow_methods=["*"],
    allow_headers=["*"],
)

# 정적 서빙 시 APK Content-Type
for extension, mime_type in MIME_TYPES.items():
    mimetypes.add_type(mime_type, extension)


# =============================================================================
# Routes
# =============================================================================

# 페이지 라우트 (HTML)
app.include_router(build.router, prefix="", tags=["Build"])

# API 라우트
app.include_router(build.api_router, prefix="", tags=["Build API"])


@app.get("/health")
async def health() -> dict[str, str]:
    """헬스 체크."""
    return {"status": "ok"}


# 공개 산출물 (APK 다운로드). "/"에 mount하므로 반드시 마지막에 등록
app.mount(
    "/",
    StaticFiles(directory=settings.public_dir, check_dir=False),
    name="public",
)


# =============================================================================
# CLI Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    server = config.get("server", {})
    uvicorn.run(
        "src.app.main:app",
        host=server.get("host", "0.0.0.0"),
        port=server.get("port", 3000),
    )
