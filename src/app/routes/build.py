"""
Build Routes: APK 생성 요청.

- GET /               → 생성 폼 (HTML)
- POST /generate-apk  → multipart 폼 → 빌드 실행 → JSON 결과

응답 형태:
    {"success": true, "downloadUrl": "/My_App-<build_id>.apk"}
    {"success": false, "message": "...", "error": "<tool stderr>"}

상태 코드: 성공 200, 입력 오류 400, 그 외 실패 500
"""

import logging

from fastapi import APIRouter, File, Form, Request, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse

from src.app.services.pipeline import BuildPipeline
from src.app.services.uploads import UploadedFiles, UploadStore
from src.domain.errors import BuildPipelineError
from src.domain.schemas import BuildSubmission

logger = logging.getLogger(__name__)

# Routers
router = APIRouter()  # HTML pages
api_router = APIRouter()  # API endpoints


# =============================================================================
# Page Routes (HTML)
# =============================================================================

@router.get("/", response_class=HTMLResponse)
async def index_page(request: Request) -> HTMLResponse:
    """APK 생성 화면."""
    return HTMLResponse(content="""
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>Web to APK</title>
</head>
<body>
    <div class="container">
        <header>
            <h1>📦 Web to APK</h1>
        </header>

        <form id="generate-form" enctype="multipart/form-data">
            <div class="form-group">
                <label>App name</label>
                <input type="text" name="appName" placeholder="My App" required>
            </div>

            <div class="form-group">
                <label>Source</label>
                <select name="type">
                    <option value="html_code">HTML code</option>
                    <option value="url">URL</option>
                    <option value="file">ZIP file</option>
                </select>
            </div>

            <div class="form-group">
                <label>HTML code</label>
                <textarea name="htmlCode" rows="8"></textarea>
            </div>

            <div class="form-group">
                <label>URL</label>
                <input type="url" name="url" placeholder="https://example.com">
            </div>

            <div class="form-group">
                <label>ZIP file</label>
                <input type="file" name="zipFile" accept=".zip">
            </div>

            <div class="form-group">
                <label>Icon (PNG)</label>
                <input type="file" name="iconFile" accept="image/png">
            </div>

            <button type="submit">Generate APK</button>
        </form>

        <div id="result"></div>
    </div>
    <script>
        document.getElementById("generate-form").addEventListener("submit", async (event) => {
            event.preventDefault();
            const result = document.getElementById("result");
            result.textContent = "Building... this can take several minutes.";
            const response = await fetch("/generate-apk", {
                method: "POST",
                body: new FormData(event.target),
            });
            const data = await response.json();
            result.textContent = "";
            if (data.success) {
                const link = document.createElement("a");
                link.href = data.downloadUrl;
                link.textContent = "Download APK";
                result.appendChild(link);
            } else {
                result.textContent = data.message + (data.error ? "\\n" + data.error : "");
            }
        });
    </script>
</body>
</html>
    """)


# =============================================================================
# API Routes
# =============================================================================

@api_router.post("/generate-apk")
async def generate_apk(
    request: Request,
    input_type: str | None = Form(None, alias="type"),
    app_name: str | None = Form(None, alias="appName"),
    html_code: str | None = Form(None, alias="htmlCode"),
    url: str | None = Form(None),
    zip_file: UploadFile | None = File(None, alias="zipFile"),
    icon_file: UploadFile | None = File(None, alias="iconFile"),
) -> JSONResponse:
    """
    APK 생성 요청.

    1. 업로드 파일을 uploads/에 저장
    2. BuildPipeline 실행 (검증 → workspace → content → icon → platform → build → export)
    3. 결과를 JSON으로 반환

    입력 조합 검증은 파이프라인의 validate stage에서 수행
    (잘못된 입력이어도 저장된 업로드 파일은 동일한 cleanup 경로로 삭제됨).
    """
    pipeline: BuildPipeline = request.app.state.pipeline
    upload_store: UploadStore = request.app.state.upload_store

    saved = UploadedFiles()
    try:
        saved.archive_path = await upload_store.save(zip_file)
        saved.icon_path = await upload_store.save(icon_file)
    except OSError as e:
        logger.error(f"Failed to store uploaded files: {e}", exc_info=True)
        saved.discard()
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": BuildPipelineError.default_message},
        )

    submission = BuildSubmission(
        type=input_type,
        app_name=app_name,
        html_code=html_code,
        url=url,
        archive_path=saved.archive_path,
        icon_path=saved.icon_path,
    )

    result = await pipeline.run(submission)
    return JSONResponse(status_code=result.http_status, content=result.to_response())
