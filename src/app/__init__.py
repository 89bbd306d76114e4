"""
App layer: HTTP 서버 (FastAPI).

역할:
- multipart 폼 수신, 업로드 파일 저장
- BuildPipeline 실행 후 JSON 응답
- public/ 정적 서빙 (APK 다운로드)
- ⚠️ 빌드 stage 로직 없음 (core에 위임)
"""
