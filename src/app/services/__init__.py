"""
Application Services.

역할:
- uploads: multipart 파일 → uploads/ 임시 파일, 소유권 관리
- pipeline: 빌드 오케스트레이터 (stage 순서 + cleanup 보장)
"""

from .pipeline import BuildPipeline, PipelineSettings
from .uploads import UploadedFiles, UploadStore

__all__ = [
    "BuildPipeline",
    "PipelineSettings",
    "UploadStore",
    "UploadedFiles",
]
