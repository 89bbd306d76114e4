"""
Core layer: 빌드 파이프라인 stage 모듈.

HTTP 의존성 없음. 각 stage는 workspace + 파라미터 → 결과 또는 예외.

역할:
- ids, toolchain(Cordova CLI), workspace, content, icons,
  native_build(platform add / build), export, logging(run log)
"""

from .content import ContentInstaller, render_url_wrapper
from .export import ArtifactExporter, atomic_copy
from .icons import IconInstaller, rewrite_manifest_icons
from .ids import artifact_filename, derive_package_id, generate_build_id, sanitize_app_name
from .logging import complete_run_log, create_run_log, log_run_summary, track_stage
from .native_build import ArtifactBuilder, PlatformProvisioner
from .toolchain import CommandResult, CordovaToolchain, run_command
from .workspace import Workspace, WorkspaceAllocator

__all__ = [
    # ids
    "generate_build_id",
    "derive_package_id",
    "sanitize_app_name",
    "artifact_filename",
    # toolchain
    "CommandResult",
    "CordovaToolchain",
    "run_command",
    # workspace
    "Workspace",
    "WorkspaceAllocator",
    # content / icons
    "ContentInstaller",
    "render_url_wrapper",
    "IconInstaller",
    "rewrite_manifest_icons",
    # native build / export
    "PlatformProvisioner",
    "ArtifactBuilder",
    "ArtifactExporter",
    "atomic_copy",
    # logging
    "create_run_log",
    "track_stage",
    "complete_run_log",
    "log_run_summary",
]
