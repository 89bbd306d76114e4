#!/usr/bin/env python3
"""
purge_stale_workspaces.py - 남은 빌드 작업 디렉터리 정리 스크립트

정상 빌드는 응답 전에 workspace와 업로드 파일을 지우지만,
서버 프로세스가 비정상 종료되면 남는 것이 있음. 이 스크립트가 정리:
1. cordova_projects/ 아래 max_age_hours 초과 workspace 디렉터리
2. uploads/ 아래 max_age_hours 초과 업로드 파일
3. (--artifact-retention-days 지정 시) public/ 아래 보관 기간 초과 APK

경로는 default.yaml의 paths.* 설정을 따름.

사용법:
    # 기본 실행 (dry-run)
    python scripts/purge_stale_workspaces.py

    # 실제 삭제
    python scripts/purge_stale_workspaces.py --execute

    # APK도 7일 보관 후 삭제
    python scripts/purge_stale_workspaces.py --artifact-retention-days 7 --execute

    # cron 예시 (매시 정각)
    0 * * * * cd /path/to/project && python scripts/purge_stale_workspaces.py --execute >> /var/log/purge_workspaces.log 2>&1
"""

import argparse
import logging
import shutil
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path

import yaml

# 로깅 설정
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

ARTIFACT_SUFFIXES = (".apk", ".aab")


@dataclass
class PurgePaths:
    """정리 대상 경로."""
    projects_root: Path
    uploads_root: Path
    public_dir: Path


@dataclass
class PurgeResult:
    """Purge 결과."""
    scanned_workspaces: int = 0
    scanned_uploads: int = 0
    scanned_artifacts: int = 0

    purged_workspaces: int = 0
    purged_uploads: int = 0
    purged_artifacts: int = 0
    purged_size_mb: float = 0.0

    errors: list[str] = field(default_factory=list)


def load_paths(config_path: Path, project_root: Path) -> PurgePaths:
    """default.yaml에서 경로 설정 로드 (없으면 기본값)."""
    config: dict = {}
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}

    paths = config.get("paths", {})

    def resolve(key: str, default: str) -> Path:
        path = Path(paths.get(key, default))
        return path if path.is_absolute() else project_root / path

    return PurgePaths(
        projects_root=resolve("projects_root", "cordova_projects"),
        uploads_root=resolve("uploads_root", "uploads"),
        public_dir=resolve("public_dir", "public"),
    )


def get_entry_size(entry: Path) -> int:
    """파일 또는 폴더 전체 크기 (bytes)."""
    if entry.is_file():
        return entry.stat().st_size
    total = 0
    try:
        for item in entry.rglob("*"):
            if item.is_file():
                total += item.stat().st_size
    except OSError:
        pass
    return total


def get_entry_mtime(entry: Path) -> datetime:
    """수정 시간."""
    return datetime.fromtimestamp(entry.stat().st_mtime)


def purge_entry(entry: Path, execute: bool, result: PurgeResult) -> bool:
    """
    단일 파일/폴더 삭제.

    Returns:
        삭제(또는 dry-run에서 삭제 예정) 처리 여부
    """
    size = get_entry_size(entry)

    if not execute:
        logger.info(f"[DRY-RUN] 삭제 예정: {entry} ({size / 1024:.1f} KB)")
        result.purged_size_mb += size / (1024 * 1024)
        return True

    try:
        if entry.is_dir() and not entry.is_symlink():
            shutil.rmtree(entry)
        else:
            entry.unlink()
    except OSError as e:
        result.errors.append(f"삭제 실패 {entry}: {e}")
        logger.error(f"삭제 실패 {entry}: {e}")
        return False

    result.purged_size_mb += size / (1024 * 1024)
    logger.info(f"삭제됨: {entry} ({size / 1024:.1f} KB)")
    return True


def purge_stale_workspaces(
    projects_root: Path,
    cutoff: datetime,
    execute: bool,
    result: PurgeResult,
) -> None:
    """cutoff 이전 workspace 디렉터리 정리."""
    if not projects_root.exists():
        return

    for workspace in sorted(d for d in projects_root.iterdir() if d.is_dir()):
        result.scanned_workspaces += 1
        if get_entry_mtime(workspace) < cutoff and purge_entry(workspace, execute, result):
            result.purged_workspaces += 1


def purge_stale_uploads(
    uploads_root: Path,
    cutoff: datetime,
    execute: bool,
    result: PurgeResult,
) -> None:
    """cutoff 이전 업로드 임시 파일 정리."""
    if not uploads_root.exists():
        return

    for upload in sorted(f for f in uploads_root.iterdir() if f.is_file()):
        result.scanned_uploads += 1
        if get_entry_mtime(upload) < cutoff and purge_entry(upload, execute, result):
            result.purged_uploads += 1


def purge_expired_artifacts(
    public_dir: Path,
    cutoff: datetime,
    execute: bool,
    result: PurgeResult,
) -> None:
    """보관 기간 초과 APK 정리. 다른 정적 파일은 건드리지 않음."""
    if not public_dir.exists():
        return

    artifacts = sorted(
        f for f in public_dir.iterdir()
        if f.is_file() and f.suffix.lower() in ARTIFACT_SUFFIXES
    )
    for artifact in artifacts:
        result.scanned_artifacts += 1
        if get_entry_mtime(artifact) < cutoff and purge_entry(artifact, execute, result):
            result.purged_artifacts += 1


def purge_all(
    paths: PurgePaths,
    max_age_hours: float,
    artifact_retention_days: int | None,
    execute: bool,
    now: datetime | None = None,
) -> PurgeResult:
    """workspace / 업로드 / (선택) APK 전체 정리."""
    result = PurgeResult()
    now = now or datetime.now()

    stale_cutoff = now - timedelta(hours=max_age_hours)
    purge_stale_workspaces(paths.projects_root, stale_cutoff, execute, result)
    purge_stale_uploads(paths.uploads_root, stale_cutoff, execute, result)

    if artifact_retention_days is not None:
        artifact_cutoff = now - timedelta(days=artifact_retention_days)
        purge_expired_artifacts(paths.public_dir, artifact_cutoff, execute, result)

    return result


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="남은 빌드 workspace / 업로드 / APK 정리 스크립트",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--execute",
        action="store_true",
        help="실제 삭제 실행 (기본: dry-run)",
    )
    parser.add_argument(
        "--max-age-hours",
        type=float,
        default=6.0,
        help="이 시간보다 오래된 workspace/업로드 삭제 (기본: 6)",
    )
    parser.add_argument(
        "--artifact-retention-days",
        type=int,
        default=None,
        help="APK 보관 일수 (미지정 시 APK는 삭제하지 않음)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default="default.yaml",
        help="설정 파일 경로 (기본: default.yaml)",
    )

    args = parser.parse_args(argv)

    # 경로 설정
    project_root = Path(__file__).parent.parent
    config_path = Path(args.config)
    if not config_path.is_absolute():
        config_path = project_root / config_path

    paths = load_paths(config_path, project_root)
    logger.info(
        f"대상: {paths.projects_root}, {paths.uploads_root}"
        f" (>{args.max_age_hours}h)"
    )

    if not args.execute:
        logger.info("=" * 50)
        logger.info("DRY-RUN 모드 (실제 삭제 없음)")
        logger.info("실제 실행: --execute 옵션 추가")
        logger.info("=" * 50)

    result = purge_all(
        paths=paths,
        max_age_hours=args.max_age_hours,
        artifact_retention_days=args.artifact_retention_days,
        execute=args.execute,
    )

    # 결과 출력
    logger.info("=" * 50)
    logger.info("Purge 결과:")
    logger.info(
        f"  스캔: {result.scanned_workspaces} workspaces,"
        f" {result.scanned_uploads} uploads, {result.scanned_artifacts} artifacts"
    )
    logger.info(
        f"  정리: {result.purged_workspaces} workspaces, {result.purged_uploads} uploads,"
        f" {result.purged_artifacts} artifacts ({result.purged_size_mb:.2f} MB)"
    )
    if result.errors:
        logger.warning(f"  에러: {len(result.errors)}개")
        for err in result.errors[:5]:  # 최대 5개만 출력
            logger.warning(f"    - {err}")

    return 0 if not result.errors else 1


if __name__ == "__main__":
    raise SystemExit(main())
