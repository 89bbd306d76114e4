"""
Run logging: run log schema, stage 타임라인, 요약 출력

규칙:
- 빌드 1회 = RunLog 1개 (성공/실패/거절 모두 완료 처리)
- stage마다 StageLog: 시작 시각, 소요 시간, 결과, 실패 코드
- 디스크에 저장하지 않음: 완료 시 JSON 한 줄로 로그 출력
"""

import json
import logging
import time
from collections.abc import Generator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any

from src.domain.errors import BuildPipelineError, ErrorCodes
from src.domain.schemas import RunLog, Stage, StageLog

logger = logging.getLogger(__name__)

DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(config: dict) -> None:
    """
    설정 기반 로깅 초기화.

    Args:
        config: default.yaml 내용 (logging.level, logging.format)
    """
    logging_config = config.get("logging", {})
    level_name = str(logging_config.get("level", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=logging_config.get("format", DEFAULT_LOG_FORMAT),
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# =============================================================================
# Run Log Management
# =============================================================================


def create_run_log(
    build_id: str,
    app_name: str | None = None,
    input_kind: str | None = None,
) -> RunLog:
    """
    새 RunLog 생성.

    Args:
        build_id: Build ID
        app_name: 앱 표시 이름 (검증 전이면 None)
        input_kind: 입력 종류 (검증 전이면 None)

    Returns:
        초기화된 RunLog
    """
    return RunLog(
        build_id=build_id,
        app_name=app_name,
        input_kind=input_kind,
        started_at=datetime.now(UTC).isoformat(),
        result="pending",
    )


@contextmanager
def track_stage(run_log: RunLog, stage: Stage) -> Generator[StageLog, None, None]:
    """
    stage 실행 구간 기록.

    사용법:
        with track_stage(run_log, Stage.BUILD):
            await builder.build(...)

    예외는 기록 후 그대로 전파 (failed_stage 설정).
    """
    stage_log = StageLog(stage=stage.value, started_at=datetime.now(UTC).isoformat())
    run_log.stages.append(stage_log)
    started = time.monotonic()

    try:
        yield stage_log
    except BaseException as e:
        stage_log.result = "failed"
        stage_log.error_code = (
            e.code if isinstance(e, BuildPipelineError) else ErrorCodes.INTERNAL_ERROR
        )
        run_log.failed_stage = stage.value
        raise
    else:
        stage_log.result = "success"
    finally:
        stage_log.duration_ms = int((time.monotonic() - started) * 1000)


def complete_run_log(
    run_log: RunLog,
    success: bool,
    error_code: str | None = None,
    error_context: dict[str, Any] | None = None,
) -> None:
    """
    RunLog 완료 처리.

    Args:
        run_log: RunLog 인스턴스
        success: 성공 여부
        error_code: 에러 코드 (실패 시)
        error_context: 에러 컨텍스트 (실패 시)
    """
    run_log.finished_at = datetime.now(UTC).isoformat()
    run_log.result = "success" if success else "failed"

    if not success:
        run_log.error_code = error_code
        run_log.error_context = error_context


def log_run_summary(run_log: RunLog) -> None:
    """RunLog를 JSON 한 줄로 출력 (성공 INFO, 실패 WARNING)."""
    payload = json.dumps(run_log.to_dict(), ensure_ascii=False, default=str)
    if run_log.result == "success":
        logger.info(f"Build finished: {payload}")
    else:
        logger.warning(f"Build failed: {payload}")
