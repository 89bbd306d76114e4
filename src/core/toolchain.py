"""
외부 빌드 도구(Cordova CLI) 호출.

규칙:
- shell 사용 금지: 항상 argv 리스트로 실행 (create_subprocess_exec)
- 호출 중에는 이벤트 루프를 막지 않고 프로세스 종료까지 대기
- 결과 계약: exit code + stdout/stderr (CommandResult)
- timeout 초과 시 프로세스 그룹 전체 kill 후 timed_out=True
- 실패 판정과 에러 변환은 호출하는 stage 책임
"""

import asyncio
import logging
import os
import signal
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from src.domain.constants import DEFAULT_PLATFORM, DEFAULT_TIMEOUTS, DEFAULT_TOOLCHAIN_COMMAND
from src.domain.errors import ErrorCodes

logger = logging.getLogger(__name__)

# 실행 파일을 찾지 못했을 때 사용하는 exit code (POSIX shell 관례)
EXIT_CODE_NOT_FOUND = 127

# 로그에 남길 stderr 최대 길이
STDERR_LOG_TAIL = 2000

# kill 이후 남은 출력 수집 대기 시간 (초)
KILL_DRAIN_TIMEOUT = 5


@dataclass
class CommandResult:
    """외부 명령 실행 결과."""

    command: list[str]
    exit_code: int | None
    stdout: str
    stderr: str
    duration_ms: int
    timed_out: bool = False
    not_found: bool = False

    @property
    def ok(self) -> bool:
        return self.exit_code == 0 and not self.timed_out

    @property
    def diagnostics(self) -> str:
        """에러 응답에 실을 진단 텍스트. stderr가 비어 있으면 stdout."""
        if self.timed_out:
            return f"Command timed out after {self.duration_ms / 1000:.1f}s: {' '.join(self.command)}"
        return self.stderr or self.stdout

    def failure_code(self, default: str) -> str:
        """실패 원인별 에러 코드. timeout/실행 파일 없음은 공통 코드 사용."""
        if self.not_found:
            return ErrorCodes.TOOL_NOT_FOUND
        if self.timed_out:
            return ErrorCodes.TOOL_TIMEOUT
        return default


async def run_command(
    command: Sequence[str],
    cwd: Path | None = None,
    timeout: float | None = None,
) -> CommandResult:
    """
    외부 명령 실행 후 종료까지 대기.

    Args:
        command: argv 리스트
        cwd: 작업 디렉터리
        timeout: 초 단위 제한 (None이면 무제한)

    Returns:
        CommandResult (실행 실패도 예외 대신 결과로 반환)
    """
    argv = [str(part) for part in command]
    logger.info(f"Running: {' '.join(argv)} (cwd={cwd})")
    started = time.monotonic()

    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            cwd=str(cwd) if cwd else None,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            # 자식이 띄운 프로세스(Gradle 등)까지 한 그룹으로 kill
            start_new_session=True,
        )
    except (FileNotFoundError, PermissionError) as e:
        logger.error(f"Command not executable: {argv[0]}: {e}")
        return CommandResult(
            command=argv,
            exit_code=EXIT_CODE_NOT_FOUND,
            stdout="",
            stderr=str(e),
            duration_ms=_elapsed_ms(started),
            not_found=True,
        )

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        _kill_process_group(proc)
        try:
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(), timeout=KILL_DRAIN_TIMEOUT
            )
        except asyncio.TimeoutError:
            # 그룹을 벗어난 프로세스가 pipe를 잡고 있음
            logger.warning(f"Output drain timed out after kill: {argv[0]}")
            stdout, stderr = b"", b""
            await proc.wait()
        result = CommandResult(
            command=argv,
            exit_code=proc.returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            duration_ms=_elapsed_ms(started),
            timed_out=True,
        )
        logger.warning(f"Command timed out after {timeout}s: {' '.join(argv)}")
        return result

    result = CommandResult(
        command=argv,
        exit_code=proc.returncode,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
        duration_ms=_elapsed_ms(started),
    )

    if result.ok:
        logger.info(f"Command succeeded in {result.duration_ms}ms: {argv[0]} {argv[1] if len(argv) > 1 else ''}")
    else:
        logger.warning(
            f"Command exited with {result.exit_code}: {' '.join(argv)}\n"
            f"{result.stderr[-STDERR_LOG_TAIL:]}"
        )
    return result


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def _kill_process_group(proc: asyncio.subprocess.Process) -> None:
    """프로세스 그룹 전체 SIGKILL (start_new_session으로 pid == pgid)."""
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass


# =============================================================================
# Cordova CLI
# =============================================================================


@dataclass(frozen=True)
class CordovaToolchain:
    """
    Cordova CLI argv 구성 + 실행.

    command는 실행 파일 prefix. 기본 ("cordova",), 테스트에서는
    (sys.executable, "fake_cordova.py") 같은 형태로 교체.
    """

    command: tuple[str, ...] = DEFAULT_TOOLCHAIN_COMMAND
    timeouts: Mapping[str, float | None] = field(
        default_factory=lambda: dict(DEFAULT_TIMEOUTS)
    )

    def _timeout(self, key: str) -> float | None:
        return self.timeouts.get(key, DEFAULT_TIMEOUTS.get(key))

    async def create(self, project_dir: Path, package_id: str, app_name: str) -> CommandResult:
        """cordova create <path> <id> <name>"""
        return await run_command(
            [*self.command, "create", str(project_dir), package_id, app_name],
            timeout=self._timeout("create"),
        )

    async def add_platform(self, project_dir: Path, platform: str = DEFAULT_PLATFORM) -> CommandResult:
        """cordova platform add <platform> --save (프로젝트 디렉터리에서)"""
        return await run_command(
            [*self.command, "platform", "add", platform, "--save"],
            cwd=project_dir,
            timeout=self._timeout("platform_add"),
        )

    async def build(
        self,
        project_dir: Path,
        platform: str = DEFAULT_PLATFORM,
        release: bool = True,
    ) -> CommandResult:
        """cordova build <platform> [--release] (프로젝트 디렉터리에서)"""
        argv = [*self.command, "build", platform]
        if release:
            argv.append("--release")
        return await run_command(argv, cwd=project_dir, timeout=self._timeout("build"))

    async def version(self) -> CommandResult:
        """cordova --version"""
        return await run_command([*self.command, "--version"], timeout=60)
