#
# src/vstestctl/runner/process.py
#
"""
Owns the single long-lived runner subprocess and serializes commands to it.
"""
import asyncio
import signal
from collections import deque
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from vstestctl.exceptions import RunnerError
from vstestctl.protocols import CommandChannel
from vstestctl.runner.locator import RunnerLocator
from vstestctl.telemetry import StructLogger

log: StructLogger = structlog.get_logger("runner.process")

STDERR_TAIL_LINES = 50
CLOSE_GRACE_SECONDS = 5.0

ProcessFactory = Callable[..., Awaitable[Any]]


def _describe_exit(returncode: int | None) -> dict[str, Any]:
    details: dict[str, Any] = {"exit_code": returncode}
    if returncode is not None and returncode < 0:
        try:
            details["signal"] = signal.Signals(-returncode).name
        except ValueError:
            details["signal"] = -returncode
    return details


class RunnerHandle:
    """The live runner process plus the coroutine that writes one command line to it."""

    def __init__(self, process: Any):
        self.process = process
        self.stderr_tail: deque[str] = deque(maxlen=STDERR_TAIL_LINES)
        self.tasks: set[asyncio.Task] = set()

    @property
    def pid(self) -> int | None:
        return getattr(self.process, "pid", None)

    @property
    def is_alive(self) -> bool:
        return self.process.returncode is None

    async def write(self, line: str) -> None:
        stdin = self.process.stdin
        stdin.write(f"{line}\n".encode("utf-8"))
        await stdin.drain()

    def start_monitoring(self) -> None:
        for coro in (self._pump_stdout(), self._pump_stderr(), self._watch_exit()):
            task = asyncio.create_task(coro)
            self.tasks.add(task)
            task.add_done_callback(self.tasks.discard)

    async def _pump_stdout(self) -> None:
        if self.process.stdout is None:
            return
        async for raw in self.process.stdout:
            log.debug("runner stdout", pid=self.pid, line=raw.decode("utf-8", errors="replace").rstrip())

    async def _pump_stderr(self) -> None:
        if self.process.stderr is None:
            return
        async for raw in self.process.stderr:
            line = raw.decode("utf-8", errors="replace").rstrip()
            self.stderr_tail.append(line)
            log.debug("runner stderr", pid=self.pid, line=line)

    async def _watch_exit(self) -> None:
        returncode = await self.process.wait()
        # Let the pumps drain whatever the process printed last.
        await asyncio.sleep(0)
        log.warning(
            "Runner process exited",
            pid=self.pid,
            stderr="\n".join(self.stderr_tail),
            emoji_key="runner",
            **_describe_exit(returncode),
        )


class RunnerProcessManager(CommandChannel):
    """
    Lazily starts the runner on first use and writes command lines to its stdin.

    Claiming the runner, starting it if needed and writing the line all happen
    under one exclusive lock, so concurrent callers never interleave bytes and
    their lines land in the order they reached the lock. The lock is released
    as soon as the line is written; waiting for results is the caller's job.
    """

    def __init__(
        self,
        locator: RunnerLocator,
        restart_on_exit: bool = True,
        process_factory: ProcessFactory = asyncio.create_subprocess_exec,
    ):
        self.locator = locator
        self.restart_on_exit = restart_on_exit
        self._process_factory = process_factory
        self._handle: RunnerHandle | None = None
        self._lock = asyncio.Lock()
        self.start_count = 0

    @property
    def handle(self) -> RunnerHandle | None:
        return self._handle

    @property
    def is_running(self) -> bool:
        return self._handle is not None and self._handle.is_alive

    async def invoke(self, command: str) -> None:
        """
        Writes `command` as one line to the runner.

        Raises RunnerError when the runner cannot be located or started.
        """
        async with self._lock:
            handle = await self._ensure_handle()
            log.debug("Submitting runner command", pid=handle.pid, command=command)
            try:
                await handle.write(command)
            except ConnectionError as e:
                log.warning(
                    "Runner is not accepting commands",
                    pid=handle.pid,
                    command=command,
                    error=str(e),
                    **_describe_exit(handle.process.returncode),
                )

    async def close(self) -> None:
        """Closes the runner's stdin and waits for it, terminating it if it lingers."""
        async with self._lock:
            handle, self._handle = self._handle, None
            if handle is None:
                return
            if handle.is_alive:
                log.debug("Stopping runner process", pid=handle.pid)
                stdin = handle.process.stdin
                if stdin is not None:
                    stdin.close()
                try:
                    await asyncio.wait_for(handle.process.wait(), timeout=CLOSE_GRACE_SECONDS)
                except TimeoutError:
                    log.warning("Runner did not exit after stdin closed, terminating", pid=handle.pid)
                    handle.process.terminate()
                    await handle.process.wait()
            for task in list(handle.tasks):
                task.cancel()
            await asyncio.gather(*handle.tasks, return_exceptions=True)

    async def _ensure_handle(self) -> RunnerHandle:
        handle = self._handle
        if handle is not None:
            if handle.is_alive or not self.restart_on_exit:
                return handle
            log.warning("Runner process is dead, restarting", pid=handle.pid, **_describe_exit(handle.process.returncode))

        spec = await self.locator.locate()
        try:
            process = await self._process_factory(
                *spec.command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            log.error("Failed to spawn runner process", command=" ".join(spec.command), error=str(e))
            raise RunnerError(f"Failed to spawn runner process: {e}") from e

        handle = RunnerHandle(process)
        handle.start_monitoring()
        self._handle = handle
        self.start_count += 1
        log.info("Spawned runner process", pid=handle.pid, emoji_key="runner")
        return handle

# 🔼⚙️
