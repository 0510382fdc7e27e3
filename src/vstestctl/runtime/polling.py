#
# src/vstestctl/runtime/polling.py
#
"""
Bounded poll-wait for files the runner writes asynchronously.
"""
import asyncio
import os

import structlog

from vstestctl.telemetry import StructLogger

log: StructLogger = structlog.get_logger("runtime.polling")

DEFAULT_INTERVAL = 0.025  # seconds


def _has_content(path: str) -> bool:
    try:
        return os.path.getsize(path) > 0
    except OSError:
        return False


def _read_text(path: str) -> str:
    with open(path, encoding="utf-8") as f:
        return f.read()


class FilePoller:
    """
    Waits for files to exist with content, reading them under a shared gate.

    `wait_for_file` holds no lock while sleeping, so any number of waits on
    distinct paths proceed independently; only the final read is serialized.
    It creates no background tasks, so cancelling the awaiting task (or
    wrapping it in `asyncio.wait_for`) stops the wait cleanly.
    """

    def __init__(self, interval: float = DEFAULT_INTERVAL):
        self.interval = interval
        self._read_lock = asyncio.Lock()

    async def wait_for_file(self, path: str, timeout: float) -> str | None:
        """
        Returns the content of `path` once it is non-empty, or None after `timeout`
        seconds or when the file cannot be decoded as UTF-8.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        wait_log = log.bind(path=path, timeout=timeout)
        wait_log.debug("Waiting for file")

        while True:
            if _has_content(path):
                async with self._read_lock:
                    try:
                        content = await asyncio.to_thread(_read_text, path)
                    except OSError as e:
                        wait_log.debug("File vanished before it could be read", error=str(e))
                        content = ""
                    except UnicodeDecodeError as e:
                        wait_log.error("File is not valid UTF-8, treating it as unreadable", error=str(e))
                        return None
                if content:
                    wait_log.debug("File populated", size=len(content))
                    return content
            if loop.time() >= deadline:
                wait_log.warning("Timed out waiting for file", emoji_key="timeout")
                return None
            await asyncio.sleep(self.interval)

# 🔼⚙️
