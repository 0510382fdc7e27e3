# src/vstestctl/notifier.py

"""
Delivers user-actionable messages (toolchain failures) once per distinct text.
"""

from collections.abc import Callable

import structlog

from vstestctl.telemetry import StructLogger

log: StructLogger = structlog.get_logger("notifier")

NotificationSink = Callable[[str, str], None]


class UserNotifier:
    """A one-shot bridge from components to whatever surface shows messages to the user."""

    def __init__(self, sink: NotificationSink | None = None):
        self.sink = sink
        self._sent: set[str] = set()

    def notify(self, level: str, message: str) -> bool:
        """
        Sends `message` unless an identical one was already sent.

        Returns True when the message was delivered.
        """
        if message in self._sent:
            log.debug("Suppressing repeated notification", message=message)
            return False
        self._sent.add(message)
        log.debug("Delivering notification", level=level.upper(), message=message)

        if self.sink is None:
            return True
        try:
            self.sink(level.upper(), message)
        except Exception as e:
            # The sink must never take the caller down with it.
            log.warning("Notification sink failed", error=str(e), exc_info=False)
        return True

    def reset(self) -> None:
        self._sent.clear()

# 🔼⚙️
