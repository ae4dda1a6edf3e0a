from typing import Optional
import threading

from ..utils.logging import get_logger
from ..utils.exceptions import InvalidCommand

logger = get_logger(__name__)


class CommandMailbox:
    """
    Single-slot holder for the next command the device should run.

    A new command replaces whatever is pending; nothing is queued. The
    first poll that sees a command takes it and leaves the slot empty.
    """
    def __init__(self):
        self._pending: Optional[str] = None
        self._lock = threading.Lock()

    def enqueue(self, command: str) -> None:
        if not command or not isinstance(command, str):
            raise InvalidCommand("Command is required")
        with self._lock:
            replaced = self._pending
            self._pending = command
        if replaced is not None:
            logger.info(f"Command {replaced!r} replaced by {command!r} before delivery")
        logger.info(f"Command queued for device: {command}")

    def poll(self) -> Optional[str]:
        with self._lock:
            command = self._pending
            if command is None:
                return None
            self._pending = None
        logger.info(f"Sending command to device: {command}")
        return command

    @property
    def pending(self) -> Optional[str]:
        with self._lock:
            return self._pending
