from typing import Any, Dict, List, Optional
import asyncio
import traceback

from ..adapters.base import CommunicationAdapter
from ..adapters.uart import UARTAdapter
from ..handlers.serial_handlers import parse_device_line
from ..models.things import Reading
from ..utils.exceptions import StoreError, TransportError
from ..utils.logging import get_logger
from .telemetry_service import TelemetryService

logger = get_logger(__name__)


class SerialBridge:
    """
    Connects a serially tethered device to the telemetry service.

    Reading lines from the device are parsed and persisted, either as
    they arrive or, when save_interval is set, only the most recent one
    per interval. Every parsed line counts towards liveness either way.
    Pending mailbox commands are written back to the device as bare lines.
    """
    def __init__(self, config: Dict[str, Any], service: TelemetryService,
                 adapter: Optional[CommunicationAdapter] = None):
        self.config = config
        self.service = service
        self.adapter = adapter or UARTAdapter(
            port=config.get('port', '/dev/ttyUSB0'),
            baudrate=config.get('baudrate', 9600)
        )
        self.save_interval = config.get('save_interval', 0)
        self.command_interval = config.get('command_interval', 1.0)
        self.error_retry_interval = config.get('error_retry_interval', 5.0)
        self.is_running = False
        self._latest_unsaved: Optional[Reading] = None
        self._tasks: List[asyncio.Task] = []

    async def initialize(self) -> None:
        logger.info("Initializing Serial Bridge")
        await self.adapter.connect()

    async def handle_line(self, line: str) -> Optional[Reading]:
        reading = parse_device_line(line)
        if reading is None:
            return None
        if self.save_interval > 0:
            self.service.note_reading(reading)
            self._latest_unsaved = reading
            logger.debug(f"Latest reading buffered: {reading.formatted}")
            return reading
        return await self.service.store_reading(reading)

    async def flush(self) -> Optional[Reading]:
        """Persist the buffered reading, if any"""
        reading, self._latest_unsaved = self._latest_unsaved, None
        if reading is None:
            return None
        # Already counted when the line arrived
        return await self.service.persist_reading(reading)

    async def deliver_command(self) -> Optional[str]:
        command = self.service.mailbox.poll()
        if command is None:
            return None
        try:
            await self.adapter.write_line(command)
        except TransportError:
            # The slot is already drained; delivery is best effort
            logger.error(f"Failed to send command {command!r} to device: {traceback.format_exc()}")
            return None
        self.service.tracker.record_command_delivered()
        return command

    async def _read_loop(self) -> None:
        while self.is_running:
            try:
                line = await self.adapter.read_line()
                if line:
                    await self.handle_line(line)
            except TransportError as e:
                logger.error(f"Serial read failed: {e}")
                await asyncio.sleep(self.error_retry_interval)
            except StoreError as e:
                logger.error(f"Failed to store serial reading: {e}")

    async def _command_loop(self) -> None:
        while self.is_running:
            await self.deliver_command()
            await asyncio.sleep(self.command_interval)

    async def _save_loop(self) -> None:
        while self.is_running:
            await asyncio.sleep(self.save_interval)
            try:
                reading = await self.flush()
                if reading:
                    logger.info(f"Saved reading, next save in {self.save_interval}s")
            except StoreError as e:
                logger.error(f"Failed to save buffered reading: {e}")

    async def start(self) -> None:
        self.is_running = True
        self._tasks = [
            asyncio.create_task(self._read_loop()),
            asyncio.create_task(self._command_loop()),
        ]
        if self.save_interval > 0:
            self._tasks.append(asyncio.create_task(self._save_loop()))
        try:
            await asyncio.gather(*self._tasks)
        except asyncio.CancelledError:
            pass

    async def stop(self) -> None:
        self.is_running = False
        for task in self._tasks:
            task.cancel()
        try:
            await self.adapter.disconnect()
        except TransportError as e:
            logger.error(f"Error closing serial transport: {e}")
        logger.info("Serial Bridge stopped")
