# adapters/uart.py
import asyncio
from typing import Optional

import serial

from .base import CommunicationAdapter
from ..utils.exceptions import TransportError
from ..utils.logging import get_logger
from ..utils.retry import async_retry_with_backoff

logger = get_logger(__name__)

class UARTAdapter(CommunicationAdapter):
    """
    Line-oriented UART adapter for a tethered microcontroller.
    Blocking pyserial calls run in worker threads so the event loop
    keeps serving HTTP requests.
    """
    def __init__(self, port: str, baudrate: int = 9600, timeout: float = 1.0,
                 encoding: str = 'utf-8'):
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self.encoding = encoding
        self.serial: Optional[serial.Serial] = None
        self.is_connected = False

    @async_retry_with_backoff(max_retries=3, base_delay=2.0, exceptions=(TransportError,))
    async def connect(self) -> None:
        try:
            self.serial = await asyncio.to_thread(
                serial.Serial,
                port=self.port,
                baudrate=self.baudrate,
                timeout=self.timeout
            )
        except serial.SerialException as e:
            raise TransportError(f"Could not open serial port {self.port}: {e}")
        self.is_connected = True
        logger.info(f"Connected to UART port {self.port} at {self.baudrate} baud")

    async def disconnect(self) -> None:
        if self.serial:
            try:
                await asyncio.to_thread(self.serial.close)
                logger.info(f"Disconnected from UART port {self.port}")
            except serial.SerialException as e:
                raise TransportError(f"Error disconnecting from UART: {e}")
            finally:
                self.is_connected = False
                self.serial = None

    async def read_line(self) -> Optional[str]:
        if not self.is_connected or not self.serial:
            raise TransportError("UART not connected")
        try:
            data = await asyncio.to_thread(self.serial.readline)
        except serial.SerialException as e:
            raise TransportError(f"Failed to read from {self.port}: {e}")
        if not data:
            return None
        return data.decode(self.encoding, errors='replace').rstrip('\r\n')

    async def write_line(self, line: str) -> None:
        if not self.is_connected or not self.serial:
            raise TransportError("UART not connected")
        try:
            await asyncio.to_thread(self.serial.write, f"{line}\n".encode(self.encoding))
        except serial.SerialException as e:
            raise TransportError(f"Failed to write to {self.port}: {e}")
