# Abstract base class for device transports


from abc import ABC, abstractmethod
from typing import Optional


class CommunicationAdapter(ABC):
    @abstractmethod
    async def connect(self) -> None:
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        pass

    @abstractmethod
    async def read_line(self) -> Optional[str]:
        """Return the next line from the device, or None on read timeout"""
        pass

    @abstractmethod
    async def write_line(self, line: str) -> None:
        pass
