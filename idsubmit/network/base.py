from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ConnectivitySignals:
    """What the runtime reports about the link. ``None`` means unknown."""

    online: bool | None = None
    effective_type: str | None = None


class BaseConnectivityProbe(ABC):
    """Contract for connectivity signal sources."""

    @abstractmethod
    def read(self) -> ConnectivitySignals:
        """Return current signals without blocking on the network."""
