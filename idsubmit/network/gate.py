from typing import ClassVar

from idsubmit.config.settings import Settings
from idsubmit.logging.logger import Log
from idsubmit.network.base import BaseConnectivityProbe
from idsubmit.network.probes import StaticConnectivityProbe, SystemConnectivityProbe


class NetworkGate:
    """Cheap pre-flight check before a transfer.

    Offline is a hard deny. A slow link is only a warning: the classification
    is a heuristic with frequent false positives.
    """

    SLOW_EFFECTIVE_TYPES: ClassVar[frozenset[str]] = frozenset({"slow-2g", "2g"})

    def __init__(self, probe: BaseConnectivityProbe) -> None:
        self._probe = probe

    def is_transmission_advisable(self) -> bool:
        signals = self._probe.read()
        if signals.online is False:
            Log.warning("Network reported offline, transmission not advisable")
            return False
        effective_type = (signals.effective_type or "").lower()
        if effective_type in self.SLOW_EFFECTIVE_TYPES:
            Log.warning(f"Connection looks slow ({effective_type}), upload may take a while")
        return True


class NetworkGateFactory:
    """Creates the gate with the probe named in settings."""

    PROBES: ClassVar[tuple[str, ...]] = ("system", "static")

    @classmethod
    def create(cls, settings: Settings) -> NetworkGate:
        probe_name = settings.network_probe.lower()
        if probe_name == "system":
            if settings.network_online is not None:
                probe: BaseConnectivityProbe = StaticConnectivityProbe(
                    online=settings.network_online,
                    effective_type=settings.network_effective_type,
                )
            else:
                probe = SystemConnectivityProbe(effective_type=settings.network_effective_type)
        elif probe_name == "static":
            probe = StaticConnectivityProbe(
                online=settings.network_online,
                effective_type=settings.network_effective_type,
            )
        else:
            raise ValueError(
                f"Unknown network probe '{probe_name}'. Choose from: {list(cls.PROBES)}"
            )
        return NetworkGate(probe)
