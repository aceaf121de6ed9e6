from pathlib import Path

from idsubmit.network.base import BaseConnectivityProbe, ConnectivitySignals


class StaticConnectivityProbe(BaseConnectivityProbe):
    """Reports fixed signals (configuration overrides, tests)."""

    def __init__(self, online: bool | None = None, effective_type: str | None = None) -> None:
        self._signals = ConnectivitySignals(online=online, effective_type=effective_type)

    def read(self) -> ConnectivitySignals:
        return self._signals


class SystemConnectivityProbe(BaseConnectivityProbe):
    """Reads interface state from sysfs; no packets are sent.

    Online when any non-loopback interface reports ``up``, offline when
    interfaces are listed but none is up, unknown when sysfs is unavailable.
    """

    SYS_CLASS_NET = Path("/sys/class/net")

    def __init__(
        self,
        effective_type: str | None = None,
        sys_class_net: Path | None = None,
    ) -> None:
        self._effective_type = effective_type
        self._root = sys_class_net if sys_class_net is not None else self.SYS_CLASS_NET

    def read(self) -> ConnectivitySignals:
        return ConnectivitySignals(online=self._online(), effective_type=self._effective_type)

    def _online(self) -> bool | None:
        if not self._root.is_dir():
            return None
        interfaces = [entry for entry in self._root.iterdir() if entry.name != "lo"]
        if not interfaces:
            return None
        for interface in interfaces:
            try:
                state = (interface / "operstate").read_text().strip().lower()
            except OSError:
                continue
            if state == "up":
                return True
        return False
