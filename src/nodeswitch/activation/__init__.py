"""platform specific switching of the active runtime version."""
from ..host import Host
from ..storage.layout import RuntimeLayout
from .base import Activator
from .posix import PosixActivator
from .windows import WindowsActivator


def get_activator(layout: RuntimeLayout, host: Host) -> Activator:
    """pick the activation strategy for the host once, at startup."""
    if host.is_windows:
        return WindowsActivator(layout)
    return PosixActivator(layout)


__all__ = [
    "Activator",
    "PosixActivator",
    "WindowsActivator",
    "get_activator",
]
