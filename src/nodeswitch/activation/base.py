from abc import ABC, abstractmethod
from typing import Optional

from ..domain.errors import NotInstalledError
from ..storage.layout import RuntimeLayout


class Activator(ABC):
    """
    switches which installed version is reachable from the search path.

    implementations own the `current` link or marker and whatever they place
    in the link directory. they are not safe to run concurrently against the
    same storage root, in-process or across processes.
    """

    def __init__(self, layout: RuntimeLayout):
        self.layout = layout

    def require_installed(self, version: str):
        if not self.layout.is_installed(version):
            raise NotInstalledError(version)

    @abstractmethod
    def activate(self, version: str):
        """Make an installed version the active one."""
        pass

    @abstractmethod
    def deactivate(self):
        """Clear the active version and everything it placed on the search path."""
        pass

    @abstractmethod
    def current_version(self) -> Optional[str]:
        """Version the active state points at, or None."""
        pass
