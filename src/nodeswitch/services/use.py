import logging
from typing import Optional

from ..activation.base import Activator
from ..resolution.specifier import parse_exact

logger = logging.getLogger(__name__)


class UseService:
    """switches the active version."""

    def __init__(self, activator: Activator):
        self.activator = activator

    def use(self, version: str) -> str:
        """
        activate an installed version.

        args:
            version: exact version, with or without a leading 'v'

        returns:
            the normalized version that is now active

        raises:
            SpecifierError: if the input is not an exact version
            NotInstalledError: if the version is not installed
        """
        target = parse_exact(version).value
        previous = self.activator.current_version()
        self.activator.activate(target)
        logger.debug(f"active version {previous or 'unset'} -> {target}")
        return target

    def current(self) -> Optional[str]:
        return self.activator.current_version()
