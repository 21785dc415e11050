import logging
import shutil
from typing import List

from ..activation.base import Activator
from ..domain.errors import RemovalError
from ..domain.models import RemoveResult, RemoveStatus
from ..resolution.specifier import parse_exact
from ..storage.layout import RuntimeLayout

logger = logging.getLogger(__name__)


class RemoveService:
    """handles removal of installed versions, including the active one."""

    def __init__(self, layout: RuntimeLayout, activator: Activator):
        self.layout = layout
        self.activator = activator

    def remove(self, versions: List[str]) -> List[RemoveResult]:
        """
        remove installed versions.

        every specifier is validated before anything is deleted. a version
        that is not installed or fails to delete is reported in its result
        and does not stop the remaining versions.

        args:
            versions: exact versions to remove

        raises:
            SpecifierError: if any requested version is malformed
        """
        # 1. validate the whole batch before touching the filesystem
        targets = list(dict.fromkeys(parse_exact(v).value for v in versions))

        # 2. read active state once; removal below is the only writer
        active = self.activator.current_version()

        results = []
        for version in targets:
            if not self.layout.is_installed(version):
                results.append(RemoveResult(
                    version=version,
                    status=RemoveStatus.NOT_INSTALLED,
                    reason="not installed",
                ))
                continue

            was_active = version == active
            try:
                self.remove_version(version, was_active)
            except RemovalError as e:
                logger.debug(f"removal of {version} failed: {e.reason}")
                results.append(RemoveResult(
                    version=version,
                    status=RemoveStatus.FAILED,
                    reason=e.reason,
                    was_active=was_active,
                ))
                continue

            if was_active:
                active = None
            results.append(RemoveResult(version=version, status=RemoveStatus.REMOVED, was_active=was_active))

        return results

    def remove_version(self, version: str, is_active: bool):
        """
        delete one version directory, clearing the active state first when it points here.

        raises:
            RemovalError: if the active state or the directory cannot be removed
        """
        if is_active:
            try:
                self.activator.deactivate()
            except OSError as e:
                # keep the directory so the active link is never left dangling
                raise RemovalError(version, f"could not clear active version: {e}") from e
            logger.debug(f"cleared active version {version}")

        version_dir = self.layout.version_dir(version)
        try:
            shutil.rmtree(version_dir)
        except OSError as e:
            raise RemovalError(version, f"could not delete {version_dir}: {e.strerror or e}") from e
        logger.debug(f"deleted {version_dir}")
