import logging
import os
from pathlib import Path
from typing import List, Optional

from .base import Activator

logger = logging.getLogger(__name__)


def _link_target(link: Path) -> Path:
    target = Path(os.readlink(link))
    if not target.is_absolute():
        target = link.parent / target
    return target


class PosixActivator(Activator):
    """
    symlink based activation.

    <root>/current points at <root>/<version>/bin, and the link directory
    holds one symlink per executable in that bin directory.
    """

    def current_version(self) -> Optional[str]:
        target = self._current_target()
        if target is None:
            return None
        if not target.is_dir():
            logger.warning(f"{self.layout.current_path} points at missing {target}")
            return None
        return target.parent.name

    def _current_target(self) -> Optional[Path]:
        current = self.layout.current_path
        if not current.is_symlink():
            return None
        return _link_target(current)

    def activate(self, version: str):
        """
        switch the active version: tear down the old link farm and `current`,
        then link the new version's bin directory and each of its executables.

        raises:
            NotInstalledError: if the version directory does not exist
        """
        self.require_installed(version)
        new_bin = self.layout.bin_dir(version)

        self._teardown()

        self.layout.ensure_root()
        os.symlink(new_bin, self.layout.current_path, target_is_directory=True)
        logger.debug(f"linked {self.layout.current_path} -> {new_bin}")

        self.layout.link_dir.mkdir(parents=True, exist_ok=True)
        for link in self._link_binaries(new_bin):
            logger.debug(f"linked {link}")

    def deactivate(self):
        self._teardown()

    def _teardown(self):
        current = self.layout.current_path
        bin_dir = self._current_target()
        if bin_dir is not None:
            if bin_dir.is_dir():
                names = sorted(p.name for p in bin_dir.iterdir())
            else:
                # version deleted behind our back: find its links by target instead
                names = self._names_linked_into(bin_dir)
            for name in names:
                self._unlink_binary(self.layout.link_dir / name, bin_dir)

        if current.is_symlink():
            current.unlink()
        elif current.exists():
            raise FileExistsError(f"{current} exists and is not a symlink")

    def _names_linked_into(self, bin_dir: Path) -> List[str]:
        if not self.layout.link_dir.is_dir():
            return []
        return sorted(
            p.name for p in self.layout.link_dir.iterdir()
            if p.is_symlink() and _link_target(p).parent == bin_dir
        )

    def _unlink_binary(self, link: Path, bin_dir: Path):
        # only remove links into the bin directory being deactivated
        if not link.is_symlink():
            return
        if _link_target(link).parent == bin_dir:
            link.unlink()
        else:
            logger.debug(f"leaving {link}: points outside {bin_dir}")

    def _link_binaries(self, bin_dir: Path) -> List[Path]:
        linked = []
        if not bin_dir.is_dir():
            logger.warning(f"{bin_dir} does not exist, no executables linked")
            return linked
        for original in sorted(bin_dir.iterdir()):
            link = self.layout.link_dir / original.name
            # replace stale links; never clobber a regular file
            if link.is_symlink():
                link.unlink()
            elif link.exists():
                logger.warning(f"not linking {original.name}: {link} is not a symlink")
                continue
            os.symlink(original, link)
            linked.append(link)
        return linked
