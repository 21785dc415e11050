import logging
import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Callable, Optional

from .base import Activator
from ..storage.layout import RuntimeLayout

logger = logging.getLogger(__name__)

EXECUTABLE_NAME = "node.exe"


def add_to_user_path(directory: Path):
    """append a directory to the user-level PATH via PowerShell, unless it is already there."""
    # single quotes are doubled inside a powershell single-quoted string
    quoted = str(directory).replace("'", "''")
    command = (
        "$p = [Environment]::GetEnvironmentVariable('Path', 'User'); "
        f"if (($p -split ';') -notcontains '{quoted}') {{ "
        f"[Environment]::SetEnvironmentVariable('Path', $p + ';{quoted}', 'User') }}"
    )
    subprocess.run(["powershell", "-NoProfile", "-Command", command], check=True, capture_output=True)


class WindowsActivator(Activator):
    """
    copy based activation for platforms without usable symlinks.

    the selected version's node.exe is copied into the link directory and
    the version string is written to the `current` marker file.
    """

    def __init__(
        self,
        layout: RuntimeLayout,
        path_updater: Optional[Callable[[Path], None]] = add_to_user_path,
    ):
        super().__init__(layout)
        self.path_updater = path_updater
        # set when activate() had to put the link directory on the user PATH
        self.path_updated = False

    @property
    def executable_path(self) -> Path:
        return self.layout.link_dir / EXECUTABLE_NAME

    def current_version(self) -> Optional[str]:
        marker = self.layout.current_path
        if not marker.is_file():
            return None
        version = marker.read_text(encoding="utf-8").strip()
        return version or None

    def activate(self, version: str):
        """
        raises:
            NotInstalledError: if the version directory does not exist
            FileNotFoundError: if the version has no node.exe
        """
        self.require_installed(version)
        source = self.layout.version_dir(version) / EXECUTABLE_NAME
        if not source.is_file():
            raise FileNotFoundError(f"{source} not found; the installation may be corrupted")

        self.layout.link_dir.mkdir(parents=True, exist_ok=True)

        # copy next to the target first so a failed copy leaves the old executable in place
        fd, tmp_name = tempfile.mkstemp(prefix=".node-", suffix=".exe", dir=self.layout.link_dir)
        os.close(fd)
        try:
            shutil.copy2(source, tmp_name)
            os.replace(tmp_name, self.executable_path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

        self.layout.ensure_root()
        self.layout.current_path.write_text(version, encoding="utf-8")
        logger.debug(f"copied {source} to {self.executable_path}")

        self._ensure_on_path()

    def deactivate(self):
        if self.executable_path.exists():
            self.executable_path.unlink()
        if self.layout.current_path.exists():
            self.layout.current_path.unlink()

    def _ensure_on_path(self):
        link_dir = str(self.layout.link_dir)
        entries = [p.rstrip("\\/").lower() for p in os.environ.get("PATH", "").split(os.pathsep)]
        if link_dir.rstrip("\\/").lower() in entries or self.path_updater is None:
            return
        logger.debug(f"adding {link_dir} to the user PATH")
        try:
            self.path_updater(self.layout.link_dir)
        except (subprocess.SubprocessError, OSError) as e:
            logger.warning(f"could not add {link_dir} to the user PATH ({e}); add it manually")
            return
        self.path_updated = True
