import tempfile
from pathlib import Path
from typing import List

import semantic_version

from ..host import RUNTIME_NAME

CURRENT_NAME = "current"
TEMP_PREFIX = ".tmp-"


def _sort_key(name: str):
    try:
        return (0, semantic_version.Version(name))
    except ValueError:
        return (1, name)


class RuntimeLayout:
    """
    on-disk layout of installed versions.

    <data_dir>/<runtime>/<version>/   one directory per installed version
    <data_dir>/<runtime>/current      active version link (posix) or marker (windows)
    <link_dir>/                       per-binary links or the copied executable
    """

    def __init__(self, data_dir: Path, link_dir: Path, runtime: str = RUNTIME_NAME):
        # links are created with these paths as targets, so they must not be relative
        self.data_dir = Path(data_dir).expanduser().absolute()
        self.link_dir = Path(link_dir).expanduser().absolute()
        self.runtime = runtime
        self.root = self.data_dir / runtime

    @property
    def current_path(self) -> Path:
        return self.root / CURRENT_NAME

    def ensure_root(self) -> Path:
        self.root.mkdir(parents=True, exist_ok=True)
        return self.root

    def version_dir(self, version: str) -> Path:
        return self.root / version

    def bin_dir(self, version: str) -> Path:
        return self.version_dir(version) / "bin"

    def is_installed(self, version: str) -> bool:
        return self.version_dir(version).is_dir()

    def installed_versions(self) -> List[str]:
        """names of installed version directories, oldest first."""
        if not self.root.is_dir():
            return []
        names = []
        for entry in self.root.iterdir():
            if entry.name == CURRENT_NAME or entry.name.startswith("."):
                continue
            if entry.is_symlink() or not entry.is_dir():
                continue
            names.append(entry.name)
        return sorted(names, key=_sort_key)

    def make_staging_dir(self, version: str) -> Path:
        """private directory on the same filesystem as the final install path."""
        self.ensure_root()
        return Path(tempfile.mkdtemp(prefix=f"{TEMP_PREFIX}{version}-", dir=self.root))
