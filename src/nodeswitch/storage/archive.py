"""unpacking of downloaded release archives."""

import logging
import tarfile
import zipfile
from pathlib import Path

logger = logging.getLogger(__name__)


class ArchiveError(Exception):
    """raised when a release archive cannot be unpacked."""
    pass


def _check_member(target_dir: Path, name: str):
    destination = (target_dir / name).resolve()
    if destination != target_dir and target_dir not in destination.parents:
        raise ArchiveError(f"archive member escapes target directory: {name}")


def unpack_tar_xz(archive_path: Path, target_dir: Path):
    try:
        with tarfile.open(archive_path, "r:xz") as tar:
            # the data filter rejects absolute paths, traversal and device files
            tar.extractall(target_dir, filter="data")
    except (tarfile.TarError, EOFError) as e:
        raise ArchiveError(f"corrupt archive {archive_path.name}: {e}") from e


def unpack_zip(archive_path: Path, target_dir: Path):
    try:
        with zipfile.ZipFile(archive_path) as zf:
            for name in zf.namelist():
                _check_member(target_dir, name)
            zf.extractall(target_dir)
    except zipfile.BadZipFile as e:
        raise ArchiveError(f"corrupt archive {archive_path.name}: {e}") from e


def unpack(archive_path: Path, target_dir: Path, expected_root: str) -> Path:
    """
    unpack a release archive and return its top-level directory.

    args:
        archive_path: downloaded .tar.xz or .zip file
        target_dir: empty directory to unpack into
        expected_root: directory name the release archive is built around

    raises:
        ArchiveError: if the archive is corrupt, unsafe or laid out unexpectedly
    """
    target_dir = target_dir.resolve()
    name = archive_path.name
    if name.endswith(".tar.xz"):
        unpack_tar_xz(archive_path, target_dir)
    elif name.endswith(".zip"):
        unpack_zip(archive_path, target_dir)
    else:
        raise ArchiveError(f"unsupported archive type: {name}")

    root = target_dir / expected_root
    if root.is_dir():
        return root

    # fall back to a single top-level directory with a different name
    entries = [p for p in target_dir.iterdir()]
    if len(entries) == 1 and entries[0].is_dir():
        logger.warning(f"{name} unpacked to {entries[0].name}, expected {expected_root}")
        return entries[0]
    raise ArchiveError(f"{name} does not contain a single top-level directory")
