"""shared fixtures: fake release archives and an in-memory version index."""
import io
import sys
import tarfile
import zipfile
from pathlib import Path
from typing import Dict, List, Optional

import httpx
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from nodeswitch.domain.models import CatalogEntry
from nodeswitch.host import ArchLabel, Host, OsLabel
from nodeswitch.registry.client import IndexClient
from nodeswitch.storage.layout import RuntimeLayout

BINARIES = ("node", "npm", "npx")
DEFAULT_FILES = ["linux-x64", "linux-x86", "osx-x64-tar", "win-x64-zip", "win-x86-zip"]


def build_tar_xz(stem: str, binaries=BINARIES) -> bytes:
    """a release tarball laid out like the real ones: <stem>/bin/<binary>."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:xz") as tar:
        for name in (f"{stem}", f"{stem}/bin"):
            info = tarfile.TarInfo(name)
            info.type = tarfile.DIRTYPE
            info.mode = 0o755
            tar.addfile(info)
        for binary in binaries:
            data = f"#!/bin/sh\necho {stem} {binary}\n".encode()
            info = tarfile.TarInfo(f"{stem}/bin/{binary}")
            info.size = len(data)
            info.mode = 0o755
            tar.addfile(info, io.BytesIO(data))
        readme = b"release notes"
        info = tarfile.TarInfo(f"{stem}/README.md")
        info.size = len(readme)
        tar.addfile(info, io.BytesIO(readme))
    return buf.getvalue()


def build_zip(stem: str) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr(f"{stem}/node.exe", f"binary for {stem}")
        zf.writestr(f"{stem}/npm.cmd", "@echo off")
    return buf.getvalue()


class FakeIndex(IndexClient):
    """serves a fixed catalog and generated archives, recording every request."""

    def __init__(
        self,
        host: Host,
        versions: List[str],
        lts: Optional[Dict[str, str]] = None,
        files: List[str] = DEFAULT_FILES,
    ):
        self.host = host
        self.catalog = [
            CatalogEntry(version=f"v{v}", lts=(lts or {}).get(v, False), files=files)
            for v in versions
        ]
        self.failing: Dict[str, Exception] = {}
        self.corrupt = set()
        self.catalog_calls = 0
        self.downloads: List[str] = []

    def fetch_catalog(self):
        self.catalog_calls += 1
        return list(self.catalog)

    def artifact_url(self, version, artifact_name):
        return f"https://mirror.test/v{version}/{artifact_name}"

    def download_artifact(self, version, artifact_name, target_path, progress=None, task_id=None):
        self.downloads.append(version)
        if version in self.failing:
            raise self.failing[version]
        if version in self.corrupt:
            target_path.write_bytes(b"not an archive")
            return target_path
        stem = self.host.artifact_stem(version)
        if artifact_name.endswith(".zip"):
            target_path.write_bytes(build_zip(stem))
        else:
            target_path.write_bytes(build_tar_xz(stem))
        return target_path


def http_404(url: str) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", url)
    response = httpx.Response(404, request=request)
    return httpx.HTTPStatusError("not found", request=request, response=response)


@pytest.fixture
def linux_host():
    return Host(os=OsLabel.LINUX, arch=ArchLabel.X64)


@pytest.fixture
def layout(tmp_path):
    return RuntimeLayout(tmp_path / "data", tmp_path / "bin")


def make_installed(layout: RuntimeLayout, version: str, binaries=BINARIES, windows: bool = False) -> Path:
    """create a version directory without going through the installer."""
    version_dir = layout.version_dir(version)
    if windows:
        version_dir.mkdir(parents=True)
        (version_dir / "node.exe").write_text(f"node {version}")
        return version_dir
    bin_dir = version_dir / "bin"
    bin_dir.mkdir(parents=True)
    for binary in binaries:
        (bin_dir / binary).write_text(f"{binary} {version}")
    return version_dir
