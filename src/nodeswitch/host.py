"""detection of the operating system and architecture labels used by the mirror."""

import platform
from enum import Enum
from typing import Optional, Tuple

import semantic_version
from pydantic import BaseModel, ConfigDict

RUNTIME_NAME = "node"

# the mirror stopped publishing 32-bit linux/macos builds at this release
X86_POSIX_CUTOFF = semantic_version.Version("10.0.0")


class OsLabel(str, Enum):
    WIN = "win"
    DARWIN = "darwin"
    LINUX = "linux"
    UNKNOWN = "unknown"


class ArchLabel(str, Enum):
    X86 = "x86"
    X64 = "x64"
    UNKNOWN = "unknown"


_OS_MAP = {
    "windows": OsLabel.WIN,
    "darwin": OsLabel.DARWIN,
    "linux": OsLabel.LINUX,
}

# the index tags macOS builds "osx" while archive names say "darwin"
_INDEX_OS = {OsLabel.DARWIN: "osx"}

_ARCH_MAP = {
    "x86_64": ArchLabel.X64,
    "amd64": ArchLabel.X64,
    "x64": ArchLabel.X64,
    "i386": ArchLabel.X86,
    "i486": ArchLabel.X86,
    "i586": ArchLabel.X86,
    "i686": ArchLabel.X86,
    "x86": ArchLabel.X86,
}


class Host(BaseModel):
    """the platform nodeswitch installs for."""
    model_config = ConfigDict(frozen=True)

    os: OsLabel
    arch: ArchLabel

    @property
    def is_windows(self) -> bool:
        return self.os == OsLabel.WIN

    @property
    def is_posix(self) -> bool:
        return self.os in (OsLabel.DARWIN, OsLabel.LINUX)

    @property
    def is_supported(self) -> bool:
        return self.os != OsLabel.UNKNOWN and self.arch != ArchLabel.UNKNOWN

    @property
    def archive_ext(self) -> str:
        return "zip" if self.is_windows else "tar.xz"

    @property
    def index_platform(self) -> Tuple[str, str]:
        """the (platform, arch) pair the version index lists builds under, e.g. ("osx", "x64")."""
        return _INDEX_OS.get(self.os, self.os.value), self.arch.value

    def artifact_stem(self, version: str) -> str:
        """name of the top-level directory inside the release archive."""
        return f"{RUNTIME_NAME}-v{version}-{self.os.value}-{self.arch.value}"

    def artifact_name(self, version: str) -> str:
        return f"{self.artifact_stem(version)}.{self.archive_ext}"

    def eligibility_issue(self, version: semantic_version.Version) -> Optional[str]:
        """
        explain why a release cannot run on this host.

        returns:
            None when the release is eligible, otherwise a short reason
        """
        if self.arch == ArchLabel.X86 and self.os != OsLabel.WIN and version >= X86_POSIX_CUTOFF:
            return f"32-bit builds for macOS and Linux stop before {X86_POSIX_CUTOFF}"
        return None


def detect_host() -> Host:
    system = platform.system().lower()
    machine = platform.machine().lower()
    return Host(
        os=_OS_MAP.get(system, OsLabel.UNKNOWN),
        arch=_ARCH_MAP.get(machine, ArchLabel.UNKNOWN),
    )
