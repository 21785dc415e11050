from enum import Enum
from typing import List, Optional, Set, Tuple, Union

import semantic_version
from pydantic import BaseModel, ConfigDict, Field, field_validator


def normalize_version(value: str) -> str:
    """strip surrounding whitespace and the leading 'v' the index uses."""
    value = value.strip()
    if value[:1] in ("v", "V"):
        value = value[1:]
    return value


class CatalogEntry(BaseModel):
    """one release from the remote version index."""
    model_config = ConfigDict(frozen=True)

    version: str
    lts: Optional[str] = None
    files: List[str] = Field(default_factory=list)

    @field_validator("version", mode="before")
    @classmethod
    def _parse_version(cls, value):
        if not isinstance(value, str):
            raise ValueError("version must be a string")
        value = normalize_version(value)
        # raises ValueError for anything that isn't strict semver
        semantic_version.Version(value)
        return value

    @field_validator("lts", mode="before")
    @classmethod
    def _normalize_lts(cls, value: Union[bool, str, None]) -> Optional[str]:
        # the index sends `false` for non-lts releases and the codename otherwise
        if value is None or value is False:
            return None
        if value is True:
            raise ValueError("lts must be false or a codename")
        return value

    @property
    def semver(self) -> semantic_version.Version:
        return semantic_version.Version(self.version)

    @property
    def artifacts(self) -> Set[Tuple[str, str]]:
        """(platform, arch) pairs published for this release, e.g. ("linux", "x64")."""
        pairs = set()
        for tag in self.files:
            parts = tag.split("-")
            if len(parts) >= 2:
                pairs.add((parts[0], parts[1]))
        return pairs


class SpecifierKind(str, Enum):
    EXACT = "exact"
    RANGE = "range"


class VersionSpecifier(BaseModel):
    """a version request as typed by the user."""
    model_config = ConfigDict(frozen=True)

    raw: str
    kind: SpecifierKind
    # normalized form: the bare version for exact specifiers, the expression for ranges
    value: str

    @property
    def version(self) -> semantic_version.Version:
        return semantic_version.Version(self.value)

    @property
    def range(self) -> semantic_version.NpmSpec:
        return semantic_version.NpmSpec(self.value)


class SkippedVersion(BaseModel):
    spec: str
    version: str
    reason: str


class Resolution(BaseModel):
    """concrete versions chosen for a batch of specifiers."""
    versions: List[str] = Field(default_factory=list)
    skipped: List[SkippedVersion] = Field(default_factory=list)


class InstallStatus(str, Enum):
    ALREADY_INSTALLED = "already_installed"
    INSTALLED = "installed"
    FAILED = "failed"


class InstallResult(BaseModel):
    version: str
    status: InstallStatus
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status != InstallStatus.FAILED


class RemoveStatus(str, Enum):
    REMOVED = "removed"
    NOT_INSTALLED = "not_installed"
    FAILED = "failed"


class RemoveResult(BaseModel):
    version: str
    status: RemoveStatus
    reason: Optional[str] = None
    was_active: bool = False

    @property
    def ok(self) -> bool:
        return self.status == RemoveStatus.REMOVED
