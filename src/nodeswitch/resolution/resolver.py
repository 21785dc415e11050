import logging
from typing import Dict, Iterable, List, Union

import semantic_version

from ..domain.errors import NoMatchError, PlatformEligibilityError
from ..domain.models import (
    CatalogEntry,
    Resolution,
    SkippedVersion,
    SpecifierKind,
    VersionSpecifier,
)
from ..host import Host
from .specifier import parse_specifier

logger = logging.getLogger(__name__)


class Resolver:
    """turns version specifiers into concrete catalog versions for one host."""

    def __init__(self, host: Host):
        self.host = host

    def check_eligible(self, version: semantic_version.Version):
        """
        raises:
            PlatformEligibilityError: if the host cannot run this release
        """
        issue = self.host.eligibility_issue(version)
        if issue:
            raise PlatformEligibilityError(str(version), issue)

    def resolve(
        self,
        specifiers: Iterable[Union[str, VersionSpecifier]],
        catalog: List[CatalogEntry],
    ) -> Resolution:
        """
        resolve every specifier against the catalog.

        args:
            specifiers: raw strings or already parsed specifiers
            catalog: releases from the version index, in any order

        returns:
            deduplicated versions, oldest first, plus the specifiers skipped
            because the host cannot run the release they name

        raises:
            SpecifierError: if any input is malformed (checked before matching)
            NoMatchError: if an exact version is absent or a range matches nothing eligible
        """
        parsed = [s if isinstance(s, VersionSpecifier) else parse_specifier(s) for s in specifiers]

        # index by parsed version; the index order is release order but isn't relied on
        available: Dict[semantic_version.Version, CatalogEntry] = {e.semver: e for e in catalog}
        eligible = []
        ineligible = set()
        for version in available:
            if self.host.eligibility_issue(version):
                ineligible.add(version)
            else:
                eligible.append(version)

        chosen = set()
        skipped = []
        for spec in parsed:
            if spec.kind == SpecifierKind.EXACT:
                version = spec.version
                try:
                    self.check_eligible(version)
                except PlatformEligibilityError as e:
                    logger.warning(str(e))
                    skipped.append(SkippedVersion(spec=spec.raw, version=e.version, reason=e.reason))
                    continue
                if version not in available:
                    raise NoMatchError(spec.raw)
                chosen.add(version)
            else:
                npm_range = spec.range
                best = npm_range.select(eligible)
                if best is None:
                    excluded = [v for v in ineligible if npm_range.match(v)]
                    if excluded:
                        raise NoMatchError(spec.raw, self.host.eligibility_issue(max(excluded)))
                    raise NoMatchError(spec.raw)
                higher = [v for v in ineligible if v > best and npm_range.match(v)]
                if higher:
                    logger.warning(
                        f"{spec.raw}: skipping {len(higher)} newer release(s) not built for this platform"
                    )
                logger.debug(f"{spec.raw} resolved to {best}")
                chosen.add(best)

        return Resolution(
            versions=[str(v) for v in sorted(chosen)],
            skipped=skipped,
        )
