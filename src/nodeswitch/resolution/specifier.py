from typing import Iterable, List

import semantic_version

from ..domain.errors import SpecifierError
from ..domain.models import SpecifierKind, VersionSpecifier, normalize_version


def parse_exact(raw: str) -> VersionSpecifier:
    """parse input that must name one exact version, e.g. '16.0.0' or 'v16.0.0'."""
    value = normalize_version(raw or "")
    try:
        semantic_version.Version(value)
    except ValueError as e:
        raise SpecifierError(raw) from e
    return VersionSpecifier(raw=raw, kind=SpecifierKind.EXACT, value=value)


def parse_specifier(raw: str) -> VersionSpecifier:
    """
    classify user input as an exact version or an npm-style range.

    exact versions are tried first so '16.0.0' is never treated as a range;
    anything else NpmSpec accepts ('^16', '16.x', '>=14 <16', '16') is a range.

    raises:
        SpecifierError: if the input is neither
    """
    if raw is None or not raw.strip():
        raise SpecifierError(raw or "")

    try:
        return parse_exact(raw)
    except SpecifierError:
        pass

    expression = raw.strip()
    try:
        semantic_version.NpmSpec(expression)
    except ValueError as e:
        raise SpecifierError(raw) from e
    return VersionSpecifier(raw=raw, kind=SpecifierKind.RANGE, value=expression)


def parse_specifiers(raws: Iterable[str]) -> List[VersionSpecifier]:
    """parse a whole batch up front; the first malformed input aborts it."""
    return [parse_specifier(raw) for raw in raws]
