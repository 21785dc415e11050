from typing import Optional


class NodeSwitchError(Exception):
    """base class for exceptions in nodeswitch."""
    pass


class ConfigError(NodeSwitchError):
    """raised when a configuration value is missing or invalid."""
    pass


class CatalogError(NodeSwitchError):
    """raised when the remote version index cannot be fetched or parsed."""
    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Could not load version index from {url}: {reason}")


class SpecifierError(NodeSwitchError):
    """raised when input is neither an exact version nor a valid range."""
    def __init__(self, spec: str):
        self.spec = spec
        super().__init__(f"Invalid version: {spec!r}")


class ResolutionError(NodeSwitchError):
    pass


class NoMatchError(ResolutionError):
    """raised when no catalog entry satisfies a specifier."""
    def __init__(self, spec: str, detail: Optional[str] = None):
        self.spec = spec
        message = f"No available version matches {spec!r}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class PlatformEligibilityError(ResolutionError):
    """a version exists but has no build for this host."""
    def __init__(self, version: str, reason: str):
        self.version = version
        self.reason = reason
        super().__init__(f"Version {version} is not available for this platform: {reason}")


class InstallUnitError(NodeSwitchError):
    """raised inside a single version's install unit."""
    def __init__(self, version: str, reason: str):
        self.version = version
        self.reason = reason
        super().__init__(f"Failed to install {version}: {reason}")


class ActivationError(NodeSwitchError):
    pass


class NotInstalledError(ActivationError):
    """raised when an operation needs a version that is not installed."""
    def __init__(self, version: str):
        self.version = version
        super().__init__(f"Version {version} is not installed")


class RemovalError(NodeSwitchError):
    """raised when an installed version cannot be deleted."""
    def __init__(self, version: str, reason: str):
        self.version = version
        self.reason = reason
        super().__init__(f"Failed to remove {version}: {reason}")
