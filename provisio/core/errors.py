"""
Error taxonomy for the provisioning engine.

Every failure is fatal for the current invocation. Errors carry the
entry/tool/version being processed so multi-tool, multi-version
profile runs report exactly where they stopped.
"""

from __future__ import annotations


class ProvisioError(Exception):
    """Base class for all provisioning failures."""

    def __init__(self, message: str, **context: str) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, str] = {k: v for k, v in context.items() if v}

    def attach(self, **context: str | None) -> ProvisioError:
        """Record processing context without overwriting what is already set."""
        for key, value in context.items():
            if value and key not in self.context:
                self.context[key] = value
        return self

    def __str__(self) -> str:
        if not self.context:
            return self.message
        where = " ".join(f"{k}={v}" for k, v in self.context.items())
        return f"{self.message} [{where}]"


class ConfigError(ProvisioError):
    """Invalid provisio configuration or unreadable profile spec."""


class CatalogError(ProvisioError):
    """Malformed or missing tool descriptor."""


class UnknownToolError(ProvisioError):
    """A profile or command references an id absent from the catalog."""


class DownloadError(ProvisioError):
    """Transport failure or URL template interpolation failure."""


class UnsupportedPackagingError(ProvisioError):
    """The strategy layer has no implementation for a packaging kind."""


class InstallError(ProvisioError):
    """Extraction or copy failure."""


class PostInstallError(ProvisioError):
    """A post-install hook exited non-zero or timed out."""


class ShellFileError(ProvisioError):
    """No usable shell startup file, or it cannot be written."""
