from typing import List, Optional

from ..activation.base import Activator
from ..domain.models import CatalogEntry
from ..registry.client import IndexClient
from ..storage.layout import RuntimeLayout


class ListService:
    """reports installed and available versions."""

    def __init__(self, layout: RuntimeLayout, activator: Activator, index_client: Optional[IndexClient] = None):
        self.layout = layout
        self.activator = activator
        self.index_client = index_client

    def installed(self) -> List[str]:
        """installed versions, oldest first. the `current` entry is never listed."""
        return self.layout.installed_versions()

    def active(self) -> Optional[str]:
        return self.activator.current_version()

    def available(self, lts_only: bool = False, limit: Optional[int] = None) -> List[CatalogEntry]:
        """
        releases from the version index, newest first.

        args:
            lts_only: only include long-term-support releases
            limit: maximum number of entries to return
        """
        if self.index_client is None:
            raise ValueError("no index client configured")
        entries = self.index_client.fetch_catalog()
        if lts_only:
            entries = [e for e in entries if e.lts]
        entries = sorted(entries, key=lambda e: e.semver, reverse=True)
        if limit is not None:
            entries = entries[:limit]
        return entries
