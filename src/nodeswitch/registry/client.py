from abc import ABC, abstractmethod
from typing import List, Optional, TYPE_CHECKING
from pathlib import Path

from ..domain.models import CatalogEntry

if TYPE_CHECKING:
    from rich.progress import TaskID


class IndexClient(ABC):
    @abstractmethod
    def fetch_catalog(self) -> List[CatalogEntry]:
        """Fetch every release listed by the version index."""
        pass

    @abstractmethod
    def artifact_url(self, version: str, artifact_name: str) -> str:
        """URL of a release archive."""
        pass

    @abstractmethod
    def download_artifact(
        self,
        version: str,
        artifact_name: str,
        target_path: Path,
        progress=None,
        task_id: Optional["TaskID"] = None,
    ) -> Path:
        """Download a release archive to the target path."""
        pass
