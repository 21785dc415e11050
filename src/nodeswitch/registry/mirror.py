import logging
from pathlib import Path
from typing import List, Optional, TYPE_CHECKING

import httpx
from pydantic import TypeAdapter, ValidationError

from ..domain.errors import CatalogError
from ..domain.models import CatalogEntry
from .client import IndexClient

if TYPE_CHECKING:
    from rich.progress import TaskID

logger = logging.getLogger(__name__)

_CATALOG_ADAPTER = TypeAdapter(List[CatalogEntry])


class MirrorIndex(IndexClient):
    """client for a nodejs.org/dist style mirror."""

    def __init__(self, base_url: str, client: Optional[httpx.Client] = None, timeout: float = 30.0):
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.Client(timeout=timeout, follow_redirects=True)

    @property
    def index_url(self) -> str:
        return f"{self.base_url}/index.json"

    def fetch_catalog(self) -> List[CatalogEntry]:
        """
        fetch and parse the version index. not cached: one request per call.

        raises:
            CatalogError: on transport failure, error status or malformed body
        """
        url = self.index_url
        logger.debug(f"fetching version index from {url}")
        try:
            response = self.client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise CatalogError(url, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise CatalogError(url, str(e) or type(e).__name__) from e

        try:
            data = response.json()
        except ValueError as e:
            raise CatalogError(url, "response is not valid JSON") from e

        if not isinstance(data, list):
            raise CatalogError(url, "expected a JSON array of releases")

        try:
            entries = _CATALOG_ADAPTER.validate_python(data)
        except ValidationError as e:
            raise CatalogError(url, f"malformed release entry: {e.errors()[0]['msg']}") from e

        logger.debug(f"version index lists {len(entries)} releases")
        return entries

    def artifact_url(self, version: str, artifact_name: str) -> str:
        return f"{self.base_url}/v{version}/{artifact_name}"

    def download_artifact(
        self,
        version: str,
        artifact_name: str,
        target_path: Path,
        progress=None,
        task_id: Optional["TaskID"] = None,
    ) -> Path:
        """
        stream a release archive to disk.

        args:
            version: release version, without the leading 'v'
            artifact_name: archive file name for the host platform
            target_path: where to save the archive
            progress: optional Progress instance for tracking download
            task_id: optional task id for updating progress

        returns:
            path to the downloaded archive
        """
        url = self.artifact_url(version, artifact_name)
        logger.debug(f"downloading {url} to {target_path}")

        with self.client.stream("GET", url) as response:
            response.raise_for_status()

            if "content-length" in response.headers and progress and task_id is not None:
                progress.update(task_id, total=int(response.headers["content-length"]))

            downloaded = 0
            with open(target_path, "wb") as f:
                for chunk in response.iter_bytes():
                    f.write(chunk)
                    downloaded += len(chunk)
                    if progress and task_id is not None:
                        progress.update(task_id, completed=downloaded)

        return target_path
