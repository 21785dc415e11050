import asyncio
import logging
import os
import shutil
import tempfile
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import httpx

from ..config import DEFAULT_MAX_WORKERS
from ..domain.errors import InstallUnitError
from ..domain.models import CatalogEntry, InstallResult, InstallStatus, Resolution
from ..host import Host
from ..registry.client import IndexClient
from ..resolution.resolver import Resolver
from ..resolution.specifier import parse_specifiers
from ..storage.archive import ArchiveError, unpack
from ..storage.layout import RuntimeLayout
from ..ui.progress import ProgressManager

logger = logging.getLogger(__name__)


class InstallService:
    """resolves version specifiers and installs the matching releases concurrently."""

    def __init__(
        self,
        index_client: IndexClient,
        layout: RuntimeLayout,
        host: Host,
        progress_manager: ProgressManager = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ):
        self.index_client = index_client
        self.layout = layout
        self.host = host
        self.resolver = Resolver(host)
        self.progress_manager = progress_manager or ProgressManager()
        self.max_workers = max_workers
        # entries from the last resolve, used to skip releases with no build for this host
        self.catalog: Dict[str, CatalogEntry] = {}

    def resolve(self, specifiers: List[str]) -> Resolution:
        """
        validate the whole batch, then resolve it against a fresh catalog.

        raises:
            SpecifierError: before any network access if an input is malformed
            CatalogError: if the version index cannot be loaded
            NoMatchError: if a specifier matches no eligible release
        """
        parsed = parse_specifiers(specifiers)
        with self.progress_manager.spinner("fetching version index"):
            catalog = self.index_client.fetch_catalog()
        self.catalog = {entry.version: entry for entry in catalog}
        return self.resolver.resolve(parsed, catalog)

    async def install(self, specifiers: List[str]) -> Tuple[Resolution, List[InstallResult]]:
        """
        install every version the specifiers resolve to.

        args:
            specifiers: exact versions or npm-style ranges

        returns:
            the resolution and one result per resolved version
        """
        resolution = self.resolve(specifiers)
        results = await self.install_all(resolution.versions)
        return resolution, results

    async def install_all(self, versions: Iterable[str]) -> List[InstallResult]:
        """
        run one install unit per version on a bounded thread pool.

        units are independent: a failing unit never cancels its siblings, and
        results are only returned once every unit has finished.
        """
        versions = list(dict.fromkeys(versions))
        if not versions:
            return []

        self.layout.ensure_root()
        loop = asyncio.get_running_loop()
        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="install") as executor:
            with self.progress_manager.install_progress() as progress:
                tasks = [
                    loop.run_in_executor(executor, self._run_unit, version, progress)
                    for version in versions
                ]
                return list(await asyncio.gather(*tasks))

    def _run_unit(self, version: str, progress=None) -> InstallResult:
        task_id = None
        if progress is not None:
            task_id = progress.add_task(f"{version:8} installing", total=None)

        try:
            status = self.install_version(version, progress, task_id)
        except InstallUnitError as e:
            logger.debug(f"install of {version} failed: {e.reason}")
            self._set_status(progress, task_id, f"[red]{version:8} failed ✗[/red]")
            return InstallResult(version=version, status=InstallStatus.FAILED, reason=e.reason)
        except Exception as e:
            # any unit failure is reported with the others instead of aborting them
            logger.exception(f"unexpected error installing {version}")
            self._set_status(progress, task_id, f"[red]{version:8} failed ✗[/red]")
            return InstallResult(version=version, status=InstallStatus.FAILED, reason=str(e) or type(e).__name__)

        if status == InstallStatus.ALREADY_INSTALLED:
            self._set_status(progress, task_id, f"[green]{version:8} already installed ✓[/green]")
        else:
            self._set_status(progress, task_id, f"[green]{version:8} installed ✓[/green]")
        return InstallResult(version=version, status=status)

    def _set_status(self, progress, task_id, description: str):
        if progress is not None and task_id is not None:
            progress.update(task_id, description=description)

    def install_version(self, version: str, progress=None, task_id=None) -> InstallStatus:
        """
        download, unpack and move one release into place.

        the final rename is the only step that creates the version directory,
        so an interrupted install never looks like a complete one.

        raises:
            InstallUnitError: if any step fails
        """
        final_dir = self.layout.version_dir(version)
        if final_dir.exists():
            return InstallStatus.ALREADY_INSTALLED

        if not self.host.is_supported:
            raise InstallUnitError(
                version, f"no release builds for platform {self.host.os.value}-{self.host.arch.value}"
            )

        entry = self.catalog.get(version)
        if entry is not None and entry.files and self.host.index_platform not in entry.artifacts:
            platform_tag = "-".join(self.host.index_platform)
            raise InstallUnitError(version, f"the version index lists no {platform_tag} build for this release")

        artifact_name = self.host.artifact_name(version)
        staging_dir: Optional[Path] = None
        with tempfile.TemporaryDirectory(prefix="nodeswitch-") as scratch:
            try:
                archive_path = Path(scratch) / artifact_name
                self._download(version, artifact_name, archive_path, progress, task_id)

                self._set_status(progress, task_id, f"{version:8} unpacking")
                staging_dir = self.layout.make_staging_dir(version)
                unpacked_root = unpack(archive_path, staging_dir, self.host.artifact_stem(version))

                if final_dir.exists():
                    logger.warning(f"{final_dir} appeared while installing, keeping the existing copy")
                    return InstallStatus.ALREADY_INSTALLED
                os.rename(unpacked_root, final_dir)
                logger.debug(f"installed {version} to {final_dir}")
            except ArchiveError as e:
                raise InstallUnitError(version, str(e)) from e
            except OSError as e:
                raise InstallUnitError(version, f"filesystem error: {e}") from e
            finally:
                if staging_dir is not None:
                    shutil.rmtree(staging_dir, ignore_errors=True)

        return InstallStatus.INSTALLED

    def _download(self, version: str, artifact_name: str, target_path: Path, progress=None, task_id=None):
        url = self.index_client.artifact_url(version, artifact_name)
        self._set_status(progress, task_id, f"{version:8} downloading")
        try:
            self.index_client.download_artifact(version, artifact_name, target_path, progress, task_id)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise InstallUnitError(version, f"no build published at {url}") from e
            raise InstallUnitError(version, f"download failed: HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise InstallUnitError(version, f"download failed: {e}") from e
