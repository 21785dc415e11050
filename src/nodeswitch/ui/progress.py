"""terminal progress for long-running nodeswitch operations."""

import sys
from contextlib import contextmanager
from typing import Optional
from rich.console import Console
from rich.progress import (
    Progress,
    SpinnerColumn,
    TextColumn,
    BarColumn,
    DownloadColumn,
    TransferSpeedColumn,
    TimeRemainingColumn,
    TaskID,
)


class ProgressManager:
    """central manager for all progress tracking operations."""

    def __init__(self, console: Optional[Console] = None):
        """
        initialize progress manager.

        args:
            console: optional rich console instance. if not provided, creates new one.
        """
        self.console = console or Console()
        self._enabled = self._should_show_progress()

    def _should_show_progress(self) -> bool:
        """
        check if we should show progress bars.

        returns false in non-interactive environments (ci/cd, piped output).
        """
        return sys.stdout.isatty() and not sys.stdout.closed

    @contextmanager
    def spinner(self, description: str, transient: bool = True):
        """
        create an indeterminate spinner, e.g. while the version index loads.

        yields:
            task id for the spinner, or None when progress is disabled
        """
        if not self._enabled:
            self.console.print(f"{description}...")
            yield None
            return

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=self.console,
            transient=transient,
        ) as progress:
            task_id = progress.add_task(description, total=None)
            yield task_id

    @contextmanager
    def install_progress(self):
        """
        one row per version being installed: a spinner while unpacking,
        a byte counter while downloading.

        yields:
            Progress instance shared by all install units
        """
        if not self._enabled:
            yield _DummyProgress()
            return

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            DownloadColumn(),
            TransferSpeedColumn(),
            TimeRemainingColumn(),
            console=self.console,
        ) as progress:
            yield progress


class _DummyProgress:
    """dummy progress object for non-interactive mode."""

    def add_task(self, description: str, total: Optional[int] = None, **kwargs) -> TaskID:
        """add a task (no-op)."""
        return TaskID(0)

    def update(self, task_id: TaskID, **kwargs):
        """update a task (no-op)."""
        pass
