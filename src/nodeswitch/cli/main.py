import asyncio
import logging
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..activation import get_activator
from ..config import CONFIG_KEYS, Settings, get_config_value, load_settings, set_config_value
from ..domain.errors import NodeSwitchError, NotInstalledError
from ..domain.models import InstallResult, InstallStatus, RemoveResult, RemoveStatus
from ..host import Host, detect_host
from ..registry.mirror import MirrorIndex
from ..services.install import InstallService
from ..services.listing import ListService
from ..services.remove import RemoveService
from ..services.use import UseService
from ..storage.layout import RuntimeLayout
from ..ui.progress import ProgressManager

app = typer.Typer(help="Install and switch between local Node.js versions.", no_args_is_help=True)
console = Console()
err_console = Console(stderr=True)


def configure_logging(verbose: bool):
    level = logging.DEBUG if verbose else logging.WARNING
    root = logging.getLogger()
    root.setLevel(level)
    if not any(isinstance(h, RichHandler) for h in root.handlers):
        root.addHandler(RichHandler(console=err_console, show_path=False))


def fail(message: str):
    err_console.print(f"[red]Error:[/red] {message}")
    raise typer.Exit(code=1)


def get_context():
    host = detect_host()
    try:
        settings = load_settings(host)
    except NodeSwitchError as e:
        fail(str(e))
    layout = RuntimeLayout(settings.data_dir, settings.link_dir)
    return host, settings, layout


def get_install_service(host: Host, settings: Settings, layout: RuntimeLayout) -> InstallService:
    return InstallService(
        MirrorIndex(settings.mirror),
        layout,
        host,
        ProgressManager(console),
        max_workers=settings.max_workers,
    )


@app.callback()
def main_callback(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging")):
    """callback that runs before every command to set up logging."""
    configure_logging(verbose)


def _activate(host: Host, layout: RuntimeLayout, version: str) -> str:
    activator = get_activator(layout, host)
    active = UseService(activator).use(version)
    if getattr(activator, "path_updated", False):
        console.print(
            f"[yellow]Added {layout.link_dir} to your PATH.[/yellow] "
            "Restart your terminal for the change to apply."
        )
    elif host.is_posix:
        console.print("[dim]Run `hash -r` (or `rehash` in zsh) if your shell cached the old path.[/dim]")
    return active


@app.command()
def use(version: str = typer.Argument(..., help="Installed version to activate")):
    """switch the active Node.js version."""
    host, _, layout = get_context()
    try:
        active = _activate(host, layout, version)
    except NotInstalledError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        err_console.print(f"Try \"nodeswitch install {version}\" to install that version.")
        raise typer.Exit(code=1)
    except NodeSwitchError as e:
        fail(str(e))
    except OSError as e:
        fail(f"could not activate {version}: {e}")
    console.print(f"[green]Now using Node.js {active}[/green]")


def _print_install_results(results: List[InstallResult]):
    table = Table(show_header=True, header_style="bold")
    table.add_column("Version")
    table.add_column("Status")
    table.add_column("Details", style="dim")
    for result in results:
        if result.status == InstallStatus.INSTALLED:
            status = "[green]installed ✓[/green]"
        elif result.status == InstallStatus.ALREADY_INSTALLED:
            status = "[green]already installed ✓[/green]"
        else:
            status = "[red]failed ✗[/red]"
        table.add_row(result.version, status, result.reason or "")
    console.print(table)


@app.command()
def install(
    versions: Optional[List[str]] = typer.Argument(None, help="Exact versions or ranges such as ^18"),
    use_version: bool = typer.Option(False, "--use", help="Activate the newest version afterwards"),
):
    """install one or more Node.js versions."""
    if not versions:
        fail("Must have at least one version")

    host, settings, layout = get_context()
    service = get_install_service(host, settings, layout)

    try:
        resolution, results = asyncio.run(service.install(versions))
    except NodeSwitchError as e:
        fail(str(e))

    for skipped in resolution.skipped:
        console.print(f"[yellow]Skipping {skipped.spec}:[/yellow] {skipped.reason}")

    if not resolution.versions:
        fail("No installable versions requested")

    _print_install_results(results)

    failed = [r for r in results if not r.ok]
    if failed:
        err_console.print(f"[red]{len(failed)} of {len(results)} version(s) failed to install.[/red]")
        raise typer.Exit(code=1)

    if use_version:
        newest = resolution.versions[-1]
        try:
            active = _activate(host, layout, newest)
        except (NodeSwitchError, OSError) as e:
            fail(f"installed, but could not activate {newest}: {e}")
        console.print(f"[green]Now using Node.js {active}[/green]")


@app.command()
def remove(versions: Optional[List[str]] = typer.Argument(None, help="Installed versions to remove")):
    """uninstall one or more Node.js versions."""
    if not versions:
        fail("Must have at least one version")

    host, _, layout = get_context()
    service = RemoveService(layout, get_activator(layout, host))

    try:
        results = service.remove(versions)
    except NodeSwitchError as e:
        fail(str(e))

    _print_remove_results(results)
    if any(not r.ok for r in results):
        raise typer.Exit(code=1)


def _print_remove_results(results: List[RemoveResult]):
    for result in results:
        if result.status == RemoveStatus.REMOVED:
            suffix = " (was active)" if result.was_active else ""
            console.print(f"[green]Removed version {result.version}{suffix}[/green]")
        elif result.status == RemoveStatus.NOT_INSTALLED:
            err_console.print(f"[red]Version {result.version} not installed[/red]")
        else:
            err_console.print(f"[red]Failed to remove {result.version}:[/red] {result.reason}")


@app.command(name="list")
def list_versions():
    """list installed Node.js versions."""
    host, _, layout = get_context()
    service = ListService(layout, get_activator(layout, host))

    installed = service.installed()
    if not installed:
        fail("No Node.js versions installed!")

    active = service.active()
    for version in installed:
        if version == active:
            console.print(f"[green]* {version}[/green]")
        else:
            console.print(f"  {version}")


@app.command(name="ls-remote")
def ls_remote(
    lts: bool = typer.Option(False, "--lts", help="Only show long-term-support releases"),
    limit: int = typer.Option(20, "--limit", "-n", help="Number of releases to show"),
):
    """list Node.js versions available for download."""
    host, settings, layout = get_context()
    service = ListService(layout, get_activator(layout, host), MirrorIndex(settings.mirror))
    progress_manager = ProgressManager(console)

    try:
        with progress_manager.spinner("fetching version index"):
            entries = service.available(lts_only=lts, limit=limit)
    except NodeSwitchError as e:
        fail(str(e))

    installed = set(service.installed())
    table = Table(show_header=True, header_style="bold")
    table.add_column("Version")
    table.add_column("LTS")
    table.add_column("Eligible")
    table.add_column("Installed")
    for entry in entries:
        issue = host.eligibility_issue(entry.semver)
        table.add_row(
            entry.version,
            entry.lts or "",
            "[red]no[/red]" if issue else "yes",
            "[green]✓[/green]" if entry.version in installed else "",
        )
    console.print(table)


@app.command()
def current():
    """print the active Node.js version."""
    host, _, layout = get_context()
    active = UseService(get_activator(layout, host)).current()
    if active is None:
        console.print("[dim]none[/dim]")
        return
    console.print(active)


@app.command()
def config(
    key: str = typer.Argument(..., help=f"One of: {', '.join(CONFIG_KEYS)}"),
    value: Optional[str] = typer.Argument(None, help="New value; omit to print the current one"),
):
    """show or change a configuration value."""
    if value is None:
        current_value = get_config_value(key)
        if current_value is None:
            console.print("[dim]not set[/dim]")
        else:
            console.print(current_value)
        return

    try:
        set_config_value(key, value)
    except NodeSwitchError as e:
        fail(str(e))
    console.print(Panel.fit(f"[bold green]Configuration Updated[/bold green]\n{key}={value}", border_style="green"))


if __name__ == "__main__":
    app()
