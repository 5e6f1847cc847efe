"""tpm CLI - manage Terminus plugins."""

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tpm import __version__
from tpm.config import TpmConfig
from tpm.core.errors import TpmError
from tpm.logging import setup_logging
from tpm.marketplace.installer import InstallStatus, UninstallStatus
from tpm.marketplace.listing import ListStatus
from tpm.marketplace.manager import PluginManager
from tpm.marketplace.repositories import RepositoryStore
from tpm.marketplace.updater import UpdateStatus

console = Console()

_STYLES = {
    InstallStatus.INSTALLED: ("green", "✓"),
    InstallStatus.ALREADY_INSTALLED: ("yellow", "•"),
    InstallStatus.INVALID: ("red", "✗"),
    InstallStatus.NOT_FOUND: ("red", "✗"),
    InstallStatus.FAILED: ("red", "✗"),
    UpdateStatus.UPDATED: ("green", "✓"),
    UpdateStatus.NOT_INSTALLED: ("red", "✗"),
    UpdateStatus.UNMANAGED: ("red", "✗"),
    UpdateStatus.FAILED: ("red", "✗"),
    UninstallStatus.REMOVED: ("green", "✓"),
    UninstallStatus.NOT_INSTALLED: ("red", "✗"),
    UninstallStatus.FAILED: ("red", "✗"),
}


def _manager(ctx: click.Context) -> PluginManager:
    """Build the plugin manager once per invocation."""
    if "manager" not in ctx.obj:
        ctx.obj["manager"] = PluginManager.from_config(ctx.obj["config"])
    return ctx.obj["manager"]


def _fail(ctx: click.Context, error: TpmError) -> None:
    console.print(f"[red]✗ {escape(str(error))}[/red]")
    ctx.exit(1)


def _print_result(result) -> None:
    color, mark = _STYLES[result.status]
    console.print(f"[{color}]{mark} {escape(result.message)}[/{color}]")
    for line in getattr(result, "output", []):
        console.print(f"  [dim]{escape(line)}[/dim]")
    suggestion = getattr(result, "suggestion", "")
    if suggestion:
        console.print(f"  [dim]{escape(suggestion)}[/dim]")


def _finish(ctx: click.Context, results) -> None:
    for result in results:
        _print_result(result)
    if any(not r.success for r in results):
        ctx.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", type=click.Path(), help="Path to a tpm.toml file")
@click.option(
    "--plugins-dir", type=click.Path(file_okay=False), help="Plugin root directory"
)
@click.option("--log-level", help="Logging level (DEBUG, INFO, WARNING, ERROR)")
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON")
@click.option(
    "--no-keyword-check",
    is_flag=True,
    help="Accept repositories whose title lacks 'terminus' and 'plugin'",
)
@click.option("--urls-only", is_flag=True, help="Only install from repository URLs")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: str = None,
    plugins_dir: str = None,
    log_level: str = None,
    json_logs: bool = False,
    no_keyword_check: bool = False,
    urls_only: bool = False,
):
    """tpm - Terminus Plugin Manager"""
    ctx.ensure_object(dict)

    try:
        config = TpmConfig.load(config_path)
        if plugins_dir:
            config.plugins_dir = plugins_dir
        if log_level:
            config.log_level = log_level
        if json_logs:
            config.json_logs = True
        if no_keyword_check:
            config.require_title_keywords = False
        if urls_only:
            config.allow_registry_name_install = False
    except TpmError as e:
        _fail(ctx, e)
    except ValueError as e:
        raise click.BadParameter(str(e))

    setup_logging(
        config.log_level,
        log_file=str(config.log_file) if config.log_file else None,
        json_format=config.json_logs,
    )
    ctx.obj["config"] = config


@cli.command()
@click.argument("identifiers", nargs=-1, required=True)
@click.pass_context
def install(ctx: click.Context, identifiers: tuple):
    """Install plugins by registry name or Git repository URL.

    Examples:
        tpm install https://github.com/pantheon-systems/terminus-plugin-example
        tpm install seo
    """
    try:
        results = _manager(ctx).install(identifiers)
    except TpmError as e:
        _fail(ctx, e)
        return
    _finish(ctx, results)


@cli.command()
@click.pass_context
def show(ctx: click.Context):
    """List installed plugins."""
    try:
        manager = _manager(ctx)
        plugins = manager.show()
    except TpmError as e:
        _fail(ctx, e)
        return

    if not plugins:
        console.print("[yellow]No plugins installed.[/yellow]")
        return

    console.print(f"Plugins are installed in {escape(str(manager.plugin_root))}.")

    table = Table(
        title=f"Installed plugins ({len(plugins)})",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Name", style="cyan")
    table.add_column("Location")
    table.add_column("Description")
    table.add_column("Status")

    for plugin in plugins:
        if plugin.status == ListStatus.MANAGED:
            status = "[green]managed[/green]"
        elif plugin.status == ListStatus.UNMANAGED:
            status = "[yellow]not updatable[/yellow]"
        else:
            status = "[yellow]unverified[/yellow]"
        table.add_row(
            escape(plugin.name),
            escape(plugin.location),
            escape(plugin.description),
            status,
        )

    console.print(table)
    console.print("[dim]Use 'tpm search' to find more plugins.[/dim]")
    console.print("[dim]Use 'tpm install' to add more plugins.[/dim]")


@cli.command()
@click.argument("targets", nargs=-1, required=True)
@click.pass_context
def update(ctx: click.Context, targets: tuple):
    """Update installed plugins ('all' or plugin names).

    Examples:
        tpm update all
        tpm update terminus-plugin-example
    """
    try:
        results = _manager(ctx).update(targets)
    except TpmError as e:
        _fail(ctx, e)
        return

    if not results:
        console.print("[yellow]No plugins installed.[/yellow]")
        return
    _finish(ctx, results)


@cli.command()
@click.argument("targets", nargs=-1, required=True)
@click.option(
    "--force", "-f", is_flag=True, help="Remove without confirmation"
)
@click.pass_context
def uninstall(ctx: click.Context, targets: tuple, force: bool = False):
    """Remove installed plugins.

    Example:
        tpm uninstall terminus-plugin-example
    """
    if not force:
        console.print(f"[bold]Removing: {escape(', '.join(targets))}[/bold]")
        if not click.confirm("Are you sure you want to remove these plugins?"):
            console.print("[yellow]Cancelled.[/yellow]")
            return

    try:
        results = _manager(ctx).uninstall(targets)
    except TpmError as e:
        _fail(ctx, e)
        return
    _finish(ctx, results)


@cli.command()
@click.argument("query")
@click.pass_context
def search(ctx: click.Context, query: str):
    """Search the plugin registry.

    Example:
        tpm search seo
    """
    try:
        records = _manager(ctx).search(query)
    except TpmError as e:
        _fail(ctx, e)
        return

    if not records:
        console.print("[yellow]No plugins were found.[/yellow]")
        return

    table = Table(
        title=f"Plugin search results ({len(records)})",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Package", style="cyan")
    table.add_column("Title")
    table.add_column("Description")
    table.add_column("Author")

    for record in records:
        package = record.package + (" (installed)" if record.installed else "")
        table.add_row(
            escape(package),
            escape(record.title),
            escape(record.description),
            escape(record.author),
        )

    console.print(table)


# Aliases
cli.add_command(install, name="add")
cli.add_command(show, name="list")
cli.add_command(update, name="up")
cli.add_command(uninstall, name="remove")
cli.add_command(search, name="find")


# ============================================
# Repository list commands
# ============================================


@cli.group()
def repo():
    """Manage known plugin repositories (repositories.yml)."""
    pass


def _repositories(ctx: click.Context) -> RepositoryStore:
    return _manager(ctx).repositories


@repo.command("list")
@click.pass_context
def repo_list(ctx: click.Context):
    """List known plugin repositories."""
    try:
        urls = _repositories(ctx).list_urls()
    except TpmError as e:
        _fail(ctx, e)
        return

    if not urls:
        console.print("[yellow]No repositories configured.[/yellow]")
        return
    for url in urls:
        console.print(f"  {escape(url)}")


@repo.command("add")
@click.argument("url")
@click.pass_context
def repo_add(ctx: click.Context, url: str):
    """Add a plugin repository, e.g. https://github.com/my-org."""
    try:
        added = _repositories(ctx).add(url)
    except TpmError as e:
        _fail(ctx, e)
        return

    if added:
        console.print(f"[green]✓ Added {escape(url)}[/green]")
    else:
        console.print(f"[yellow]{escape(url)} is already listed.[/yellow]")


@repo.command("remove")
@click.argument("url")
@click.pass_context
def repo_remove(ctx: click.Context, url: str):
    """Remove a plugin repository."""
    try:
        _repositories(ctx).remove(url)
    except TpmError as e:
        _fail(ctx, e)
        return
    console.print(f"[green]✓ Removed {escape(url)}[/green]")


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
