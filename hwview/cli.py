"""Command Line Interface for hwview."""

import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from . import __version__
from .adapter import DISABLED_ICON_SUFFIX, INVALID_INDEX, Role, TreeModelAdapter
from .backends import select_backend
from .cache import DeviceCache, get_cache
from .categories import DeviceCategory
from .config import DEFAULT_CONFIG_PATH, get_config, load_config, save_config, set_config
from .errors import HwviewError
from .tree import CategoryTreeBuilder
from .util import ensure_directory, get_logger, setup_logging, with_export_extension

console = Console()
logger = get_logger(__name__)


def setup_cli_logging(verbose: bool = False, level: str = "INFO", log_file: Optional[Path] = None):
    """Setup logging for CLI."""
    setup_logging(level="DEBUG" if verbose else level, log_file=log_file, console=console)


def _fail(message: str) -> None:
    console.print(f"[red]Error: {escape(message)}[/red]")
    sys.exit(1)


def _load_cache(snapshot: Optional[Path] = None, show_hidden: bool = False) -> DeviceCache:
    """Fill the shared cache from a snapshot file or a live enumeration."""
    config = get_config()
    cache = get_cache()
    cache.set_show_hidden(show_hidden or config.view.show_hidden_devices)

    try:
        if snapshot is not None:
            cache.load_from_file(snapshot)
            return cache

        backend = select_backend(config.backend)
        backend.configure_export(config.export)
        result = cache.reload_live_data(backend)
    except HwviewError as e:
        _fail(str(e))

    if result.error is not None:
        _fail(str(result.error))
    return cache


def _category_by_label(label: str) -> Optional[DeviceCategory]:
    for category in DeviceCategory:
        if category.label.lower() == label.lower() or category.name.lower() == label.lower():
            return category
    return None


@click.group()
@click.version_option(__version__, prog_name="hwview")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--config", "-c", type=click.Path(exists=True, path_type=Path), help="Configuration file path")
@click.option("--log-file", type=click.Path(dir_okay=False, path_type=Path), help="Also write a debug log to this file")
@click.pass_context
def cli(ctx, verbose: bool, config: Optional[Path], log_file: Optional[Path]):
    """hwview - Device Manager style hardware viewer."""
    ctx.ensure_object(dict)

    # Load configuration
    if config:
        try:
            set_config(load_config(config))
        except ValueError as e:
            _fail(f"Invalid configuration {config}: {e}")
    ctx.obj["config"] = get_config()

    setup_cli_logging(verbose, ctx.obj["config"].log_level, log_file or ctx.obj["config"].log_file)


@cli.command("list")
@click.option("--show-hidden", is_flag=True, help="Include hidden devices")
@click.option("--category", "category_label", help="Only show one category (label or name)")
@click.option("--file", "-f", "snapshot", type=click.Path(exists=True, path_type=Path), help="Read a .dmexport file instead of this machine")
@click.option("--all", "include_unknown", is_flag=True, help="Include devices without a category")
def device_list(show_hidden: bool, category_label: Optional[str], snapshot: Optional[Path], include_unknown: bool):
    """List devices in a table."""
    cache = _load_cache(snapshot, show_hidden)

    records = cache.all()
    if category_label:
        category = _category_by_label(category_label)
        if category is None:
            _fail(f"Unknown category: {category_label}")
        records = tuple(cache.by_category(category))

    records = [
        r for r in records
        if (cache.show_hidden or not r.is_hidden) and (include_unknown or r.is_valid_for_display)
    ]
    if not records:
        console.print("[yellow]No devices found[/yellow]")
        return

    table = Table(title=f"Devices on {cache.hostname()}")
    table.add_column("Name", style="cyan")
    table.add_column("Category", style="white")
    table.add_column("Driver", style="white")
    table.add_column("Subsystem", style="white")
    table.add_column("Syspath", style="dim")

    for record in sorted(records, key=lambda r: (r.category.label, r.name.casefold())):
        name = escape(record.name)
        if record.is_hidden:
            name = f"[dim]{name}[/dim]"
        table.add_row(name, record.category.label, record.driver, record.subsystem, record.syspath)

    console.print(table)
    console.print(f"{len(records)} devices")


@cli.command("tree")
@click.option("--show-hidden", is_flag=True, help="Include hidden devices")
@click.option("--file", "-f", "snapshot", type=click.Path(exists=True, path_type=Path), help="Read a .dmexport file instead of this machine")
def device_tree(show_hidden: bool, snapshot: Optional[Path]):
    """Show devices grouped by category."""
    cache = _load_cache(snapshot, show_hidden)
    model = TreeModelAdapter(CategoryTreeBuilder().build(cache))
    console.print(_render_tree(model))


def _render_tree(model: TreeModelAdapter) -> Tree:
    """Walk the item model the way a view would and render it with rich."""

    def label(index) -> str:
        name = escape(model.data(index, Role.DISPLAY))
        driver = escape(model.data(model.index(index.row, 1, model.parent(index)), Role.DISPLAY) or "")
        icon = model.data(index, Role.DECORATION) or ""
        text = f"[dim]{name}[/dim]" if icon.endswith(DISABLED_ICON_SUFFIX) else name
        return f"{text} [blue]({driver})[/blue]" if driver else text

    def add_children(branch: Tree, parent) -> None:
        for row in range(model.row_count(parent)):
            index = model.index(row, 0, parent)
            add_children(branch.add(label(index)), index)

    host_index = model.index(0, 0, INVALID_INDEX)
    tree = Tree(f"[bold]{escape(model.data(host_index, Role.DISPLAY))}[/bold]")
    add_children(tree, host_index)
    return tree


@cli.command("export")
@click.option("--output", "-o", type=click.Path(path_type=Path), help="Output file (.dmexport is appended if missing)")
@click.option("--quiet", "-q", is_flag=True, help="Only report errors")
def export(output: Optional[Path], quiet: bool):
    """Export all devices of this machine to a snapshot file."""
    if not quiet:
        console.print("Enumerating devices...")
    cache = _load_cache()
    if not quiet:
        console.print(f"Found {len(cache)} devices.")

    if output is None:
        try:
            output = ensure_directory(get_config().export.output_dir) / cache.hostname()
        except OSError as e:
            _fail(f"Cannot create export directory: {e}")
    output = with_export_extension(output)

    if not quiet:
        console.print(f"Exporting to: {output}")

    if not cache.export_to_file(output):
        _fail(f"Failed to export to {output}")

    if not quiet:
        console.print("[green]Export successful.[/green]")


@cli.command("show")
@click.argument("syspath")
@click.option("--file", "-f", "snapshot", type=click.Path(exists=True, path_type=Path), help="Read a .dmexport file instead of this machine")
def show(syspath: str, snapshot: Optional[Path]):
    """Show the properties of one device."""
    cache = _load_cache(snapshot, show_hidden=True)
    record = cache.by_syspath(syspath)
    if record is None:
        _fail(f"Device {syspath} not found")

    table = Table(title=escape(record.name or record.syspath))
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Syspath", record.syspath)
    table.add_row("Category", record.category.label)
    table.add_row("Driver", record.driver)
    table.add_row("Subsystem", record.subsystem)
    table.add_row("Device node", record.devnode)
    table.add_row("Parent", record.parent_syspath)
    table.add_row("Hidden", "Yes" if record.is_hidden else "No")
    if record.driver_info is not None and record.driver_info.filename:
        table.add_row("Driver file", record.driver_info.filename)
    for resource in record.resources:
        table.add_row(resource.type, resource.display_value)
    for key in sorted(record.properties):
        table.add_row(key, escape(record.properties[key]))

    console.print(table)


@cli.group("config")
def config_group():
    """Configuration commands."""
    pass


@config_group.command("show")
def config_show():
    """Show the active configuration."""
    config = get_config()
    table = Table(title="Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")

    def add_rows(prefix: str, data: dict) -> None:
        for key, value in data.items():
            if isinstance(value, dict):
                add_rows(f"{prefix}{key}.", value)
            else:
                table.add_row(f"{prefix}{key}", str(value))

    add_rows("", config.model_dump(mode="json"))
    console.print(table)


@config_group.command("init")
@click.option("--path", type=click.Path(path_type=Path), default=DEFAULT_CONFIG_PATH, help="Where to write the configuration")
def config_init(path: Path):
    """Write the active configuration to a file."""
    save_config(get_config(), path)
    console.print(f"[green]Configuration written to {path}[/green]")


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
