import asyncio
import logging
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console

from . import __version__
from .analyzer import UsageAnalyzer, get_usage_analyzer
from .cli_config import create_sample_config, get_config, load_config
from .error_handling import DepMoleError, setup_error_handling
from .filters import FilterOptions, apply_filters
from .reporting import DependencyReporter, output_json_results
from .scanner import get_dependency_scanner
from .structured_logging import configure_logging
from .verifier import verify_packages

console = Console()
error_console = Console(stderr=True)


class DepMoleClickException(click.ClickException):
    """ClickException rendered in red on stderr."""

    def show(self, file=None) -> None:
        error_console.print(f"❌ {self.format_message()}", style="bold red")


async def async_run_report(
    project_root: Path,
    options: FilterOptions,
    verify: bool,
    output_format: str,
    analyzer: Optional[UsageAnalyzer] = None,
) -> None:
    """Scan the project, print the filtered report, then verify if requested."""
    scanner = get_dependency_scanner(analyzer)
    report = await scanner.scan(project_root)
    view = apply_filters(report, options)

    if output_format == "json":
        verification = (
            await verify_packages(view.selected_names()) if verify else None
        )
        output_json_results(view, str(project_root), verification)
        return

    reporter = DependencyReporter(console)
    reporter.print_report(view, str(project_root))
    if verify:
        verification = await verify_packages(view.selected_names())
        reporter.print_verification(verification)


def _configure_logging(verbose: bool) -> None:
    level_name = "DEBUG" if verbose else get_config().logging.log_level
    configure_logging(level_name)
    setup_error_handling(getattr(logging, level_name.upper(), logging.WARNING))


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version information")
@click.option(
    "--path",
    "-p",
    "project_dir",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    default=".",
    help="Project root containing package.json",
    show_default=True,
)
@click.option("--verify", is_flag=True, help="Verify dependencies against the npm registry")
@click.option("--all", "all_types", is_flag=True, help="Include all dependency types (default)")
@click.option("--prod", is_flag=True, help="Only dependencies")
@click.option("--dev", is_flag=True, help="Only devDependencies")
@click.option("--peer", is_flag=True, help="Only peerDependencies")
@click.option("--healthy", is_flag=True, help="Show used and installed dependencies")
@click.option("--unused", is_flag=True, help="Show declared dependencies not imported anywhere")
@click.option("--notinstalled", is_flag=True, help="Show declared dependencies absent from node_modules")
@click.option("--missing", is_flag=True, help="Show imported packages absent from package.json")
@click.option("--flat", is_flag=True, help="Group by manifest section instead of status")
@click.option(
    "--output-format",
    type=click.Choice(["console", "json"], case_sensitive=False),
    default="console",
    help="Output format for results",
    show_default=True,
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging on stderr")
@click.pass_context
def cli(
    ctx,
    version: bool,
    project_dir: str,
    verify: bool,
    all_types: bool,
    prod: bool,
    dev: bool,
    peer: bool,
    healthy: bool,
    unused: bool,
    notinstalled: bool,
    missing: bool,
    flat: bool,
    output_format: str,
    verbose: bool,
):
    """
    🐹 dep-mole: scan, verify, and report your npm dependencies

    Compares package.json, the imports depcheck finds in source, and the
    contents of node_modules.

    Examples:

      dep-mole

      dep-mole --unused --missing

      dep-mole --dev --flat

      dep-mole --verify --notinstalled
    """
    if version:
        console.print(f"dep-mole version {__version__}", style="bold blue")
        ctx.exit()

    if ctx.invoked_subcommand is not None:
        return

    try:
        options = FilterOptions.from_flags(
            all_types=all_types,
            prod=prod,
            dev=dev,
            peer=peer,
            healthy=healthy,
            unused=unused,
            notinstalled=notinstalled,
            missing=missing,
            flat=flat,
        )
        load_config(Path(project_dir))
        _configure_logging(verbose)
        asyncio.run(
            async_run_report(
                Path(project_dir),
                options,
                verify,
                output_format.lower(),
                analyzer=get_usage_analyzer(),
            )
        )
    except DepMoleError as e:
        raise DepMoleClickException(str(e))
    except click.ClickException:
        raise
    except Exception as e:
        if verbose:
            raise
        raise DepMoleClickException(f"Error running dep-mole: {e}")


@cli.group()
def config():
    """Manage dep-mole configuration."""
    pass


@config.command("init")
@click.argument("path", type=click.Path(dir_okay=False), default=".dep-mole.json")
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def config_init(path: str, force: bool):
    """Write a sample configuration file."""
    target = Path(path)
    if target.exists() and not force:
        raise DepMoleClickException(
            f"{target} already exists (use --force to overwrite)"
        )
    target.write_text(create_sample_config() + "\n", encoding="utf-8")
    console.print(f"✅ Sample configuration written to {target}", style="green")


@config.command("show")
def config_show():
    """Show the effective configuration."""
    console.print_json(data=get_config().to_dict())


def main(argv: Optional[List[str]] = None) -> None:
    cli.main(args=argv, prog_name="dep-mole")


if __name__ == "__main__":
    main()
