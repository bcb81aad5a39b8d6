"""
Command-line interface for coverage-lens.
"""

import asyncio
import json
import logging
import sys
from typing import Optional

import click
import yaml
from rich.console import Console
from rich.table import Table

from coverage_lens import __version__
from coverage_lens.api.mcp import get_mcp_manifest
from coverage_lens.core.config import (
    LensConfig,
    get_default_config,
    load_config,
    save_config,
)
from coverage_lens.core.errors import CoverageLensError
from coverage_lens.core.lookup import lookup_file_coverage
from coverage_lens.io.reports import candidate_locations, locate_report

console = Console()
err_console = Console(stderr=True)
logger = logging.getLogger(__name__)


def _load(config: Optional[str]) -> LensConfig:
    return load_config(config) if config else get_default_config()


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """coverage-lens - extract per-file records from coverage reports."""
    ctx.ensure_object(dict)

    # Logs go to stderr so stdout stays clean for records and MCP traffic
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    ctx.obj["verbose"] = verbose


@main.command()
@click.argument("target")
@click.option("--config", "-c", type=click.Path(exists=True), help="Configuration file")
@click.option("--report", "-r", type=click.Path(), help="Report file (skips location lookup)")
@click.pass_context
def extract(ctx: click.Context, target: str, config: Optional[str], report: Optional[str]) -> None:
    """Print the coverage record for TARGET."""
    try:
        lens_config = _load(config)
        result = asyncio.run(lookup_file_coverage(target, lens_config, report_path=report))
    except CoverageLensError as e:
        err_console.print(f"❌ {e.message}", style="red", markup=False, soft_wrap=True)
        for key, value in e.details.items():
            err_console.print(f"   {key}: {value}", markup=False, soft_wrap=True)
        if ctx.obj["verbose"]:
            err_console.print_exception()
        sys.exit(1)

    err_console.print(
        f"✅ Matched '{result.target}' by {result.mode.value} in {result.report_path}",
        markup=False,
        soft_wrap=True,
    )
    click.echo(result.record, nl=False)


@main.command()
@click.option("--config", "-c", type=click.Path(exists=True), help="Configuration file")
def locate(config: Optional[str]) -> None:
    """Show where the coverage report is looked up."""
    try:
        lens_config = _load(config)
    except CoverageLensError as e:
        console.print(f"❌ {e.message}", style="red")
        sys.exit(1)

    resolved = locate_report(lens_config)

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Source", style="cyan")
    table.add_column("Path")
    table.add_column("Exists", justify="center")

    for source, path in candidate_locations(lens_config):
        table.add_row(source, str(path), "✅" if path.exists() else "❌")

    console.print(table)

    if resolved is None:
        console.print(
            f"❌ Coverage report not found. Set {lens_config.report.env_var} to override.",
            style="red",
        )
        sys.exit(1)

    console.print(f"📄 Using {resolved}", markup=False, soft_wrap=True)


@main.command("print-default-config")
def print_default_config() -> None:
    """Print default configuration to stdout."""
    config = get_default_config()

    yaml_output = yaml.safe_dump(config.model_dump(), default_flow_style=False, sort_keys=True)

    console.print("# Default coverage-lens configuration")
    console.print(yaml_output)


@main.command("init-config")
@click.option("--output", "-o", default="coverage-lens.yml", help="Output configuration file")
def init_config(output: str) -> None:
    """Initialize a configuration file with defaults."""
    config = get_default_config()

    try:
        save_config(config, output)
        console.print(f"✅ Configuration saved to {output}")
        console.print("Edit this file to customize report lookup.")
    except CoverageLensError as e:
        console.print(f"❌ Failed to save configuration: {e}", style="red")
        sys.exit(1)


@main.command("validate-config")
@click.option("--config", "-c", type=click.Path(exists=True), required=True, help="Configuration file")
def validate_config(config: str) -> None:
    """Validate a configuration file."""

    try:
        lens_config = load_config(config)
        console.print(f"✅ Configuration file {config} is valid")

        console.print("\n📋 Configuration Summary:")
        console.print(f"Report override variable: {lens_config.report.env_var}")
        console.print(f"Default report path: {lens_config.report.default_path}")
        console.print(f"Record tag: {lens_config.markers.record_tag}")

    except CoverageLensError as e:
        console.print(f"❌ Configuration validation failed: {e}", style="red")
        sys.exit(1)


@main.command("mcp-manifest")
@click.option("--output", "-o", help="Output file (default: stdout)")
def mcp_manifest_command(output: Optional[str]) -> None:
    """Generate MCP manifest JSON."""

    manifest = get_mcp_manifest()
    manifest_json = json.dumps(manifest.model_dump(), indent=2)

    if output:
        with open(output, "w") as f:
            f.write(manifest_json)
        console.print(f"✅ MCP manifest saved to {output}")
    else:
        click.echo(manifest_json)


@main.command("mcp-stdio")
@click.option("--config", "-c", type=click.Path(exists=True), help="Configuration file")
def mcp_stdio_command(config: Optional[str]) -> None:
    """Run MCP server over stdio."""

    try:
        lens_config = _load(config)

        from coverage_lens.api.stdio_server import run_stdio_server

        asyncio.run(run_stdio_server(lens_config))

    except KeyboardInterrupt:
        # Clean exit on Ctrl+C
        pass
    except Exception as e:
        # Log to stderr (won't interfere with stdio)
        print(f"MCP stdio server error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
