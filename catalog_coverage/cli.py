"""CLI entry point for catalog-coverage."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Optional

import click

from catalog_coverage import __version__
from catalog_coverage.config.settings import DEFAULT_CONFIG_FILE, CoverageConfig, load_config
from catalog_coverage.exchange import ExchangeStore
from catalog_coverage.registry import CoverageRegistry, FilterSet
from catalog_coverage.reporter import coverage_test
from catalog_coverage.utils.logging import configure_logging, get_logger
from catalog_coverage.utils.result import ExchangeError, ExitCode


class Context:
    """CLI context for sharing state between commands."""

    def __init__(
        self,
        config: CoverageConfig,
        working_dir: Path,
    ) -> None:
        self.config = config
        self.working_dir = working_dir
        self.logger = get_logger("cli")

    def store(self) -> ExchangeStore:
        return ExchangeStore(
            directory=self.config.exchange_directory(),
            working_dir=self.working_dir,
            filter_prefix=self.config.exchange.filter_prefix,
            result_prefix=self.config.exchange.result_prefix,
        )


pass_context = click.make_pass_decorator(Context)


def output_json(data: dict) -> None:
    """Output JSON to stdout."""
    click.echo(json.dumps(data, indent=2, default=str))


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=False, path_type=Path),
    default=DEFAULT_CONFIG_FILE,
    help="Path to YAML configuration file",
)
@click.option(
    "--working-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Working directory the test run was started from (default: cwd)",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warn", "error"], case_sensitive=False),
    default=None,
    help="Logging level",
)
@click.option(
    "--log-format",
    type=click.Choice(["json", "text"], case_sensitive=False),
    default=None,
    help="Log format",
)
@click.version_option(version=__version__)
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Path,
    working_dir: Optional[Path],
    log_level: Optional[str],
    log_format: Optional[str],
) -> None:
    """
    Catalog coverage - resource coverage for configuration test suites.

    Merges the partial results that parallel test workers leave in the
    exchange directory and reports which declared resources were touched.
    """
    result = load_config(config_path)
    if result.is_err():
        click.echo(str(result.unwrap_err()), err=True)
        ctx.exit(ExitCode.CONFIG_INVALID)
    config = result.unwrap()

    configure_logging(
        level=log_level or config.logging.level,
        format_type=log_format or config.logging.format,
    )

    ctx.obj = Context(
        config=config,
        working_dir=(working_dir or Path.cwd()).resolve(),
    )


@cli.command()
@pass_context
def pending(ctx: Context) -> None:
    """List exchange files waiting to be merged."""
    store = ctx.store()
    paths = store.pending()

    output_json({
        "directory": str(store.directory),
        "fingerprint": store.fingerprint,
        "filters": [str(p) for p in paths if p.name.startswith(store.filter_prefix)],
        "results": [str(p) for p in paths if p.name.startswith(store.result_prefix)],
    })


@cli.command()
@click.option(
    "--desired",
    type=float,
    default=None,
    help="Desired coverage percentage (default: from config, else 0)",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"], case_sensitive=False),
    default="text",
    help="Output format",
)
@pass_context
def merge(ctx: Context, desired: Optional[float], output_format: str) -> None:
    """Merge all pending worker results and print the coverage report."""
    store = ctx.store()
    registry = CoverageRegistry(filters=FilterSet(ctx.config.default_filters))

    ctx.logger.info("merge_started", directory=str(store.directory), slug=store.slug)

    try:
        store.merge_filters(registry)
        store.merge_results(registry)
    except ExchangeError as e:
        ctx.logger.error("merge_failed", path=e.path, error=e.message)
        click.echo(f"Merge failed: {e}", err=True)
        sys.exit(ExitCode.MERGE_FAILED)

    report = registry.results()
    if desired is None:
        desired = ctx.config.desired_coverage

    echo = click.echo if output_format == "text" else (lambda message: click.echo(message, err=True))
    outcome = coverage_test(desired, report, echo=echo)

    if output_format == "json":
        output_json({
            "report": report.to_dict(),
            "check": outcome.to_dict(),
        })
    else:
        click.echo(report.text)
        if not outcome.skipped:
            click.echo(f"\n{outcome.name}: {'passed' if outcome.passed else 'FAILED'}")

    if outcome.failed:
        sys.exit(ExitCode.COVERAGE_BELOW_THRESHOLD)


@cli.command()
@pass_context
def clean(ctx: Context) -> None:
    """Delete pending exchange files without merging them."""
    removed = ctx.store().discard()

    output_json({
        "status": "success",
        "removed": removed,
    })


def main() -> None:
    """Main entry point."""
    try:
        cli()
    except OSError as e:
        logger = get_logger("cli")
        logger.error("cli_error", error=str(e))
        sys.exit(ExitCode.GENERAL_ERROR)


if __name__ == "__main__":
    main()
