"""
Command-line interface for the satellite pass predictor.

This module provides a CLI for predicting overhead passes and managing
TLE data from the command line.
"""

from pathlib import Path
from typing import Dict, Optional, Tuple
import json
import logging
import sys

import click
from tabulate import tabulate

from .config import AppConfig, PredictionConfig, load_config
from .predictor import Observer, PassResult
from .scheduler import PassScheduler
from .sources import export_element_sets, fetch_element_sets, load_element_sets
from .utils import (
    format_coordinates, format_duration, format_pass_time, parse_datetime,
    setup_logging, validate_coordinates
)

logger = logging.getLogger(__name__)


def _parse_sources(
    ctx: click.Context, param: click.Parameter, values: Tuple[str, ...]
) -> Dict[str, str]:
    sources: Dict[str, str] = {}
    for value in values:
        key, sep, url = value.partition("=")
        if not sep or not key.strip() or not url.strip():
            raise click.BadParameter(f"expected KEY=URL, got '{value}'")
        sources[key.strip().lower()] = url.strip()
    return sources


def _results_table(results: Dict[str, PassResult]) -> str:
    rows = []
    for key, result in results.items():
        if result.found:
            status = "pass"
        elif result.errored:
            status = "error"
        else:
            status = "none"
        rows.append([
            key.upper(),
            status,
            format_pass_time(result.pass_time, local=False) if result.pass_time else "-",
            f"{result.distance_km:.1f}" if result.distance_km is not None else "-",
            format_coordinates(result.position.latitude, result.position.longitude)
            if result.position else "-",
        ])
    return tabulate(
        rows,
        headers=["Object", "Status", "Pass time", "Distance (km)", "Sub-satellite point"],
        tablefmt="grid",
    )


@click.group()
@click.option('--log-level', default='INFO',
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
              help='Set logging level')
@click.option('--log-file', type=click.Path(), help='Log file path')
@click.option('--config', 'config_path', type=click.Path(exists=True),
              help='YAML configuration file')
@click.pass_context
def main(ctx: click.Context, log_level: str, log_file: Optional[str],
         config_path: Optional[str]) -> None:
    """Satellite Pass Predictor - Find when satellites next pass overhead."""
    setup_logging(log_level, log_file)
    try:
        ctx.obj = load_config(config_path)
    except ValueError as e:
        raise click.UsageError(str(e))
    logger.info("Starting Satellite Pass Predictor CLI")


@main.command()
@click.option('--lat', 'latitude', required=True, type=float,
              help='Observer latitude in degrees')
@click.option('--lon', 'longitude', required=True, type=float,
              help='Observer longitude in degrees')
@click.option('--tle', type=click.Path(exists=True),
              help='TLE file to read instead of fetching from sources')
@click.option('--source', 'sources', multiple=True, callback=_parse_sources,
              metavar='KEY=URL',
              help='TLE API source (can specify multiple, default: configured sources)')
@click.option('--start-time', type=str,
              help='Start time (YYYY-MM-DD HH:MM:SS UTC, default: now)')
@click.option('--step-seconds', type=float,
              help='Sampling interval in seconds (default: 600)')
@click.option('--max-steps', type=int,
              help='Number of steps in the horizon (default: 12)')
@click.option('--threshold-km', type=float,
              help='Overhead distance threshold in km (default: 1000)')
@click.option('--parallel', is_flag=True, default=False,
              help='Predict objects concurrently')
@click.option('--format', 'output_format', default='text',
              type=click.Choice(['text', 'json']),
              help='Output format')
@click.pass_obj
def next_pass(
    app_config: AppConfig,
    latitude: float,
    longitude: float,
    tle: Optional[str],
    sources: Dict[str, str],
    start_time: Optional[str],
    step_seconds: Optional[float],
    max_steps: Optional[int],
    threshold_km: Optional[float],
    parallel: bool,
    output_format: str,
) -> None:
    """Find the next overhead pass of each tracked satellite.

    Example:
    next-pass --lat 40.0 --lon -75.0
    next-pass --lat 40.0 --lon -75.0 --tle landsat.tle --threshold-km 500
    """
    if not validate_coordinates(latitude, longitude):
        raise click.BadParameter(
            f"invalid observer coordinates {latitude}, {longitude}",
            param_hint="'--lat' / '--lon'",
        )

    base = app_config.prediction
    try:
        config = PredictionConfig(
            step_seconds=step_seconds if step_seconds is not None else base.step_seconds,
            max_steps=max_steps if max_steps is not None else base.max_steps,
            threshold_km=threshold_km if threshold_km is not None else base.threshold_km,
            max_workers=base.max_workers,
            parallel=base.parallel or parallel,
        )
        start_dt = parse_datetime(start_time) if start_time else None
    except ValueError as e:
        raise click.UsageError(str(e))

    observer = Observer(latitude, longitude)
    scheduler = PassScheduler(config)

    try:
        if tle:
            element_sets = load_element_sets(tle)
            if not element_sets:
                click.echo(f"No element sets found in {tle}", err=True)
                sys.exit(1)
            results = scheduler.predict_all(element_sets, observer, start_dt)
        else:
            results = scheduler.predict_from_sources(
                sources or app_config.sources, observer, start_dt,
                timeout=app_config.request_timeout_seconds
            )
    except OSError as e:
        logger.error(f"Pass prediction failed: {e}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if output_format == 'json':
        click.echo(json.dumps({
            "observer": {"latitude": latitude, "longitude": longitude},
            "config": config.to_dict(),
            "results": {key: result.to_dict() for key, result in results.items()},
            "markers": [r.marker() for r in results.values() if r.marker()],
        }, indent=2))
        return

    click.echo(f"\nObserver: {format_coordinates(latitude, longitude)}")
    click.echo(f"Horizon: {format_duration(config.horizon_seconds)}, "
               f"step: {format_duration(config.step_seconds)}, "
               f"threshold: {config.threshold_km:.0f} km")
    click.echo(_results_table(results))
    click.echo("")
    for result in results.values():
        click.echo(result.describe())


@main.command()
@click.option('--output', required=True, type=click.Path(),
              help='Output TLE file path')
@click.option('--source', 'sources', multiple=True, callback=_parse_sources,
              metavar='KEY=URL',
              help='TLE API source (can specify multiple, default: configured sources)')
@click.pass_obj
def download_tle(app_config: AppConfig, output: str, sources: Dict[str, str]) -> None:
    """Download TLE data for the tracked satellites."""
    sources = sources or app_config.sources
    fetched, failures = fetch_element_sets(
        sources, timeout=app_config.request_timeout_seconds
    )

    for key in sources:
        if key in failures:
            click.echo(f"Failed to fetch {key.upper()}: {failures[key].reason}", err=True)

    element_sets = {key: fetched[key] for key in sources if key in fetched}
    if not element_sets:
        click.echo("Download failed", err=True)
        sys.exit(1)

    path = export_element_sets(element_sets, Path(output))
    click.echo(f"TLE data for {len(element_sets)} satellites saved to: {path}")


@main.command()
@click.pass_obj
def list_sources(app_config: AppConfig) -> None:
    """List configured TLE data sources."""
    click.echo("Configured TLE sources:")
    for name, url in app_config.sources.items():
        click.echo(f"  {name:<20} {url}")


if __name__ == '__main__':
    main()
