"""Main CLI entry point for quire.

Administrative commands for a deployed study: register a configuration,
publish a sequence pool and inspect or change feature flags.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path

import click

from quire import __version__
from quire.cli.utils import (
    console,
    load_config_for_cli,
    load_document,
    modes_table,
    print_error,
    print_info,
    print_success,
)
from quire.config import QuireConfig
from quire.data.hashing import hash_config
from quire.engines import StorageEngine, StudyContext, create_engine
from quire.errors import QuireError

MODE_NAMES = (
    "dataCollectionEnabled",
    "studyNavigatorEnabled",
    "analyticsInterfacePubliclyAccessible",
)


def _run[T](engine: StorageEngine, operation: Callable[[], Awaitable[T]]) -> T:
    """Sign in, run an engine operation and turn quire errors into CLI errors."""

    async def main() -> T:
        await engine.connect()
        return await operation()

    try:
        return asyncio.run(main())
    except QuireError as e:
        print_error(str(e), exit_code=0)
        click.get_current_context().exit(1)


def _engine(ctx: click.Context) -> StorageEngine:
    config: QuireConfig = ctx.obj["config"]
    return create_engine(config)


@click.group()
@click.version_option(version=__version__, prog_name="quire")
@click.option(
    "--config-file",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Path to configuration file (default: defaults and QUIRE_ variables)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable debug logging",
)
@click.pass_context
def cli(ctx: click.Context, config_file: Path | None, verbose: bool) -> None:
    r"""Administer studies stored by quire.

    \b
    Examples:
        $ quire config-hash study.yaml
        $ quire -c quire.yaml init-study pilot study.yaml
        $ quire -c quire.yaml sequences set pilot latin_square.json
        $ quire -c quire.yaml modes set pilot dataCollectionEnabled false
    """
    ctx.ensure_object(dict)
    ctx.obj["config"] = load_config_for_cli(config_file, verbose)


@cli.command("config-hash")
@click.argument(
    "config_path", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
def config_hash(config_path: Path) -> None:
    """Print the version hash of a study configuration file."""
    try:
        document = load_document(config_path)
    except ValueError as e:
        print_error(str(e))
    click.echo(hash_config(document).hash)


@cli.command("init-study")
@click.argument("study_id")
@click.argument(
    "config_path", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.pass_context
def init_study(ctx: click.Context, study_id: str, config_path: Path) -> None:
    """Register STUDY_ID and make CONFIG_PATH its current configuration."""
    try:
        document = load_document(config_path)
    except ValueError as e:
        print_error(str(e))
    if not isinstance(document, dict):
        print_error(f"{config_path} does not contain a mapping")

    engine = _engine(ctx)

    async def run() -> str | None:
        study = await engine.initialize_study_db(study_id, document)
        return await engine.get_current_config_hash(study)

    current = _run(engine, run)
    print_success(f"Study {study_id} initialized with config {current}")


@cli.group()
def sequences() -> None:
    """Manage the sequence pool of a study."""


@sequences.command("set")
@click.argument("study_id")
@click.argument(
    "pool_path", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.pass_context
def sequences_set(ctx: click.Context, study_id: str, pool_path: Path) -> None:
    """Publish the sequences in POOL_PATH (a list of task lists)."""
    try:
        pool = load_document(pool_path)
    except ValueError as e:
        print_error(str(e))
    if not isinstance(pool, list) or not all(isinstance(row, list) for row in pool):
        print_error(f"{pool_path} must contain a list of task lists")

    engine = _engine(ctx)
    rows = [[str(task) for task in row] for row in pool]
    _run(engine, lambda: engine.set_sequence_array(StudyContext(study_id), rows))
    print_success(f"Published {len(rows)} sequences for {study_id}")


@sequences.command("show")
@click.argument("study_id")
@click.pass_context
def sequences_show(ctx: click.Context, study_id: str) -> None:
    """Print the published sequence pool of STUDY_ID."""
    engine = _engine(ctx)
    pool = _run(engine, lambda: engine.get_sequence_array(StudyContext(study_id)))
    if pool is None:
        print_info(f"No sequence pool published for {study_id}")
        return
    for index, row in enumerate(pool, start=1):
        console.print(f"{index:>4}  {' '.join(row)}")


@cli.group()
def modes() -> None:
    """Inspect and change study feature flags."""


@modes.command("show")
@click.argument("study_id")
@click.pass_context
def modes_show(ctx: click.Context, study_id: str) -> None:
    """Print the feature flags of STUDY_ID."""
    engine = _engine(ctx)
    current = _run(engine, lambda: engine.get_modes(study_id))
    console.print(modes_table(study_id, current.to_document()))


@modes.command("set")
@click.argument("study_id")
@click.argument("mode", type=click.Choice(MODE_NAMES))
@click.argument("value", type=click.BOOL)
@click.pass_context
def modes_set(ctx: click.Context, study_id: str, mode: str, value: bool) -> None:
    """Set feature flag MODE of STUDY_ID to VALUE."""
    engine = _engine(ctx)
    current = _run(
        engine,
        lambda: engine.set_mode(study_id, mode, value),  # type: ignore[arg-type]
    )
    console.print(modes_table(study_id, current.to_document()))


if __name__ == "__main__":
    cli()
