"""Command line interface entry point."""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable

import click

from stack_orchestrator.cli_rendering import render_stack_event
from stack_orchestrator.configuration import (
    DEFAULT_CONFIG_FILENAME,
    Configuration,
    ConfigurationError,
    load_configuration,
    write_placeholder_configuration,
)
from stack_orchestrator.engine import EngineError, PulumiCliEngine
from stack_orchestrator.event_aggregation import StackEvent
from stack_orchestrator.program_build import BuildError, PrebuiltProgramBuilder
from stack_orchestrator.resource_import import (
    ImportRequest,
    ResourceImportError,
    UrnError,
    import_resource,
)
from stack_orchestrator.run_execution import (
    Operation,
    RunRequest,
    StackRunFailedError,
    StageNotFoundError,
    execute_stack_run,
    unlock_stage,
)
from stack_orchestrator.stack_state import ConcurrentUpdateError, SnapshotError
from stack_orchestrator.stage_backends import BackendError, create_backend

_DOMAIN_ERRORS = (
    ConfigurationError,
    BackendError,
    BuildError,
    EngineError,
    SnapshotError,
    StageNotFoundError,
    StackRunFailedError,
    ResourceImportError,
    UrnError,
    OSError,
)


class CliError(Exception):
    """Custom CLI error."""


def _config_option(command: Callable[..., None]) -> Callable[..., None]:
    command = click.option(
        "--stage",
        "stage",
        required=False,
        help="Stage to target instead of the configured app.stage",
    )(command)
    return click.option(
        "--config",
        "config_path",
        required=False,
        default=DEFAULT_CONFIG_FILENAME,
        show_default=True,
        type=click.Path(path_type=str),
        help="Path to the YAML/JSON project configuration file",
    )(command)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="stack-orchestrator")
@click.option("--verbose", is_flag=True, default=False, help="Log progress and engine output.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Locked, state-synchronized infrastructure deployments."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    _configure_logging(verbose)


@cli.command(name="generate-config")
@click.option(
    "--output",
    "output_path",
    required=False,
    default=DEFAULT_CONFIG_FILENAME,
    show_default=True,
    type=click.Path(path_type=str),
    help="Path to the YAML project configuration template to write",
)
def generate_config(output_path: str) -> None:
    """Generate a placeholder YAML project configuration with guidance comments."""
    try:
        resolved_output = write_placeholder_configuration(output_path)
    except (FileExistsError, OSError) as exc:
        raise CliError(str(exc)) from exc
    click.echo(str(resolved_output))


@cli.command(name="deploy")
@_config_option
@click.option("--dev", is_flag=True, default=False, help="Run the program in dev mode.")
@click.pass_context
def deploy(ctx: click.Context, config_path: str, stage: str | None, dev: bool) -> None:
    """Create or update every resource of the stage."""
    _run_stack_command(ctx, Operation.APPLY, config_path, stage, dev)


@cli.command(name="remove")
@_config_option
@click.option("--dev", is_flag=True, default=False, help="Run the program in dev mode.")
@click.pass_context
def remove(ctx: click.Context, config_path: str, stage: str | None, dev: bool) -> None:
    """Destroy every resource of the stage."""
    _run_stack_command(ctx, Operation.DESTROY, config_path, stage, dev)


@cli.command(name="refresh")
@_config_option
@click.option("--dev", is_flag=True, default=False, help="Run the program in dev mode.")
@click.pass_context
def refresh(ctx: click.Context, config_path: str, stage: str | None, dev: bool) -> None:
    """Reconcile the stage's state with the live resources."""
    _run_stack_command(ctx, Operation.REFRESH, config_path, stage, dev)


@cli.command(name="import")
@_config_option
@click.argument("resource_type")
@click.argument("name")
@click.argument("resource_id")
@click.option(
    "--parent",
    "parent",
    required=False,
    help="Parent resource as <type>::<name>",
)
def import_command(
    config_path: str,
    stage: str | None,
    resource_type: str,
    name: str,
    resource_id: str,
    parent: str | None,
) -> None:
    """Bring an existing resource under management without recreating it."""
    configuration = _load(config_path, stage)
    try:
        outcome = import_resource(
            ImportRequest(resource_type=resource_type, name=name, id=resource_id, parent=parent),
            configuration=configuration,
            backend=create_backend(configuration.backend),
            engine=PulumiCliEngine(configuration.engine.binary),
        )
    except ConcurrentUpdateError as exc:
        raise CliError(f"Another deployment is in progress: {exc}") from exc
    except _DOMAIN_ERRORS as exc:
        raise CliError(str(exc)) from exc
    verb = "imported" if outcome.created else "updated"
    click.echo(f"{verb} {outcome.record.urn}")


@cli.command(name="unlock")
@_config_option
def unlock(config_path: str, stage: str | None) -> None:
    """Release the stage lock left behind by an interrupted run."""
    configuration = _load(config_path, stage)
    try:
        key = unlock_stage(configuration, create_backend(configuration.backend))
    except _DOMAIN_ERRORS as exc:
        raise CliError(str(exc)) from exc
    click.echo(f"unlocked {key.app}/{key.stage}")


def _run_stack_command(
    ctx: click.Context,
    operation: Operation,
    config_path: str,
    stage: str | None,
    dev: bool,
) -> None:
    configuration = _load(config_path, stage)
    verbose = bool(ctx.obj.get("verbose", False)) if ctx.obj else False

    def on_event(event: StackEvent) -> None:
        for line in render_stack_event(event, verbose=verbose):
            click.echo(line)

    try:
        execute_stack_run(
            RunRequest(operation=operation, on_event=on_event, dev=dev),
            configuration=configuration,
            backend=create_backend(configuration.backend),
            engine=PulumiCliEngine(configuration.engine.binary),
            builder=PrebuiltProgramBuilder(configuration.program.entry),
        )
    except ConcurrentUpdateError as exc:
        raise CliError(f"Another deployment is in progress: {exc}") from exc
    except _DOMAIN_ERRORS as exc:
        raise CliError(str(exc)) from exc


def _load(config_path: str, stage: str | None) -> Configuration:
    try:
        return load_configuration(config_path).with_stage(stage)
    except ConfigurationError as exc:
        raise CliError(str(exc)) from exc


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for console_scripts wiring."""
    argv = argv if argv is not None else sys.argv[1:]
    try:
        cli.main(args=list(argv), standalone_mode=False)
    except CliError as exc:
        click.echo(str(exc), err=True)
        return 1
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except click.Abort:
        click.echo("Aborted.", err=True)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
