"""Command-line interface for tournament scheduling."""

import logging
from dataclasses import replace
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError

from .backtracking_scheduler import ValueOrdering, schedule_matches
from .config import SchedulerConfig, build_constraints
from .csv_exporter import export_schedule_csv
from .dtos import ProblemDefinition
from .models import SchedulingError
from .schedule_printer import format_schedule_for_printing, format_violation_report

logger = logging.getLogger(__name__)

EXIT_INVALID_INPUT = 1
EXIT_INFEASIBLE = 2

app = typer.Typer(
    name="tournament",
    help="Tournament match scheduling using backtracking search",
    no_args_is_help=True,
)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _load_problem(input_file: Path) -> ProblemDefinition:
    try:
        return ProblemDefinition.from_file(input_file)
    except ValidationError as e:
        typer.echo(f"Invalid problem file {input_file}:\n{e}", err=True)
        raise typer.Exit(EXIT_INVALID_INPUT)


@app.command("schedule")
def schedule(
    input_file: Annotated[
        Path,
        typer.Argument(
            help="Path to the JSON problem file",
            exists=True,
            readable=True,
        ),
    ],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the schedule to this CSV file"),
    ] = None,
    min_rest: Annotated[
        int | None,
        typer.Option("--min-rest", help="Minimum rest between a participant's matches, in minutes", min=0),
    ] = None,
    timeout: Annotated[
        float | None,
        typer.Option("--timeout", "-t", help="Give up the search after this many seconds", min=0.001),
    ] = None,
    value_ordering: Annotated[
        ValueOrdering | None,
        typer.Option("--value-ordering", help="How candidate slots are ranked", case_sensitive=False),
    ] = None,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Suppress detailed output"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Schedule the matches of a JSON problem file."""
    setup_logging(verbose)

    problem = _load_problem(input_file)

    try:
        config = SchedulerConfig.from_env()
        # Problem file rules override the environment, command line overrides both
        if problem.rules.minimum_rest_minutes is not None:
            config = replace(config, minimum_rest_minutes=problem.rules.minimum_rest_minutes)
        if min_rest is not None:
            config = replace(config, minimum_rest_minutes=min_rest)
        if timeout is not None:
            config = replace(config, timeout_seconds=timeout)
        if value_ordering is not None:
            config = replace(config, value_ordering=value_ordering)
        logger.debug(f"Effective configuration: {config}")

        context = problem.to_context()
        matches = problem.to_matches()
        slots = problem.to_slots()
        constraints = build_constraints(config, context)
    except SchedulingError as e:
        typer.echo(f"Invalid input: {e}", err=True)
        raise typer.Exit(EXIT_INVALID_INPUT)

    if not quiet:
        typer.echo(f"Loaded {problem.name}: {len(matches)} matches, {len(slots)} slots")
        typer.echo(f"Constraints: {', '.join(c.name for c in constraints)}")
        typer.echo("Searching for a schedule...")

    result = schedule_matches(
        matches,
        slots,
        constraints,
        context=context,
        timeout_seconds=config.timeout_seconds,
        value_ordering=config.value_ordering,
    )

    if not quiet:
        typer.echo(f"\n📅 {result.tournament_name}")
        typer.echo(format_schedule_for_printing(result, context))
        typer.echo("")
    typer.echo(format_violation_report(result))

    if output is not None:
        count = export_schedule_csv(result, output, context)
        typer.echo(f"\nCSV schedule saved to: {output.absolute()} ({count} matches)")

    if not result.is_feasible:
        typer.echo("Failed to find a feasible schedule", err=True)
        raise typer.Exit(EXIT_INFEASIBLE)


@app.command("info")
def info(
    input_file: Annotated[
        Path,
        typer.Argument(
            help="Path to the JSON problem file",
            exists=True,
            readable=True,
        ),
    ],
) -> None:
    """Show a summary of a problem file without scheduling it."""
    problem = _load_problem(input_file)
    try:
        slots = problem.to_slots()
    except SchedulingError as e:
        typer.echo(f"Invalid input: {e}", err=True)
        raise typer.Exit(EXIT_INVALID_INPUT)

    typer.echo(f"Tournament: {problem.name}")
    typer.echo(f"Participants: {len(problem.participants)}")
    seeded = sorted((p for p in problem.participants if p.seed is not None), key=lambda p: p.seed)
    for p in seeded:
        typer.echo(f"  #{p.seed} {p.name}")
    typer.echo(f"Fields: {len(problem.fields)}")
    typer.echo(f"Matches: {len(problem.matches)}")

    by_stage: dict[str, int] = {}
    for m in problem.matches:
        by_stage[m.stage.value] = by_stage.get(m.stage.value, 0) + 1
    for stage, count in by_stage.items():
        typer.echo(f"  {stage}: {count}")

    source = "explicit" if problem.slots is not None else "generated"
    typer.echo(f"Slots: {len(slots)} ({source})")
