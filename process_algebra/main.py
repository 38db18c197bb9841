"""
Main CLI entry point for the process model algebra.

Usage:
    python -m process_algebra filter dfg.json --strategy tweg
    python -m process_algebra translate model.json --to petri_net
    python -m process_algebra replay model.json event_log.json --timeout 5
"""

import click
import json
import logging
import sys
from pathlib import Path
from typing import Any, NoReturn, Optional

from . import DEFAULT_CONFIG, __version__
from .exceptions import ProcessAlgebraError
from .optimize import FilterStrategy, collapse_all_cycles, filter_edges
from .reduce import reduce_net
from .replay import ReplayChecker
from .serialization import convert_for_json, model_from_dict, model_to_dict
from .translate import TRANSLATORS, ProcessModel, to_directly_follows_graph, to_petri_net

logger = logging.getLogger(__name__)

LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR']


class CliContext:
    """Holds configuration shared by CLI commands."""

    def __init__(self):
        self.config = DEFAULT_CONFIG.copy()


pass_context = click.make_pass_decorator(CliContext, ensure=True)


def _fail(message: str) -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _load_json(path: str) -> Any:
    try:
        with open(path, 'r') as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        _fail(f"{path} is not valid JSON: {e}")


def _load_model(path: str) -> ProcessModel:
    model = model_from_dict(_load_json(path))
    logger.info(f"Loaded {type(model).__name__} '{model.id}' from {path}")
    return model


def _write_output(data: Any, output: Optional[str]) -> None:
    """Write a JSON document to a file, or to stdout when no file is given."""
    text = json.dumps(convert_for_json(data), indent=2, default=str)
    if output:
        output_path = Path(output)
        output_path.write_text(text + "\n")
        click.echo(f"Wrote {output_path}", err=True)
    else:
        click.echo(text)


@click.group()
@click.version_option(version=__version__)
@click.option('--log-level', type=click.Choice(LOG_LEVELS, case_sensitive=False),
              default=DEFAULT_CONFIG['log_level'], help='Logging verbosity (stderr)')
@click.pass_context
def cli(ctx, log_level: str):
    """Process Model Graph Algebra

    Transforms, optimizes and replays process models stored as JSON:
    directly-follows graphs, causal nets, causal matrices and Petri nets.
    """
    ctx.ensure_object(CliContext)
    ctx.obj.config['log_level'] = log_level.upper()
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )


@cli.command(name='filter')
@click.argument('input_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--strategy', '-s', type=click.Choice([s.value for s in FilterStrategy]),
              default=None, help='Arc filtering strategy (default: tweg)')
@click.option('--minimum', is_flag=True, default=False,
              help='Keep the arcs of minimum instead of maximum weight')
@click.option('--output', '-o', type=click.Path(), default=None,
              help='Output file (default: stdout)')
@pass_context
def filter_command(ctx, input_file: str, strategy: Optional[str], minimum: bool,
                   output: Optional[str]):
    """Filter the arcs of a directly-follows graph.

    The graph must be connected, with a single root and a single sink, and
    every activity must lie on a path from the root to the sink.
    """
    strategy = strategy or ctx.config['filter_strategy']
    minimum = minimum or ctx.config['minimize_weight']

    try:
        dfg = to_directly_follows_graph(_load_model(input_file))
        filtered = filter_edges(dfg, strategy, minimum=minimum)
    except ProcessAlgebraError as e:
        _fail(str(e))

    logger.info(f"{strategy} kept {len(filtered.arcs)} of {len(dfg.arcs)} arcs")
    _write_output(model_to_dict(filtered), output)


@cli.command()
@click.argument('input_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', type=click.Path(), default=None,
              help='Output file (default: stdout)')
@pass_context
def collapse(ctx, input_file: str, output: Optional[str]):
    """Collapse every cycle of a directly-follows graph into one activity."""
    try:
        dfg = to_directly_follows_graph(_load_model(input_file))
        collapsed = collapse_all_cycles(dfg)
    except ProcessAlgebraError as e:
        _fail(str(e))

    _write_output(model_to_dict(collapsed), output)


@cli.command()
@click.argument('input_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', type=click.Path(), default=None,
              help='Output file (default: stdout)')
@pass_context
def reduce(ctx, input_file: str, output: Optional[str]):
    """Reduce a Petri net by removing redundant places and silent transitions."""
    try:
        net = to_petri_net(_load_model(input_file))
        reduced = reduce_net(net)
    except ProcessAlgebraError as e:
        _fail(str(e))

    logger.info(
        f"Reduced '{net.id}' from {len(net.places) + len(net.transitions)} "
        f"to {len(reduced.places) + len(reduced.transitions)} nodes"
    )
    _write_output(model_to_dict(reduced), output)


@cli.command()
@click.argument('input_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--to', 'target', required=True, type=click.Choice(sorted(TRANSLATORS)),
              help='Target formalism')
@click.option('--output', '-o', type=click.Path(), default=None,
              help='Output file (default: stdout)')
@pass_context
def translate(ctx, input_file: str, target: str, output: Optional[str]):
    """Translate a process model to another formalism.

    Causal net and causal matrix conversions that cannot preserve the
    behavior exactly are reported as warnings and recorded in the
    'fidelity' field of the result.
    """
    try:
        translated = TRANSLATORS[target](_load_model(input_file))
    except ProcessAlgebraError as e:
        _fail(str(e))

    _write_output(model_to_dict(translated), output)


@cli.command()
@click.argument('model_file', type=click.Path(exists=True, dir_okay=False))
@click.argument('log_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--timeout', '-t', type=float, default=None,
              help='Replay timeout per trace in seconds')
@click.option('--workers', '-w', type=click.IntRange(min=1), default=None,
              help='Number of traces replayed concurrently')
@click.option('--output', '-o', type=click.Path(), default=None,
              help='Output file (default: stdout)')
@pass_context
def replay(ctx, model_file: str, log_file: str, timeout: Optional[float],
           workers: Optional[int], output: Optional[str]):
    """Replay an event log on a process model.

    The event log is either a list of cases ({"case_id", "events"}) or a
    flat list of events ({"case_id", "activity", "timestamp"}).
    """
    if timeout is not None:
        ctx.config['replay_timeout'] = timeout
    if workers is not None:
        ctx.config['replay_workers'] = workers

    event_log = _load_json(log_file)
    if not isinstance(event_log, list):
        _fail(f"{log_file} must contain a list of cases or events")

    try:
        checker = ReplayChecker(
            _load_model(model_file),
            timeout=ctx.config['replay_timeout'],
            max_workers=ctx.config['replay_workers'],
        )
        if event_log and all("events" in case for case in event_log):
            result = checker.check_log(event_log)
        else:
            result = checker.check_flat_log(event_log)
    except ProcessAlgebraError as e:
        _fail(str(e))

    click.echo(
        f"{result.fitting_cases}/{result.total_cases} cases fit "
        f"(fitness {result.fitness:.2%})",
        err=True
    )
    _write_output(result.to_dict(), output)


def main():
    """Main entry point."""
    cli()


if __name__ == '__main__':
    main()
