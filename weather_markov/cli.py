"""Command-line interface for the weather Markov chain."""

import json
import logging
from pathlib import Path

import click
import numpy as np

from weather_markov.config.constants import (
    DEFAULT_CITIES,
    DEFAULT_CITY,
    DEFAULT_HOST,
    DEFAULT_INITIAL_STATE,
    DEFAULT_PORT,
    DEFAULT_SIMULATION_DAYS,
    MAX_SIMULATION_DAYS,
    MIN_SIMULATION_DAYS,
    STATE_LABELS,
)
from weather_markov.config.schema import ApiSettings, ObservationSequence
from weather_markov.errors.exceptions import WeatherApiError, WeatherPayloadError
from weather_markov.ingest.weather_api import WeatherApiClient, parse_weather_payload
from weather_markov.simulation.session import MarkovSession
from weather_markov.simulation.transition_matrix import TransitionMatrix
from weather_markov.storage.parquet_writer import SimulationWriter

logger = logging.getLogger(__name__)


def _load_history(payload_path, city) -> ObservationSequence:
    """Observation history from a saved payload file or a live API fetch."""
    try:
        if payload_path is not None:
            return parse_weather_payload(Path(payload_path).read_text())
        client = WeatherApiClient(ApiSettings.from_env())
        return client.fetch_sequence(city)
    except (WeatherPayloadError, WeatherApiError) as exc:
        raise click.ClickException(str(exc)) from exc


def _format_matrix(matrix: TransitionMatrix) -> str:
    labels = [s.label for s in matrix.states]
    width = max(len(label) for label in labels) + 2
    lines = [" " * width + "".join(f"{label:>{width}}" for label in labels)]
    for label, row in zip(labels, matrix.P):
        lines.append(f"{label:<{width}}" + "".join(f"{p:>{width}.3f}" for p in row))
    return "\n".join(lines)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging.")
def main(verbose):
    """Weather prediction with a three-state Markov chain."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.option("--city", default=DEFAULT_CITY, help=f"City to fetch (e.g. {', '.join(DEFAULT_CITIES)}).")
@click.option("--payload", "payload_path", type=click.Path(exists=True, dir_okay=False),
              default=None, help="Saved WeatherAPI history JSON instead of a live fetch.")
@click.option("--json", "as_json", is_flag=True, help="Print the matrix as JSON.")
def matrix(city, payload_path, as_json):
    """Build and print the transition matrix for a city's history."""
    history = _load_history(payload_path, city)
    session = MarkovSession()
    built = session.load_history(history)

    if as_json:
        click.echo(json.dumps(built.to_dict(), indent=2))
    else:
        click.echo(f"Transition matrix for {history.label} ({len(history)} days)")
        click.echo(_format_matrix(built))


@main.command()
@click.option("--city", default=DEFAULT_CITY, help="City to fetch.")
@click.option("--payload", "payload_path", type=click.Path(exists=True, dir_okay=False),
              default=None, help="Saved WeatherAPI history JSON instead of a live fetch.")
@click.option("--days", default=DEFAULT_SIMULATION_DAYS,
              type=click.IntRange(MIN_SIMULATION_DAYS, MAX_SIMULATION_DAYS),
              help="Days to simulate, including day 0.")
@click.option("--initial-state", default=DEFAULT_INITIAL_STATE,
              type=click.Choice(STATE_LABELS, case_sensitive=False), help="Weather on day 0.")
@click.option("--seed", default=None, type=int, help="RNG seed for a reproducible run.")
@click.option("--output-dir", default=None, type=click.Path(file_okay=False),
              help="Write the simulated days to Parquet under this directory.")
def simulate(city, payload_path, days, initial_state, seed, output_dir):
    """Simulate future weather and report long-run statistics."""
    history = _load_history(payload_path, city)
    session = MarkovSession(rng=np.random.default_rng(seed))
    session.load_history(history)

    result = session.simulate(days, initial_state)
    stats = session.statistics()

    click.echo(f"Simulated {len(result)} days for {history.label} from {initial_state}:")
    click.echo(" ".join(obs.state.label for obs in result))
    click.echo("")
    click.echo(f"{'State':<8}{'Steady':>10}{'Simulated':>12}{'Avg streak':>12}")
    for i, state in enumerate(stats.states):
        click.echo(
            f"{state.label:<8}{stats.steady_state[i]:>10.3f}"
            f"{stats.distribution[i]:>12.3f}{stats.average_streaks[i]:>12.2f}"
        )
    if not stats.converged:
        click.echo("Warning: steady state did not converge; values are approximate.", err=True)

    if output_dir is not None:
        path = SimulationWriter(Path(output_dir)).write_simulation(result, history.label)
        logger.info(f"Simulation written to {path}")


@main.command()
@click.option("--host", default=DEFAULT_HOST, help="Host to bind.")
@click.option("--port", default=DEFAULT_PORT, type=int, help="Port to bind.")
@click.option("--seed", default=None, type=int, help="RNG seed for the server session.")
def serve(host, port, seed):
    """Run the JSON HTTP API."""
    from weather_markov.web.api_server import run_server

    run_server(host=host, port=port, session=MarkovSession(rng=np.random.default_rng(seed)))


if __name__ == "__main__":
    main()
