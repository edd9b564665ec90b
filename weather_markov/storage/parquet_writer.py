"""Export simulated weather sequences to Parquet."""

import re
from pathlib import Path

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from weather_markov.config.schema import SimulationResult
from weather_markov.storage.schema_definition import SIMULATION_COLUMNS, SIMULATION_SCHEMA


def _slug(label: str) -> str:
    slug = re.sub(r"[^A-Za-z0-9]+", "_", label).strip("_").lower()
    return slug or "unlabelled"


class SimulationWriter:
    """Writes simulation results to Parquet files under ``output_dir``."""

    def __init__(self, output_dir: Path):
        self.output_dir = Path(output_dir)

    def write_simulation(self, result: SimulationResult, label: str) -> Path:
        """Write one Parquet file for a simulation.

        Args:
            result: Simulated sequence.
            label: Location the history came from.

        Returns:
            Path to ``<output_dir>/<label>/simulation_<days>d.parquet``.
        """
        rows = [dict(record, label=label) for record in result.to_records()]
        df = pd.DataFrame(rows, columns=SIMULATION_COLUMNS)

        target_dir = self.output_dir / _slug(label)
        target_dir.mkdir(parents=True, exist_ok=True)
        output_path = target_dir / f"simulation_{len(result):03d}d.parquet"

        table = pa.Table.from_pandas(df, schema=SIMULATION_SCHEMA, preserve_index=False)
        pq.write_table(table, output_path, compression="snappy")

        return output_path
