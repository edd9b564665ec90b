"""PyArrow schema for exported simulation Parquet files."""

import pyarrow as pa

SIMULATION_COLUMNS = ["day", "state", "timestamp", "label"]


def build_simulation_schema() -> pa.Schema:
    """One row per simulated day: index, state label, seconds offset, location."""
    return pa.schema([
        pa.field("day", pa.int32()),
        pa.field("state", pa.string()),
        pa.field("timestamp", pa.int64()),
        pa.field("label", pa.string()),
    ])


SIMULATION_SCHEMA = build_simulation_schema()
