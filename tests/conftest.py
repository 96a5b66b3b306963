from __future__ import annotations

import numpy as np
import pandas as pd
import pytest


def _readings(n_stations: int = 3, days: int = 2, freq: str = '15min', seed: int = 7) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    ts = pd.date_range('2024-03-04', periods=days * 24 * 4, freq=freq)
    parts = []
    for sid in range(400001, 400001 + n_stations):
        hour = ts.hour.to_numpy()
        base = 40 + 60 * np.exp(-((hour - 8) ** 2) / 6.0) + 50 * np.exp(-((hour - 17) ** 2) / 6.0)
        flow = np.round(base + rng.normal(0, 5, len(ts))).clip(0)
        occ = (flow / 400.0 + rng.normal(0, 0.01, len(ts))).clip(0, 1)
        speed = (70 - 80 * occ + rng.normal(0, 1, len(ts))).clip(5, None)
        parts.append(pd.DataFrame({
            'Timestamp': ts.strftime('%m/%d/%Y %H:%M:%S'),
            'Station': sid,
            'Lanes Observed': 3,
            'Avg Occupancy': occ,
            'Avg Speed': speed,
            'Total Flow': flow,
        }))
    return pd.concat(parts, ignore_index=True)


def _metadata(n_stations: int = 3) -> pd.DataFrame:
    ids = list(range(400001, 400001 + n_stations))
    return pd.DataFrame({
        'ID': ids,
        'Fwy': [101] * n_stations,
        'Dir': ['N' if i % 2 else 'S' for i in ids],
        'District': [4] * n_stations,
        'Lanes': [3] * n_stations,
        'Type': ['ML'] * n_stations,
    })


@pytest.fixture
def raw_readings() -> pd.DataFrame:
    return _readings()


@pytest.fixture
def raw_metadata() -> pd.DataFrame:
    return _metadata()


@pytest.fixture
def csv_paths(tmp_path, raw_readings, raw_metadata):
    readings_path = tmp_path / 'readings.csv'
    metadata_path = tmp_path / 'meta.csv'
    raw_readings.to_csv(readings_path, index=False)
    raw_metadata.to_csv(metadata_path, index=False)
    return readings_path, metadata_path


@pytest.fixture
def dataset(csv_paths) -> pd.DataFrame:
    from traffic_mapreduce.loading import join_readings, load_metadata, load_readings

    readings_path, metadata_path = csv_paths
    return join_readings(load_readings(readings_path), load_metadata(metadata_path))
