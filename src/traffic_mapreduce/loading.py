from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING

import pandas as pd

if TYPE_CHECKING:
    from .config import ProjectConfig

logger = logging.getLogger(__name__)

READING_COLS = ['station_id', 'timestamp', 'lane_count', 'occupancy', 'speed', 'flow']
NUMERIC_COLS = ['lane_count', 'occupancy', 'speed', 'flow']

# snake-cased raw header -> canonical column
COLUMN_ALIASES = {
    'station': 'station_id',
    'id': 'station_id',
    'station_number': 'station_id',
    'time': 'timestamp',
    'datetime': 'timestamp',
    'total_flow': 'flow',
    'avg_occupancy': 'occupancy',
    'avg_speed': 'speed',
    'lanes_observed': 'lane_count',
    'fwy': 'freeway',
    'dir': 'direction',
    'type': 'station_type',
    'lat': 'latitude',
    'lon': 'longitude',
    'lng': 'longitude',
}


def _snake(name: str) -> str:
    s = re.sub(r'[^0-9a-zA-Z]+', '_', str(name).strip()).strip('_')
    return s.lower()


def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    cols = {}
    for c in df.columns:
        s = _snake(c)
        cols[c] = COLUMN_ALIASES.get(s, s)
    return df.rename(columns=cols)


def _require(df: pd.DataFrame, cols, what: str) -> None:
    for c in cols:
        if c not in df.columns:
            raise ValueError(f'{what}: missing required column: {c}')


def load_readings(path: Path) -> pd.DataFrame:
    df = normalize_columns(pd.read_csv(path, low_memory=False))
    _require(df, ['station_id', 'timestamp', 'occupancy', 'speed', 'flow'], str(path))

    df['timestamp'] = pd.to_datetime(df['timestamp'], errors='coerce')
    for c in NUMERIC_COLS:
        if c in df.columns:
            df[c] = pd.to_numeric(df[c], errors='coerce')

    n0 = len(df)
    df = df.dropna(subset=['station_id', 'timestamp']).copy()
    df['station_id'] = df['station_id'].astype('int64')
    logger.info('Loaded %d readings from %s (%d without station/timestamp dropped)', len(df), path, n0 - len(df))
    return df


def load_metadata(path: Path) -> pd.DataFrame:
    df = normalize_columns(pd.read_csv(path))
    _require(df, ['station_id'], str(path))

    df = df.dropna(subset=['station_id']).copy()
    df['station_id'] = df['station_id'].astype('int64')
    df = df.drop_duplicates(subset=['station_id'], keep='last')
    logger.info('Loaded metadata for %d stations from %s', len(df), path)
    return df.reset_index(drop=True)


def join_readings(readings: pd.DataFrame, metadata: pd.DataFrame) -> pd.DataFrame:
    """Join station metadata onto readings and drop incomplete rows.

    One row per (station_id, timestamp) in the result; the first occurrence wins.
    """
    _require(readings, ['station_id', 'timestamp', 'occupancy', 'speed', 'flow'], 'readings')
    _require(metadata, ['station_id'], 'metadata')

    meta = metadata.drop_duplicates(subset=['station_id'], keep='last')
    # metadata must not shadow reading columns
    overlap = [c for c in meta.columns if c in readings.columns and c != 'station_id']
    meta = meta.drop(columns=overlap)

    df = readings.merge(meta, on='station_id', how='inner', validate='many_to_one')

    if 'lane_count' not in df.columns:
        if 'lanes' not in df.columns:
            raise ValueError('readings: missing required column: lane_count (and no metadata lanes to fall back on)')
        df['lane_count'] = df['lanes']
    elif 'lanes' in df.columns:
        df['lane_count'] = df['lane_count'].fillna(df['lanes'])

    n0 = len(df)
    df = df.dropna(subset=READING_COLS).copy()
    df = df.drop_duplicates(subset=['station_id', 'timestamp'], keep='first')
    df['lane_count'] = df['lane_count'].astype('int64')
    df['date'] = df['timestamp'].dt.normalize()

    logger.info('Joined readings: %d rows kept, %d dropped', len(df), n0 - len(df))
    return df.sort_values(['station_id', 'timestamp']).reset_index(drop=True)


def load_dataset(cfg: 'ProjectConfig') -> pd.DataFrame:
    for p in (cfg.readings_path, cfg.metadata_path):
        if not Path(p).exists():
            raise FileNotFoundError(f'Input CSV not found: {p}')
    return join_readings(load_readings(cfg.readings_path), load_metadata(cfg.metadata_path))
