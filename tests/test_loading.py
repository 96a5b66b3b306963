from __future__ import annotations

import pandas as pd
import pytest

from traffic_mapreduce.config import ProjectConfig
from traffic_mapreduce.loading import join_readings, load_dataset, load_metadata, load_readings, normalize_columns


def test_normalize_columns_maps_pems_headers():
    df = pd.DataFrame(columns=['Timestamp', 'Station', 'Total Flow', 'Avg Occupancy', 'Avg Speed', 'Fwy', 'Dir'])
    assert list(normalize_columns(df).columns) == [
        'timestamp', 'station_id', 'flow', 'occupancy', 'speed', 'freeway', 'direction',
    ]


def test_load_readings_parses_types(csv_paths):
    readings_path, _ = csv_paths
    df = load_readings(readings_path)

    assert pd.api.types.is_datetime64_any_dtype(df['timestamp'])
    assert df['station_id'].dtype == 'int64'
    assert {'lane_count', 'occupancy', 'speed', 'flow'} <= set(df.columns)


def test_load_readings_missing_column(tmp_path):
    p = tmp_path / 'bad.csv'
    pd.DataFrame({'Station': [1], 'Timestamp': ['2024-01-01']}).to_csv(p, index=False)

    with pytest.raises(ValueError, match='occupancy'):
        load_readings(p)


def test_load_metadata_keeps_last_duplicate(tmp_path):
    p = tmp_path / 'meta.csv'
    pd.DataFrame({'ID': [1, 1, 2], 'Fwy': [5, 10, 15]}).to_csv(p, index=False)

    meta = load_metadata(p)
    assert meta.set_index('station_id')['freeway'].to_dict() == {1: 10, 2: 15}


def test_join_drops_missing_and_duplicates():
    ts = pd.Timestamp('2024-03-04 08:00')
    readings = pd.DataFrame({
        'station_id': [1, 1, 1, 2, 3],
        'timestamp': [ts, ts, ts + pd.Timedelta('5min'), ts, ts],
        'lane_count': [2, 2, 2, None, 2],
        'occupancy': [0.1, 0.9, 0.2, 0.1, None],
        'speed': [60.0, 10.0, 55.0, 65.0, 50.0],
        'flow': [30.0, 99.0, 31.0, 20.0, 25.0],
    })
    meta = pd.DataFrame({'station_id': [1, 2, 3], 'lanes': [2, 4, 2], 'direction': ['N', 'S', 'E']})

    df = join_readings(readings, meta)

    # duplicate keeps first, missing lane_count filled from metadata, missing occupancy dropped
    assert list(zip(df['station_id'], df['timestamp'])) == [(1, ts), (1, ts + pd.Timedelta('5min')), (2, ts)]
    assert df.loc[0, 'flow'] == 30.0
    assert df.loc[2, 'lane_count'] == 4
    assert (df['date'] == ts.normalize()).all()
    assert not df.duplicated(subset=['station_id', 'timestamp']).any()


def test_join_inner_on_station():
    readings = pd.DataFrame({
        'station_id': [1, 9],
        'timestamp': pd.to_datetime(['2024-01-01', '2024-01-01']),
        'lane_count': [2, 2],
        'occupancy': [0.1, 0.1],
        'speed': [60.0, 60.0],
        'flow': [10.0, 10.0],
    })
    meta = pd.DataFrame({'station_id': [1]})

    assert join_readings(readings, meta)['station_id'].tolist() == [1]


def test_load_dataset_missing_file(tmp_path):
    cfg = ProjectConfig(readings_path=tmp_path / 'nope.csv', metadata_path=tmp_path / 'meta.csv')
    with pytest.raises(FileNotFoundError):
        load_dataset(cfg)


def test_load_dataset(csv_paths, raw_readings):
    readings_path, metadata_path = csv_paths
    df = load_dataset(ProjectConfig(readings_path=readings_path, metadata_path=metadata_path))

    assert len(df) == len(raw_readings)
    assert df['direction'].isin(['N', 'S']).all()


def test_load_readings_drops_unparsable_timestamps(tmp_path):
    p = tmp_path / 'readings.csv'
    pd.DataFrame({
        'Timestamp': ['2024-03-04 08:00:00', 'garbage', '2024-03-04 08:05:00'],
        'Station': [1, 1, 1],
        'Avg Occupancy': [0.1, 0.2, 0.3],
        'Avg Speed': [60.0, 55.0, 50.0],
        'Total Flow': [10.0, 11.0, 12.0],
    }).to_csv(p, index=False)

    df = load_readings(p)

    assert len(df) == 2
    assert df['flow'].tolist() == [10.0, 12.0]
    assert df['timestamp'].notna().all()
