from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from .parallel import parallel_map, sequential_map

logger = logging.getLogger(__name__)

ONE_HOUR = pd.Timedelta(hours=1)


def busiest_hour_window(timestamps, flows, window: pd.Timedelta = ONE_HOUR) -> Tuple[pd.Timestamp, float]:
    """Start and summed flow of the busiest window beginning at an observed timestamp.

    Each window is [t_i, t_i + window). Brute force over every pair, so O(n^2).
    Ties keep the first maximum in input order. Readings with a missing flow are
    dropped before the scan.
    """
    ts = pd.DatetimeIndex(timestamps)
    fl = np.asarray(flows, dtype=float)

    if len(ts) == 0:
        raise ValueError('busiest_hour_window: empty group')
    if len(ts) != len(fl):
        raise ValueError(f'busiest_hour_window: {len(ts)} timestamps but {len(fl)} flows')
    if ts.hasnans:
        raise ValueError('busiest_hour_window: missing timestamp')

    keep = ~np.isnan(fl)
    if not keep.any():
        raise ValueError('busiest_hour_window: no readings with a flow value')
    ts, fl = ts[keep], fl[keep]

    # window length is in nanoseconds, so the timestamps must be too
    t = ts.as_unit('ns').asi8
    w = pd.Timedelta(window).as_unit('ns').value

    best_i = 0
    best_total = -np.inf
    for i in range(len(t)):
        total = 0.0
        for j in range(len(t)):
            if t[i] <= t[j] < t[i] + w:
                total += fl[j]
        if total > best_total:
            best_i, best_total = i, total

    return ts[best_i], float(best_total)


def busiest_hour(timestamps, flows) -> pd.Timestamp:
    return busiest_hour_window(timestamps, flows)[0]


def grouped_reduce(
    df: pd.DataFrame,
    by: Union[str, Sequence[str]],
    func: Callable[[pd.DataFrame], Any],
    n_threads: Optional[int] = 1,
) -> pd.Series:
    """Split ``df`` by ``by``, reduce each group to one value, combine into a Series.

    Groups are reduced on worker threads unless ``n_threads`` is 1. The result is
    indexed by the group keys in sorted order.
    """
    keys_cols: List[str] = [by] if isinstance(by, str) else list(by)
    groups = [
        (k if isinstance(k, tuple) else (k,), g)
        for k, g in df.groupby(keys_cols, sort=True)
    ]

    def _reduce(item):
        return func(item[1])

    if n_threads == 1:
        values = sequential_map(_reduce, groups)
    else:
        values = parallel_map(_reduce, groups, n_threads=n_threads)

    keys = [k for k, _ in groups]
    if len(keys_cols) == 1:
        index = pd.Index([k[0] for k in keys], name=keys_cols[0])
    else:
        index = pd.MultiIndex.from_tuples(keys, names=keys_cols) if keys else pd.MultiIndex.from_arrays([[]] * len(keys_cols), names=keys_cols)

    logger.debug('grouped_reduce: %d groups by %s', len(keys), keys_cols)
    return pd.Series(values, index=index, dtype=object)


def busiest_hours(df: pd.DataFrame, n_threads: Optional[int] = 1) -> pd.DataFrame:
    """Busiest one-hour window per sensor-day; readings without a flow are ignored."""
    for c in ('station_id', 'timestamp', 'flow'):
        if c not in df.columns:
            raise ValueError(f'Missing required column: {c}')

    # sensor-days with no flow at all drop out here
    dfr = df.dropna(subset=['flow'])
    if 'date' not in dfr.columns:
        dfr = dfr.assign(date=dfr['timestamp'].dt.normalize())

    res = grouped_reduce(
        dfr,
        by=['station_id', 'date'],
        func=lambda g: busiest_hour_window(g['timestamp'], g['flow']),
        n_threads=n_threads,
    )

    out = res.index.to_frame(index=False)
    out['busiest_hour_start'] = pd.to_datetime([v[0] for v in res.values]) if len(res) else pd.Series([], dtype='datetime64[ns]')
    out['busiest_hour_flow'] = np.array([v[1] for v in res.values], dtype=float)
    return out


def hourly_profile(df: pd.DataFrame, value: str = 'flow', by: Optional[Sequence[str]] = None) -> pd.DataFrame:
    """Mean of ``value`` per hour of day (optionally per extra grouping)."""
    by = list(by or [])
    tmp = df.assign(hour=df['timestamp'].dt.hour)
    return (
        tmp.groupby(by + ['hour'], as_index=False)[value]
        .mean()
        .sort_values(by + ['hour'])
        .reset_index(drop=True)
    )
