from __future__ import annotations

import logging
import time
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd

from .config import resolve_n_threads
from .metrics import score_block
from .parallel import assert_results_agree, parallel_map, sequential_map

logger = logging.getLogger(__name__)


def predict_row(model, row, features: List[str]) -> float:
    X = pd.DataFrame([{f: row[f] for f in features}], columns=features)
    return float(model.predict(X)[0])


def _rows(df: pd.DataFrame, features: List[str]) -> List[dict]:
    for c in features:
        if c not in df.columns:
            raise ValueError(f'Missing required column: {c}')
    return df[features].to_dict('records')


def predict_sequential(model, df: pd.DataFrame, features: List[str]) -> np.ndarray:
    rows = _rows(df, features)
    return np.asarray(sequential_map(lambda r: predict_row(model, r, features), rows), dtype=float)


def predict_parallel(model, df: pd.DataFrame, features: List[str], n_threads: Optional[int] = None) -> np.ndarray:
    rows = _rows(df, features)
    return np.asarray(parallel_map(lambda r: predict_row(model, r, features), rows, n_threads=n_threads), dtype=float)


def run_inference(
    model,
    df: pd.DataFrame,
    features: List[str],
    target: str = 'speed',
    n_threads: Optional[int] = None,
    rtol: float = 1e-9,
    atol: float = 1e-12,
) -> Tuple[pd.DataFrame, dict]:
    """Predict every row in parallel and sequentially, and check they agree.

    Returns tidy predictions plus a summary with timings and error metrics.
    Raises ResultMismatchError when any row disagrees.
    """
    n = resolve_n_threads(n_threads)

    t0 = time.perf_counter()
    y_par = predict_parallel(model, df, features, n_threads=n)
    par_s = time.perf_counter() - t0

    t0 = time.perf_counter()
    y_seq = predict_sequential(model, df, features)
    seq_s = time.perf_counter() - t0

    assert_results_agree(y_par, y_seq, rtol=rtol, atol=atol)
    logger.info('Parallel (%d threads) and sequential predictions agree on %d rows', n, len(y_par))

    pred = pd.DataFrame({
        'station_id': df['station_id'].to_numpy(),
        'timestamp': pd.to_datetime(df['timestamp']).to_numpy(),
        'y_true': df[target].to_numpy(dtype=float) if target in df.columns else np.nan,
        'y_pred': y_par,
    })

    summary = {
        'rows': int(len(pred)),
        'n_threads': n,
        'parallel_seconds': par_s,
        'sequential_seconds': seq_s,
        'speedup': seq_s / max(par_s, 1e-9),
    }
    scored = pred.dropna(subset=['y_true'])
    if len(scored):
        summary.update(score_block(target, scored['y_true'], scored['y_pred']))

    return pred, summary
