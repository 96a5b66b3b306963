from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, List, Optional

import numpy as np
import pandas as pd
from joblib import Parallel, delayed

from .config import resolve_n_threads

logger = logging.getLogger(__name__)


class ResultMismatchError(ValueError):
    """Parallel and sequential results differ."""

    def __init__(self, message: str, n_mismatch: int = 0, first_index: Optional[int] = None):
        super().__init__(message)
        self.n_mismatch = n_mismatch
        self.first_index = first_index


def sequential_map(func: Callable[[Any], Any], items: Iterable[Any]) -> List[Any]:
    return [func(x) for x in items]


def parallel_map(func: Callable[[Any], Any], items: Iterable[Any], n_threads: Optional[int] = None) -> List[Any]:
    """Apply ``func`` to every item on a pool of worker threads.

    ``func`` must be free of side effects. Results come back in input order.
    ``n_threads`` of None or 0 uses every CPU; 1 runs in the calling thread.
    """
    n = resolve_n_threads(n_threads)
    items = list(items)
    if n == 1 or len(items) <= 1:
        return sequential_map(func, items)

    logger.debug('parallel_map: %d items on %d threads', len(items), n)
    return Parallel(n_jobs=n, prefer='threads')(delayed(func)(x) for x in items)


def assert_results_agree(parallel, sequential, rtol: float = 1e-9, atol: float = 1e-12) -> None:
    """Raise ResultMismatchError unless both results match element-wise.

    NaN in the same position counts as equal.
    """
    a = np.asarray(parallel, dtype=float)
    b = np.asarray(sequential, dtype=float)

    if a.shape != b.shape:
        raise ResultMismatchError(f'Result shapes differ: parallel {a.shape} vs sequential {b.shape}')

    ok = np.isclose(a, b, rtol=rtol, atol=atol, equal_nan=True)
    if not ok.all():
        bad = np.flatnonzero(~ok.ravel())
        first = int(bad[0])
        raise ResultMismatchError(
            f'{bad.size} of {ok.size} results differ; first at index {first}: '
            f'parallel={a.ravel()[first]!r} sequential={b.ravel()[first]!r}',
            n_mismatch=int(bad.size),
            first_index=first,
        )


def assert_timestamps_agree(parallel, sequential) -> None:
    """Exact comparison of two timestamp sequences, in int64 nanoseconds."""
    a = pd.DatetimeIndex(parallel).as_unit('ns').asi8
    b = pd.DatetimeIndex(sequential).as_unit('ns').asi8

    if a.shape != b.shape:
        raise ResultMismatchError(f'Result shapes differ: parallel {a.shape} vs sequential {b.shape}')

    if not np.array_equal(a, b):
        bad = np.flatnonzero(a != b)
        first = int(bad[0])
        raise ResultMismatchError(
            f'{bad.size} of {a.size} timestamps differ; first at index {first}: '
            f'parallel={pd.Timestamp(a[first])} sequential={pd.Timestamp(b[first])}',
            n_mismatch=int(bad.size),
            first_index=first,
        )
