from __future__ import annotations

import time
from typing import Any, Callable, Iterable, List, Optional, Sequence

import pandas as pd

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TimeElapsedColumn

from .config import resolve_n_threads
from .parallel import assert_results_agree, parallel_map, sequential_map


def benchmark_parallel_map(
    func: Callable[[Any], Any],
    items: Iterable[Any],
    thread_counts: Sequence[int] = (1, 2, 4, 8),
    rtol: float = 1e-9,
    atol: float = 1e-12,
    console: Optional[Console] = None,
) -> pd.DataFrame:
    """Time the sequential map and each thread count; every run is checked against the sequential result."""
    items = list(items)
    console = console or Console()

    t0 = time.perf_counter()
    reference = sequential_map(func, items)
    seq_s = time.perf_counter() - t0

    rows: List[dict] = [{'n_threads': None, 'label': 'sequential', 'seconds': seq_s, 'speedup': 1.0}]

    progress = Progress(
        SpinnerColumn(),
        TextColumn("[bold]{task.description}[/bold]"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        TimeElapsedColumn(),
        console=console,
    )

    with progress:
        task = progress.add_task("Thread counts", total=len(thread_counts))
        for n in thread_counts:
            n = resolve_n_threads(n)
            t0 = time.perf_counter()
            result = parallel_map(func, items, n_threads=n)
            par_s = time.perf_counter() - t0

            assert_results_agree(result, reference, rtol=rtol, atol=atol)

            rows.append({
                'n_threads': n,
                'label': f'{n} threads',
                'seconds': par_s,
                'speedup': seq_s / max(par_s, 1e-9),
            })
            progress.update(task, advance=1)

    # sequential row has no thread count
    return pd.DataFrame(rows).astype({'n_threads': 'Int64'})
