#!/usr/bin/env python3
from __future__ import annotations

import argparse
from pathlib import Path

from traffic_mapreduce.benchmark import benchmark_parallel_map
from traffic_mapreduce.config import ProjectConfig
from traffic_mapreduce.console import setup_logging
from traffic_mapreduce.inference import predict_row
from traffic_mapreduce.loading import load_dataset
from traffic_mapreduce.modeling import add_time_features, load_model
from traffic_mapreduce.parallel import ResultMismatchError
from traffic_mapreduce.plots import fig_speedup, save_plotly


def main() -> None:
    cfg0 = ProjectConfig()
    ap = argparse.ArgumentParser(description='Time row-wise inference sequentially and at several thread counts.')
    ap.add_argument('--readings', type=str, default=str(cfg0.readings_path))
    ap.add_argument('--metadata', type=str, default=str(cfg0.metadata_path))
    ap.add_argument('--model', type=str, default=str(cfg0.model_path))
    ap.add_argument('--threads', type=int, nargs='+', default=[1, 2, 4, 8])
    ap.add_argument('--max-rows', type=int, default=5000, help='Benchmark on the first N rows.')
    ap.add_argument('--out', type=str, default='reports/benchmark/thread_benchmark.csv')
    ap.add_argument('--fig-dir', type=str, default=str(cfg0.fig_dir))
    ap.add_argument('-v', '--verbose', action='store_true')
    args = ap.parse_args()

    console = setup_logging(args.verbose)
    cfg = ProjectConfig.from_env(
        readings_path=Path(args.readings),
        metadata_path=Path(args.metadata),
        model_path=Path(args.model),
        fig_dir=Path(args.fig_dir),
    )

    try:
        model = load_model(cfg.model_path)
        df = add_time_features(load_dataset(cfg)).head(args.max_rows)
        rows = df[cfg.features].to_dict('records')
        bench = benchmark_parallel_map(
            lambda r: predict_row(model, r, cfg.features),
            rows,
            thread_counts=args.threads,
            rtol=cfg.rtol,
            atol=cfg.atol,
            console=console,
        )
    except ResultMismatchError as e:
        raise SystemExit(f'Parallel and sequential predictions disagree: {e}')
    except (FileNotFoundError, TypeError, ValueError) as e:
        raise SystemExit(f'{type(e).__name__}: {e}')

    for r in bench.itertuples():
        console.print(f"{r.label:>12}  {r.seconds:8.3f}s  [dim]speedup[/dim] {r.speedup:.2f}x")

    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    bench.to_csv(out, index=False)
    console.print(f'Wrote: {out}')

    for p in save_plotly(fig_speedup(bench), cfg.fig_dir / 'thread_speedup.png', width=1100, height=520):
        console.print(f'Wrote: {p}')


if __name__ == '__main__':
    main()
