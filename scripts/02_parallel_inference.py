#!/usr/bin/env python3
from __future__ import annotations

import argparse
from pathlib import Path

from traffic_mapreduce.config import ProjectConfig
from traffic_mapreduce.console import setup_logging
from traffic_mapreduce.inference import run_inference
from traffic_mapreduce.loading import load_dataset
from traffic_mapreduce.modeling import add_time_features, load_model
from traffic_mapreduce.parallel import ResultMismatchError
from traffic_mapreduce.plots import fig_pred_vs_actual, save_plotly


def main() -> None:
    cfg0 = ProjectConfig()
    ap = argparse.ArgumentParser(description='Thread-parallel row-wise inference, checked against a sequential run.')
    ap.add_argument('--readings', type=str, default=str(cfg0.readings_path))
    ap.add_argument('--metadata', type=str, default=str(cfg0.metadata_path))
    ap.add_argument('--model', type=str, default=str(cfg0.model_path), help='Serialized model (.joblib).')
    ap.add_argument('--threads', type=int, default=None, help='Worker threads (overrides TRAFFIC_MR_NUM_THREADS).')
    ap.add_argument('--out', type=str, default='reports/predictions/pred_parallel.csv.gz')
    ap.add_argument('--fig-dir', type=str, default=str(cfg0.fig_dir))
    ap.add_argument('-v', '--verbose', action='store_true')
    args = ap.parse_args()

    console = setup_logging(args.verbose)
    cfg = ProjectConfig.from_env(
        readings_path=Path(args.readings),
        metadata_path=Path(args.metadata),
        model_path=Path(args.model),
        fig_dir=Path(args.fig_dir),
        n_threads=args.threads,
    )

    try:
        model = load_model(cfg.model_path)
        df = add_time_features(load_dataset(cfg))
        pred, summary = run_inference(
            model, df,
            features=cfg.features,
            target=cfg.target,
            n_threads=cfg.threads,
            rtol=cfg.rtol,
            atol=cfg.atol,
        )
    except ResultMismatchError as e:
        raise SystemExit(f'Parallel and sequential predictions disagree: {e}')
    except (FileNotFoundError, TypeError, ValueError) as e:
        raise SystemExit(f'{type(e).__name__}: {e}')

    console.print(
        f"[green]✓[/green] {summary['rows']:,} rows agree  |  "
        f"[dim]threads[/dim] {summary['n_threads']}  "
        f"[dim]parallel[/dim] {summary['parallel_seconds']:.2f}s  "
        f"[dim]sequential[/dim] {summary['sequential_seconds']:.2f}s  "
        f"[dim]speedup[/dim] {summary['speedup']:.2f}x"
    )

    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    pred.to_csv(out, index=False, compression='infer')
    console.print(f'Wrote: {out} ({pred.shape[0]:,} rows)')

    for p in save_plotly(fig_pred_vs_actual(pred, seed=cfg.seed), cfg.fig_dir / 'pred_vs_actual.png'):
        console.print(f'Wrote: {p}')


if __name__ == '__main__':
    main()
