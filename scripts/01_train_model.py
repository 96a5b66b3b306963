#!/usr/bin/env python3
from __future__ import annotations

import argparse
from pathlib import Path

from traffic_mapreduce.config import ProjectConfig
from traffic_mapreduce.console import setup_logging
from traffic_mapreduce.loading import load_dataset
from traffic_mapreduce.metrics import score_block
from traffic_mapreduce.modeling import add_time_features, fit_model, save_model


def main() -> None:
    cfg0 = ProjectConfig()
    ap = argparse.ArgumentParser(description='Fit a speed model on joined sensor readings and dump it with joblib.')
    ap.add_argument('--readings', type=str, default=str(cfg0.readings_path), help='Sensor readings CSV.')
    ap.add_argument('--metadata', type=str, default=str(cfg0.metadata_path), help='Station metadata CSV.')
    ap.add_argument('--out', type=str, default=str(cfg0.model_path), help='Output .joblib path.')
    ap.add_argument('--model', type=str, default=cfg0.model_name, help='Model name from model zoo.')
    ap.add_argument('--target', type=str, default=cfg0.target)
    ap.add_argument('-v', '--verbose', action='store_true')
    args = ap.parse_args()

    console = setup_logging(args.verbose)
    cfg = ProjectConfig.from_env(
        readings_path=Path(args.readings),
        metadata_path=Path(args.metadata),
        model_path=Path(args.out),
        model_name=args.model,
        target=args.target,
    )

    try:
        df = add_time_features(load_dataset(cfg))
        model = fit_model(df, features=cfg.features, target=cfg.target, model_name=cfg.model_name, seed=cfg.seed)
    except (FileNotFoundError, KeyError, ValueError) as e:
        raise SystemExit(f'{type(e).__name__}: {e}')

    scores = score_block('train', df[cfg.target], model.predict(df[cfg.features]))
    out = save_model(model, cfg.model_path)

    console.print(f"[dim]Train rows:[/dim] {len(df):,}  |  " + "  ".join(f"[dim]{k}[/dim] {v:.3f}" for k, v in scores.items()))
    console.print(f'Wrote: {out}')


if __name__ == '__main__':
    main()
