#!/usr/bin/env python3
from __future__ import annotations

import argparse
import time
from pathlib import Path

from traffic_mapreduce.config import ProjectConfig
from traffic_mapreduce.console import setup_logging
from traffic_mapreduce.loading import load_dataset
from traffic_mapreduce.parallel import ResultMismatchError, assert_results_agree, assert_timestamps_agree
from traffic_mapreduce.plots import fig_busiest_hour_distribution, fig_hourly_flow, save_plotly
from traffic_mapreduce.reduction import busiest_hours, hourly_profile


def main() -> None:
    cfg0 = ProjectConfig()
    ap = argparse.ArgumentParser(description='Busiest one-hour window per sensor-day via group-by + combine.')
    ap.add_argument('--readings', type=str, default=str(cfg0.readings_path))
    ap.add_argument('--metadata', type=str, default=str(cfg0.metadata_path))
    ap.add_argument('--threads', type=int, default=None, help='Worker threads (overrides TRAFFIC_MR_NUM_THREADS).')
    ap.add_argument('--out', type=str, default='reports/busiest/busiest_hours.csv')
    ap.add_argument('--fig-dir', type=str, default=str(cfg0.fig_dir))
    ap.add_argument('--profile-by', type=str, default='direction', help='Metadata column for the hourly profile lines.')
    ap.add_argument('-v', '--verbose', action='store_true')
    args = ap.parse_args()

    console = setup_logging(args.verbose)
    cfg = ProjectConfig.from_env(
        readings_path=Path(args.readings),
        metadata_path=Path(args.metadata),
        fig_dir=Path(args.fig_dir),
        n_threads=args.threads,
    )

    try:
        df = load_dataset(cfg)
    except (FileNotFoundError, ValueError) as e:
        raise SystemExit(f'{type(e).__name__}: {e}')

    with console.status(f"[bold]Reducing[/bold] {len(df):,} rows on {cfg.threads} threads …", spinner="dots"):
        t0 = time.perf_counter()
        par = busiest_hours(df, n_threads=cfg.threads)
        par_s = time.perf_counter() - t0

        t0 = time.perf_counter()
        seq = busiest_hours(df, n_threads=1)
        seq_s = time.perf_counter() - t0

    try:
        assert_results_agree(par['busiest_hour_flow'], seq['busiest_hour_flow'], rtol=cfg.rtol, atol=cfg.atol)
        assert_timestamps_agree(par['busiest_hour_start'], seq['busiest_hour_start'])
    except ResultMismatchError as e:
        raise SystemExit(f'Parallel and sequential reductions disagree: {e}')

    console.print(
        f"[green]✓[/green] {len(par):,} sensor-days agree  |  "
        f"[dim]parallel[/dim] {par_s:.2f}s  [dim]sequential[/dim] {seq_s:.2f}s"
    )

    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    par.to_csv(out, index=False)
    console.print(f'Wrote: {out}')

    group_col = args.profile_by if args.profile_by in df.columns else None
    profile = hourly_profile(df, value='flow', by=[group_col] if group_col else None)

    outputs = []
    outputs += save_plotly(fig_busiest_hour_distribution(par), cfg.fig_dir / 'busiest_hour_distribution.png')
    outputs += save_plotly(fig_hourly_flow(profile, group_col=group_col), cfg.fig_dir / 'hourly_flow_profile.png')
    for p in outputs:
        console.print(f'Wrote: {p}')


if __name__ == '__main__':
    main()
