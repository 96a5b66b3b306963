from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import List, Optional

THREADS_ENV_VAR = 'TRAFFIC_MR_NUM_THREADS'


def resolve_n_threads(n_threads: Optional[int]) -> int:
    """None or 0 means every available CPU."""
    if n_threads is None or n_threads == 0:
        return os.cpu_count() or 1
    if n_threads < 0:
        raise ValueError(f'n_threads must be >= 0, got {n_threads}')
    return int(n_threads)


def threads_from_env(default: Optional[int] = None) -> Optional[int]:
    raw = os.environ.get(THREADS_ENV_VAR, '').strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f'{THREADS_ENV_VAR} must be an integer, got {raw!r}') from None
    if value < 0:
        raise ValueError(f'{THREADS_ENV_VAR} must be >= 0, got {value}')
    return value


@dataclass(frozen=True)
class ProjectConfig:
    # Paths (repo-relative by default)
    readings_path: Path = Path('data/raw/station_5min.csv')
    metadata_path: Path = Path('data/raw/station_meta.csv')
    model_path: Path = Path('models/speed_model.joblib')
    reports_dir: Path = Path('reports')
    fig_dir: Path = Path('assets/figures')

    # Model
    target: str = 'speed'
    features: List[str] = field(default_factory=lambda: ['occupancy', 'flow', 'lane_count', 'hour', 'dow'])
    model_name: str = 'ExtraTrees_200_leaf2'

    # Parallel/sequential agreement
    rtol: float = 1e-9
    atol: float = 1e-12

    # Runtime
    n_threads: int = 0
    seed: int = 7

    @property
    def threads(self) -> int:
        return resolve_n_threads(self.n_threads)

    @classmethod
    def from_env(cls, **overrides) -> 'ProjectConfig':
        cfg = cls()
        env_threads = threads_from_env()
        if env_threads is not None:
            cfg = replace(cfg, n_threads=env_threads)
        overrides = {k: v for k, v in overrides.items() if v is not None}
        return replace(cfg, **overrides)
