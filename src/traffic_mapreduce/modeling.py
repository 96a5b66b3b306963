from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List

import joblib
import pandas as pd

from sklearn.compose import ColumnTransformer
from sklearn.ensemble import ExtraTreesRegressor, HistGradientBoostingRegressor
from sklearn.impute import SimpleImputer
from sklearn.linear_model import Ridge
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import OneHotEncoder, StandardScaler

logger = logging.getLogger(__name__)


def default_features() -> List[str]:
    return ['occupancy', 'flow', 'lane_count', 'hour', 'dow']


def add_time_features(df: pd.DataFrame) -> pd.DataFrame:
    out = df.copy()
    out['hour'] = out['timestamp'].dt.hour
    out['dow'] = out['timestamp'].dt.dayofweek
    return out


def make_preprocessor(num_cols: List[str], cat_cols: List[str]) -> ColumnTransformer:
    num_pipe = Pipeline([
        ('imputer', SimpleImputer(strategy='constant', fill_value=0.0)),
        ('scaler', StandardScaler()),
    ])

    transformers = [('num', num_pipe, num_cols)]
    if cat_cols:
        transformers.insert(0, ('cat', OneHotEncoder(handle_unknown='ignore', sparse_output=False), cat_cols))

    return ColumnTransformer(transformers=transformers, sparse_threshold=0.0)


def build_model_zoo(pre: ColumnTransformer, seed: int = 7, n_jobs: int = 1) -> Dict[str, Pipeline]:
    models: Dict[str, Pipeline] = {}

    models['Ridge_a1'] = Pipeline([('pre', pre), ('model', Ridge(alpha=1.0, random_state=seed))])

    models['ExtraTrees_200_leaf2'] = Pipeline([('pre', pre), ('model', ExtraTreesRegressor(
        n_estimators=200,
        min_samples_leaf=2,
        random_state=seed,
        n_jobs=n_jobs,
    ))])

    models['HGB_d6_lr0.05_it300'] = Pipeline([('pre', pre), ('model', HistGradientBoostingRegressor(
        loss='squared_error',
        max_depth=6,
        learning_rate=0.05,
        max_iter=300,
        random_state=seed,
    ))])

    return models


def fit_model(
    df: pd.DataFrame,
    features: List[str],
    target: str = 'speed',
    model_name: str = 'ExtraTrees_200_leaf2',
    cat_cols: List[str] | None = None,
    seed: int = 7,
) -> Pipeline:
    """Fit one pipeline from the zoo on ``df[features] -> df[target]``."""
    cat_cols = list(cat_cols or [])
    num_cols = [c for c in features if c not in cat_cols]

    for c in features + [target]:
        if c not in df.columns:
            raise ValueError(f'Missing required column: {c}')

    zoo = build_model_zoo(make_preprocessor(num_cols=num_cols, cat_cols=cat_cols), seed=seed)
    if model_name not in zoo:
        raise KeyError(f"Unknown model '{model_name}'. Available: {sorted(zoo.keys())}")

    dfm = df.dropna(subset=features + [target])
    model = zoo[model_name]
    model.fit(dfm[features], dfm[target].to_numpy())
    logger.info('Fitted %s on %d rows', model_name, len(dfm))
    return model


def save_model(model, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    joblib.dump(model, path)
    return path


def load_model(path: Path):
    """Load a serialized estimator; anything without ``predict`` is rejected."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f'Model file not found: {path}')
    model = joblib.load(path)
    if not hasattr(model, 'predict'):
        raise TypeError(f'{path} does not contain a fitted estimator (got {type(model).__name__})')
    logger.info('Loaded %s from %s', type(model).__name__, path)
    return model
