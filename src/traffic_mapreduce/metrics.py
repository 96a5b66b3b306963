from __future__ import annotations

import numpy as np


def rmse(y, yhat) -> float:
    y = np.asarray(y, dtype=float)
    yhat = np.asarray(yhat, dtype=float)
    return float(np.sqrt(np.mean((y - yhat) ** 2)))


def mae(y, yhat) -> float:
    y = np.asarray(y, dtype=float)
    yhat = np.asarray(yhat, dtype=float)
    return float(np.mean(np.abs(y - yhat)))


def score_block(tag: str, y, yhat) -> dict:
    """Metrics computed in the current scale of y/yhat."""
    return {
        f"{tag}_RMSE": rmse(y, yhat),
        f"{tag}_MAE": mae(y, yhat),
    }
