from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import pandas as pd

import plotly.graph_objects as go

logger = logging.getLogger(__name__)


def save_plotly(fig: go.Figure, png_out: Path, html_out: Path | None = None, width: int = 1400, height: int = 560) -> list[Path]:
    written = []

    if png_out is not None:
        png_out = Path(png_out)
        png_out.parent.mkdir(parents=True, exist_ok=True)
        # Requires `kaleido`
        fig.write_image(png_out, width=width, height=height, scale=2)
        written.append(png_out)

    if html_out is not None:
        html_out = Path(html_out)
        html_out.parent.mkdir(parents=True, exist_ok=True)
        fig.write_html(
            html_out,
            include_plotlyjs='cdn',
            config={'responsive': True, 'displayModeBar': False},
        )
        written.append(html_out)

    for p in written:
        logger.info('Wrote %s', p)
    return written


def _layout(fig: go.Figure, title: str) -> go.Figure:
    fig.update_layout(
        template="plotly_white",
        title=dict(text=title, x=0.02, xanchor="left"),
        margin=dict(l=80, r=40, t=95, b=70),
    )
    return fig


def fig_hourly_flow(profile: pd.DataFrame, value: str = "flow", group_col: str | None = None) -> go.Figure:
    """Line per group of mean ``value`` by hour of day (output of hourly_profile)."""
    fig = go.Figure()

    groups = [(None, profile)] if group_col is None else profile.groupby(group_col)
    for name, g in groups:
        fig.add_trace(go.Scatter(
            x=g["hour"],
            y=g[value],
            mode="lines+markers",
            name="All stations" if name is None else str(name),
            hovertemplate="Hour=%{x}<br>Mean=%{y:,.1f}<extra></extra>",
        ))

    _layout(fig, f"Mean {value} by hour of day")
    fig.update_xaxes(title_text="Hour of day", dtick=2, range=[-0.5, 23.5])
    fig.update_yaxes(title_text=f"Mean {value}")
    return fig


def fig_busiest_hour_distribution(busiest: pd.DataFrame) -> go.Figure:
    """Histogram of the hour each sensor-day's busiest window starts."""
    hours = pd.to_datetime(busiest["busiest_hour_start"]).dt.hour

    fig = go.Figure()
    fig.add_trace(go.Histogram(
        x=hours,
        xbins=dict(start=-0.5, end=23.5, size=1),
        hovertemplate="Start hour=%{x}<br>Sensor-days=%{y}<extra></extra>",
        showlegend=False,
    ))

    _layout(fig, f"Busiest-hour start across {len(busiest):,} sensor-days")
    fig.update_xaxes(title_text="Start hour of busiest one-hour window", dtick=2)
    fig.update_yaxes(title_text="Number of sensor-days")
    return fig


def fig_pred_vs_actual(pred: pd.DataFrame, max_points: int = 20_000, seed: int = 7) -> go.Figure:
    df = pred.dropna(subset=["y_true", "y_pred"])
    if len(df) > max_points:
        df = df.sample(n=max_points, random_state=seed)

    lo = float(np.nanmin([df["y_true"].min(), df["y_pred"].min()])) if len(df) else 0.0
    hi = float(np.nanmax([df["y_true"].max(), df["y_pred"].max()])) if len(df) else 1.0

    fig = go.Figure()
    fig.add_trace(go.Scattergl(
        x=df["y_true"],
        y=df["y_pred"],
        mode="markers",
        marker=dict(size=4, opacity=0.35),
        name="Rows",
        hovertemplate="Actual=%{x:.2f}<br>Predicted=%{y:.2f}<extra></extra>",
    ))
    fig.add_trace(go.Scatter(
        x=[lo, hi],
        y=[lo, hi],
        mode="lines",
        line=dict(dash="dash"),
        name="y = x",
    ))

    _layout(fig, "Predicted vs actual (parallel inference)")
    fig.update_xaxes(title_text="Actual")
    fig.update_yaxes(title_text="Predicted")
    return fig


def fig_speedup(bench: pd.DataFrame) -> go.Figure:
    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=bench["label"],
        y=bench["seconds"],
        text=[f"{s:.2f}x" for s in bench["speedup"]],
        textposition="outside",
        hovertemplate="%{x}<br>%{y:.3f}s<extra></extra>",
        showlegend=False,
    ))

    _layout(fig, "Wall time: sequential vs thread-parallel map")
    fig.update_xaxes(title_text="")
    fig.update_yaxes(title_text="Seconds")
    return fig
