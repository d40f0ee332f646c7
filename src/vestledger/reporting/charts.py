"""Chart generation using Plotly."""

from typing import Dict, List

import plotly.graph_objects as go

from ..engine.ledger import BeneficiaryRecord
from ..simulation.runner import SupplySnapshot
from .export import schedule_frame

THEME = {
    "text": "#e8eaed",
    "text_secondary": "#9aa0a6",
    "grid": "rgba(30, 33, 36, 0.8)",
    "cyan": "#00d4ff",
    "cyan_fill": "rgba(0, 212, 255, 0.12)",
    "amber": "#ffab00",
    "red": "#ff5252",
    "green": "#00e676",
}

GROUP_COLORS = [THEME["cyan"], THEME["amber"], THEME["green"], THEME["red"], "#b388ff", "#ff80ab"]


def apply_dark_layout(fig: go.Figure, title: str, x_title: str, y_title: str, showlegend: bool = True) -> None:
    """Apply dark theme layout for charts."""
    fig.update_layout(
        title={
            "text": title,
            "x": 0,
            "xanchor": "left",
            "font": {"size": 11, "color": THEME["text_secondary"]}
        },
        xaxis_title=x_title,
        yaxis_title=y_title,
        hovermode="x unified",
        template="plotly_dark",
        height=340,
        margin=dict(l=50, r=20, t=40, b=40),
        showlegend=showlegend,
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="left", x=0),
        plot_bgcolor="rgba(8, 9, 10, 1)",
        paper_bgcolor="rgba(8, 9, 10, 1)",
        font={"color": THEME["text"], "size": 11},
        xaxis=dict(gridcolor=THEME["grid"], zerolinecolor=THEME["grid"]),
        yaxis=dict(gridcolor=THEME["grid"], zerolinecolor=THEME["grid"]),
    )


def create_release_chart(snapshots: List[SupplySnapshot], decimals: int = 0) -> go.Figure:
    """Cumulative released vs pledged and custody balance over periods."""
    scale = 10 ** decimals
    periods = [s.period for s in snapshots]

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=periods, y=[s.total_pledged / scale for s in snapshots],
        name="Pledged", line=dict(color=THEME["amber"], dash="dash")
    ))
    fig.add_trace(go.Scatter(
        x=periods, y=[s.total_released / scale for s in snapshots],
        name="Released", fill="tozeroy", fillcolor=THEME["cyan_fill"],
        line=dict(color=THEME["cyan"])
    ))
    fig.add_trace(go.Scatter(
        x=periods, y=[s.custody_balance / scale for s in snapshots],
        name="Custody", line=dict(color=THEME["green"])
    ))
    apply_dark_layout(fig, "RELEASED VS PLEDGED", "Periods since activation", "Tokens")
    return fig


def create_unlock_schedule_chart(
    records: Dict[str, BeneficiaryRecord],
    activation_time: int,
    period_length: int,
    decimals: int = 0
) -> go.Figure:
    """Stacked per-group cumulative unlocks from the projected schedule."""
    df = schedule_frame(records, activation_time, period_length)
    fig = go.Figure()
    if df.empty:
        apply_dark_layout(fig, "UNLOCK SCHEDULE BY GROUP", "Periods since activation", "Tokens")
        return fig

    df['period'] = (df['timestamp'] - activation_time) / period_length
    df['tokens'] = df['amount'] / 10 ** decimals
    per_group = df.groupby(['group_id', 'period'])['tokens'].sum().reset_index()
    all_periods = sorted(per_group['period'].unique())

    for i, (group_id, frame) in enumerate(per_group.groupby('group_id')):
        series = frame.set_index('period')['tokens'].reindex(all_periods, fill_value=0).cumsum()
        fig.add_trace(go.Scatter(
            x=all_periods, y=series.tolist(),
            name=f"Group {group_id}", stackgroup="unlocks",
            line=dict(color=GROUP_COLORS[i % len(GROUP_COLORS)])
        ))
    apply_dark_layout(fig, "UNLOCK SCHEDULE BY GROUP", "Periods since activation", "Tokens")
    return fig
