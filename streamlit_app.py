"""
Streamlit application for the vesting ledger.

Explore a distribution config: per-group parameters, projected unlock
schedule, an end-to-end replay against the in-memory token, and the
sanity checks that guard the funding identity.

Run locally with: streamlit run streamlit_app.py
"""

import json

import pandas as pd
import streamlit as st
import yaml

from vestledger.config.loader import build_distribution, load_config
from vestledger.config.schema import Config
from vestledger.reporting.charts import create_release_chart, create_unlock_schedule_chart
from vestledger.reporting.export import beneficiaries_frame, payouts_frame, snapshots_frame
from vestledger.simulation.runner import ScheduleSimulator
from vestledger.validation.sanity_checks import SanityChecker, validate_simulation_results

st.set_page_config(
    page_title="Vesting Ledger",
    layout="wide",
    initial_sidebar_state="expanded"
)


def init_session_state():
    """Initialize session state with default config."""
    if "config" not in st.session_state:
        st.session_state.config = load_config()
    if "simulation_result" not in st.session_state:
        st.session_state.simulation_result = None


def render_sidebar():
    """Config source and replay controls."""
    with st.sidebar:
        st.markdown("## Controls")

        uploaded = st.file_uploader("Load config (YAML or JSON)", type=["yaml", "yml", "json"])
        if uploaded is not None and st.button("Apply config"):
            try:
                if uploaded.name.endswith(".json"):
                    data = json.load(uploaded)
                else:
                    data = yaml.safe_load(uploaded)
                st.session_state.config = Config.from_dict(data)
                st.session_state.simulation_result = None
                st.rerun()
            except ValueError as exc:
                st.error(f"Invalid config: {exc}")

        config: Config = st.session_state.config
        st.markdown("---")
        st.markdown("### Replay")
        config.simulation.claim_probability = st.slider(
            "Claim probability per tick", 0.0, 1.0, float(config.simulation.claim_probability), 0.05,
            help="Chance each beneficiary claims on a tick; the final tick always claims"
        )
        config.simulation.steps_per_period = st.number_input(
            "Ticks per period", min_value=1, max_value=30, value=int(config.simulation.steps_per_period)
        )
        config.simulation.random_seed = st.number_input(
            "Random seed", value=int(config.simulation.random_seed), step=1
        )
        config.funding.surplus = st.number_input(
            "Deposit surplus (base units)", min_value=0, value=int(config.funding.surplus), step=1
        )

        if st.button("Run replay", type="primary"):
            with st.spinner("Replaying distribution..."):
                st.session_state.simulation_result = ScheduleSimulator(config).run()

        st.caption(f"Config hash: `{config.compute_hash()}`")


def render_overview():
    """Groups, beneficiaries and funding identity."""
    config: Config = st.session_state.config
    decimals = config.token.decimals
    checker = SanityChecker(config)

    col1, col2, col3, col4 = st.columns(4)
    stake_total = sum(b.stake for b in config.beneficiaries)
    col1.metric("Beneficiaries", len(config.beneficiaries))
    col2.metric("Total stake", f"{stake_total / 10 ** decimals:,.2f} {config.token.symbol}")
    col3.metric("Pledged", f"{checker.total_pledged / 10 ** decimals:,.2f}")
    col4.metric("Planned deposit", f"{checker.planned_deposit / 10 ** decimals:,.2f}")

    st.markdown("#### Groups")
    st.dataframe(pd.DataFrame([g.model_dump() for g in config.groups]), width="stretch")

    distribution = build_distribution(config, time_source=lambda: 0)
    records = distribution.beneficiaries()
    st.markdown("#### Allocations")
    st.dataframe(beneficiaries_frame(records), width="stretch")

    st.markdown("#### Projected unlocks")
    fig = create_unlock_schedule_chart(
        records, config.clock.start_delay_seconds, config.clock.period_seconds, decimals
    )
    st.plotly_chart(fig, width="stretch")

    st.markdown("#### Sanity checks")
    warnings = checker.check_config_inputs()
    if not warnings:
        st.success("No issues found")
    for w in warnings:
        text = f"**{w.category}**: {w.message}" + (f" ({w.details})" if w.details else "")
        if w.severity == "error":
            st.error(text)
        else:
            st.warning(text)


def render_replay():
    """Results of the last replay."""
    result = st.session_state.simulation_result
    if result is None:
        st.info("Run a replay from the sidebar.")
        return
    decimals = result.config.token.decimals

    metrics = result.final_metrics
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Released", f"{metrics['total_released'] / 10 ** decimals:,.2f}")
    col2.metric("Swept", f"{metrics['swept'] / 10 ** decimals:,.2f}")
    col3.metric("Over-pledge", f"{metrics['over_pledge']:,} units")
    col4.metric("Fully vested", f"{metrics['fully_vested']} / {metrics['beneficiaries']}")

    st.plotly_chart(create_release_chart(result.snapshots, decimals), width="stretch")

    records = build_distribution(result.config, time_source=lambda: 0).beneficiaries()
    st.markdown("#### Payouts")
    st.dataframe(payouts_frame(result.payouts, records), width="stretch")

    for w in validate_simulation_results(result):
        if w.severity == "error":
            st.error(f"{w.message}: {w.details or ''}")

    with st.expander("Snapshots"):
        st.dataframe(snapshots_frame(result, decimals), width="stretch")
    with st.expander(f"Events ({len(result.events)})"):
        st.dataframe(pd.DataFrame(result.events), width="stretch")


def main():
    """Main application entry point."""
    init_session_state()
    st.title("Vesting Ledger")
    render_sidebar()

    tabs = st.tabs(["Overview", "Replay"])
    with tabs[0]:
        render_overview()
    with tabs[1]:
        render_replay()


if __name__ == "__main__":
    main()
