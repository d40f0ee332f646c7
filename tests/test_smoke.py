"""Smoke tests for config, simulation, validation, reporting and CLI.

These tests verify basic functionality end to end.
Run these first to catch obvious breakage.
"""

import json

import pytest

from vestledger.cli import main
from vestledger.config.loader import build_distribution, config_from_dict, load_config
from vestledger.config.schema import Config
from vestledger.engine import VestingStatus
from vestledger.reporting.charts import create_release_chart, create_unlock_schedule_chart
from vestledger.reporting.export import (
    beneficiaries_frame,
    export_csv,
    export_json,
    schedule_frame,
    snapshots_frame,
)
from vestledger.simulation import ScheduleSimulator, project_schedule
from vestledger.validation import SanityChecker, validate_simulation_results


def minimal_config(**overrides) -> Config:
    data = {
        'administrator': 'admin',
        'token': {'symbol': 'TST', 'decimals': 6, 'precision_unit': 1},
        'clock': {'start_delay_seconds': 10, 'period_seconds': 100},
        'groups': [{'id': 1, 'cliff_seconds': 0, 'tge_ppm': 100_000, 'installment_count': 4}],
        'beneficiaries': [{'principal': 'alice', 'stake': 1_000_000, 'group': 1}],
        'funding': {'surplus': 500},
        'simulation': {'claim_probability': 1.0},
    }
    data.update(overrides)
    return config_from_dict(data)


class TestConfigLoading:
    """Smoke tests for configuration loading."""

    def test_load_default_config(self):
        """Config loads without errors."""
        config = load_config()
        assert isinstance(config, Config)
        assert len(config.groups) == 4
        assert len(config.beneficiaries) == 8

    def test_config_hash_is_deterministic(self):
        """Same config produces same hash."""
        assert load_config().compute_hash() == load_config().compute_hash()

    def test_rejects_unknown_group(self):
        with pytest.raises(ValueError):
            minimal_config(beneficiaries=[{'principal': 'x', 'stake': 1, 'group': 9}])

    def test_rejects_duplicate_principal(self):
        with pytest.raises(ValueError):
            minimal_config(beneficiaries=[
                {'principal': 'x', 'stake': 1, 'group': 1},
                {'principal': 'x', 'stake': 2, 'group': 1},
            ])

    def test_rejects_out_of_range_tge(self):
        with pytest.raises(ValueError):
            minimal_config(groups=[{'id': 1, 'cliff_seconds': 0, 'tge_ppm': 2_000_000, 'installment_count': 4}])

    def test_build_distribution(self):
        config = load_config()
        dist = build_distribution(config, time_source=lambda: 0)
        assert dist.activated is False
        assert dist.summary().enrolled_count == len(config.beneficiaries)
        assert dist.beneficiary_status('core-team') == VestingStatus.ENROLLED


class TestSimulation:
    """End-to-end replays."""

    def test_reference_scenario(self):
        result = ScheduleSimulator(minimal_config()).run()
        assert result.conservation_errors == []
        assert result.payouts == {'alice': 1_000_004}
        assert result.final_metrics['over_pledge'] == 4
        assert result.final_metrics['swept'] == 500
        assert result.final_metrics['custody_balance'] == 0

    def test_default_config_completes(self):
        config = load_config()
        result = ScheduleSimulator(config).run()
        assert result.conservation_errors == []
        assert result.warnings == []
        assert result.final_metrics['fully_vested'] == len(config.beneficiaries)
        assert result.final_metrics['swept'] == config.funding.surplus
        assert result.final_metrics['custody_balance'] == 0
        errors = [w for w in validate_simulation_results(result) if w.severity == "error"]
        assert errors == []

    def test_same_seed_same_result(self):
        config = load_config()
        a = ScheduleSimulator(config).run()
        b = ScheduleSimulator(config).run()
        assert [s.total_released for s in a.snapshots] == [s.total_released for s in b.snapshots]

    def test_underfunded_run_records_warnings(self):
        config = minimal_config(funding={'deposit': 1_000_000})
        result = ScheduleSimulator(config).run()
        assert any('sweep blocked' in w for w in result.warnings)
        assert result.payouts['alice'] <= 1_000_000

    def test_short_horizon(self):
        config = minimal_config(simulation={'horizon_periods': 2, 'claim_probability': 1.0})
        result = ScheduleSimulator(config).run()
        assert result.payouts['alice'] == 100_000 + 2 * 225_001


class TestSanityChecks:
    """Config sanity checks."""

    def test_default_config_is_clean(self):
        warnings = SanityChecker(load_config()).check_config_inputs()
        assert [w for w in warnings if w.severity == "error"] == []

    def test_deposit_covering_stakes_only(self):
        checker = SanityChecker(minimal_config(funding={'deposit': 1_000_000}))
        errors = [w for w in checker.check_config_inputs() if w.severity == "error"]
        assert len(errors) == 1
        assert errors[0].category == "funding"
        assert "rounding" in errors[0].details

    def test_exact_deposit_warns(self):
        checker = SanityChecker(minimal_config(funding={'deposit': 1_000_004}))
        categories = {w.category for w in checker.check_config_inputs()}
        assert "funding" in categories

    def test_full_tge_warns(self):
        config = minimal_config(groups=[{'id': 1, 'cliff_seconds': 0, 'tge_ppm': 1_000_000, 'installment_count': 4}])
        messages = [w.message for w in SanityChecker(config).check_config_inputs()]
        assert any("100% at TGE" in m for m in messages)


class TestReporting:
    """Exports and charts."""

    def test_frames(self):
        config = minimal_config()
        result = ScheduleSimulator(config).run()
        df = snapshots_frame(result, decimals=6)
        assert len(df) == len(result.snapshots)
        assert 'total_released_tokens' in df.columns

        records = build_distribution(config, time_source=lambda: 0).beneficiaries()
        assert beneficiaries_frame(records)['over_pledge'].tolist() == [4]
        schedule = schedule_frame(records, activation_time=10, period_length=100)
        assert schedule['cumulative'].iloc[-1] == 1_000_004
        assert schedule['timestamp'].is_monotonic_increasing

    def test_project_schedule(self):
        record = build_distribution(minimal_config(), time_source=lambda: 0).beneficiary('alice')
        entries = project_schedule(record, activation_time=10, period_length=100)
        assert [e.kind for e in entries] == ['tge'] + ['installment'] * 4
        assert [e.timestamp for e in entries] == [10, 110, 210, 310, 410]

    def test_export_files(self, tmp_path):
        result = ScheduleSimulator(minimal_config()).run()
        csv_path = tmp_path / "out.csv"
        json_path = tmp_path / "out.json"
        export_csv(result, str(csv_path))
        export_json(result, str(json_path))
        assert csv_path.read_text().startswith("t,")
        data = json.loads(json_path.read_text())
        assert data['payouts'] == {'alice': 1_000_004}
        assert any(e['event'] == 'TgePaid' for e in data['events'])

    def test_charts(self):
        config = minimal_config()
        result = ScheduleSimulator(config).run()
        assert len(create_release_chart(result.snapshots, 6).data) == 3
        records = build_distribution(config, time_source=lambda: 0).beneficiaries()
        fig = create_unlock_schedule_chart(records, 10, 100, 6)
        assert len(fig.data) == 1


class TestCli:
    """Command line entry point."""

    def test_check(self, capsys):
        assert main(["check"]) == 0
        assert "pledged" in capsys.readouterr().out

    def test_schedule(self, capsys):
        assert main(["schedule", "public-pool"]) == 0
        assert "TGE" in capsys.readouterr().out

    def test_schedule_unknown(self):
        assert main(["schedule", "nobody"]) == 2

    def test_simulate_with_export(self, tmp_path):
        json_path = tmp_path / "run.json"
        assert main(["simulate", "--json", str(json_path)]) == 0
        assert json_path.exists()
