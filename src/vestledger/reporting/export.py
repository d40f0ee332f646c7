"""Export functionality for CSV and JSON."""

import json
from dataclasses import asdict
from typing import Dict

import pandas as pd

from ..engine.ledger import BeneficiaryRecord
from ..simulation.runner import SimulationResult
from ..simulation.schedule import project_schedule


def snapshots_frame(result: SimulationResult, decimals: int = None) -> pd.DataFrame:
    """Per-tick supply snapshots as a DataFrame; token-denominated columns when decimals is given."""
    df = pd.DataFrame([asdict(s) for s in result.snapshots])
    if decimals is not None and not df.empty:
        scale = 10 ** decimals
        for col in ('total_deposited', 'total_pledged', 'total_released', 'custody_balance'):
            df[f'{col}_tokens'] = df[col] / scale
    return df


def beneficiaries_frame(records: Dict[str, BeneficiaryRecord]) -> pd.DataFrame:
    """One row per beneficiary with derived allocation columns."""
    rows = []
    for principal, record in records.items():
        row = {'principal': principal}
        row.update(asdict(record))
        row['total_allocation'] = record.total_allocation
        row['released_amount'] = record.released_amount
        row['over_pledge'] = record.total_allocation - record.stake
        rows.append(row)
    return pd.DataFrame(rows)


def schedule_frame(records: Dict[str, BeneficiaryRecord], activation_time: int, period_length: int) -> pd.DataFrame:
    """Every projected unlock for every beneficiary, ordered by time."""
    rows = []
    for principal, record in records.items():
        for entry in project_schedule(record, activation_time, period_length):
            row = {'principal': principal, 'group_id': record.group_id}
            row.update(asdict(entry))
            rows.append(row)
    df = pd.DataFrame(rows)
    if not df.empty:
        df = df.sort_values(['timestamp', 'principal'], kind='stable').reset_index(drop=True)
    return df


def export_csv(result: SimulationResult, filepath: str):
    """Export simulation snapshots to CSV."""
    df = snapshots_frame(result, decimals=result.config.token.decimals)
    df.to_csv(filepath, index=False)


def export_json(result: SimulationResult, filepath: str):
    """Export simulation results to JSON."""
    export_data = {
        'config': result.config.to_dict(),
        'config_hash': result.config.compute_hash(),
        'snapshots': [asdict(s) for s in result.snapshots],
        'payouts': result.payouts,
        'final_metrics': result.final_metrics,
        'events': result.events,
        'conservation_errors': result.conservation_errors,
        'warnings': result.warnings,
    }

    with open(filepath, 'w') as f:
        json.dump(export_data, f, indent=2)


def payouts_frame(payouts: Dict[str, int], records: Dict[str, BeneficiaryRecord]) -> pd.DataFrame:
    """Paid vs allocation per beneficiary."""
    return pd.DataFrame([
        {
            'principal': p,
            'paid': paid,
            'allocation': records[p].total_allocation if p in records else 0,
            'stake': records[p].stake if p in records else 0,
        }
        for p, paid in payouts.items()
    ])
