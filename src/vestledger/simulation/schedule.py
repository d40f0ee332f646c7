"""Pure unlock projection for a single beneficiary record."""

from dataclasses import dataclass
from typing import List

from ..engine.clock import ActivationState, DistributionClock
from ..engine.ledger import BeneficiaryRecord


@dataclass
class ScheduleEntry:
    """One unlock event."""
    timestamp: int
    kind: str  # "tge" or "installment"
    index: int  # 0 for TGE, 1-based installment number otherwise
    amount: int
    cumulative: int


def project_schedule(record: BeneficiaryRecord, activation_time: int, period_length: int) -> List[ScheduleEntry]:
    """
    List every unlock for ``record`` in time order.

    TGE is claimable from activation; installment i unlocks at
    activation_time + cliff + i * period_length.
    """
    entries = []
    cumulative = 0
    if record.tge_amount > 0:
        cumulative += record.tge_amount
        entries.append(ScheduleEntry(activation_time, "tge", 0, record.tge_amount, cumulative))

    clock = DistributionClock(ActivationState(True, activation_time, period_length))
    for index in range(1, record.installment_count + 1):
        cumulative += record.installment_amount
        ts = clock.installment_unlock_time(record.cliff_duration, index)
        entries.append(ScheduleEntry(ts, "installment", index, record.installment_amount, cumulative))
    return entries


def schedule_horizon(records: List[BeneficiaryRecord], period_length: int) -> int:
    """Seconds after activation until the last installment of any record unlocks."""
    if not records:
        return 0
    return max(r.cliff_duration + r.installment_count * period_length for r in records)
