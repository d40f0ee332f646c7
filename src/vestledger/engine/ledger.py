"""Beneficiary ledger and supply account.

Supply Ledger Semantics:
- total_deposited: tokens pulled into custody by the administrator, less swept surplus
- total_pledged: running sum of tge_amount + installment_amount * installment_count
  over every enrolled beneficiary

Funding Identity (required before the surplus can be swept):
total_pledged <= total_deposited

Released tokens leave custody but stay pledged; the custody balance is
total_deposited - total_released.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Iterator, Optional, Tuple


class VestingStatus(Enum):
    """Lifecycle of a single beneficiary."""
    UNENROLLED = "unenrolled"
    ENROLLED = "enrolled"  # Pre-activation
    VESTING = "vesting"  # Post-activation, installments pending
    FULLY_VESTED = "fully_vested"  # installments_released == installment_count


@dataclass
class BeneficiaryRecord:
    """Allocation for one principal, derived once at enrollment.

    Group parameters are copied by value so later group edits never reach
    existing beneficiaries. stake == 0 marks an unset record.
    """
    stake: int
    cliff_duration: int
    installment_count: int
    installment_amount: int
    tge_amount: int
    group_id: int = 0
    installments_released: int = 0
    tge_claimed: bool = False

    @property
    def enrolled(self) -> bool:
        return self.stake > 0

    @property
    def total_allocation(self) -> int:
        """Everything this beneficiary can ever receive."""
        return self.tge_amount + self.installment_amount * self.installment_count

    @property
    def released_amount(self) -> int:
        """Cumulative amount paid out so far."""
        paid = self.installment_amount * self.installments_released
        if self.tge_claimed:
            paid += self.tge_amount
        return paid

    @property
    def installments_remaining(self) -> int:
        return self.installment_count - self.installments_released

    @property
    def fully_vested(self) -> bool:
        return self.installments_released >= self.installment_count


@dataclass
class SupplyAccount:
    """System-wide deposited vs pledged accumulator."""
    total_deposited: int = 0
    total_pledged: int = 0
    total_released: int = 0

    @property
    def surplus(self) -> int:
        """Deposited-but-unpledged tokens. Negative when under-funded."""
        return self.total_deposited - self.total_pledged

    @property
    def custody_balance(self) -> int:
        """Tokens that should be held by the distribution right now."""
        return self.total_deposited - self.total_released

    def validate_funding(self) -> Tuple[bool, Optional[str]]:
        """
        Validate total_pledged <= total_deposited.

        Returns:
            (is_valid, error_message)
        """
        if self.total_pledged > self.total_deposited:
            return False, (
                f"Funding gap: pledged={self.total_pledged:,}, "
                f"deposited={self.total_deposited:,}, "
                f"short={self.total_pledged - self.total_deposited:,}"
            )
        return True, None

    def validate_non_negative(self) -> Tuple[bool, Optional[str]]:
        """Validate all buckets are non-negative."""
        buckets = [
            ('total_deposited', self.total_deposited),
            ('total_pledged', self.total_pledged),
            ('total_released', self.total_released),
            ('custody_balance', self.custody_balance),
        ]
        for name, value in buckets:
            if value < 0:
                return False, f"Negative bucket: {name}={value:,}"
        return True, None


class BeneficiaryLedger:
    """Per-principal allocation records plus the enrolled-count counter."""

    def __init__(self):
        self._records: Dict[str, BeneficiaryRecord] = {}
        self.enrolled_count = 0

    def get(self, principal: str) -> Optional[BeneficiaryRecord]:
        return self._records.get(principal)

    def is_enrolled(self, principal: str) -> bool:
        record = self._records.get(principal)
        return record is not None and record.enrolled

    def add(self, principal: str, record: BeneficiaryRecord) -> None:
        """Store a new record. Callers validate uniqueness beforehand."""
        self._records[principal] = record
        self.enrolled_count += 1

    def snapshot(self, principal: str) -> Optional[BeneficiaryRecord]:
        """Detached copy of a record, safe to hand to callers."""
        record = self._records.get(principal)
        return replace(record) if record is not None else None

    def items(self) -> Iterator[Tuple[str, BeneficiaryRecord]]:
        return iter(self._records.items())

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, principal: str) -> bool:
        return self.is_enrolled(principal)
