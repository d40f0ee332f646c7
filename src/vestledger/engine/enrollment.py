"""Enrollment engine - turn (stake, group) pairs into beneficiary records.

Split Formula (integer-only, precision unit U in base units):
    tge_amount         = floor(stake * tge_ppm / 1_000_000)
    remainder          = stake - tge_amount
    raw_installment    = floor(remainder / installment_count)
    installment_amount = (floor(raw_installment / U) + 1) * U

The ceiling is applied once per beneficiary, so the beneficiary is never
under-delivered; the aggregate over-pledge is carried in total_pledged.
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence

from .errors import DuplicateEnrollment, LengthMismatch, ZeroStake
from .groups import PPM, GroupConfig, GroupRegistry
from .ledger import BeneficiaryLedger, BeneficiaryRecord, SupplyAccount

logger = logging.getLogger(__name__)

# 10^-6 of a whole token for an 18-decimal token
DEFAULT_PRECISION_UNIT = 10 ** 12


@dataclass(frozen=True)
class AllocationSplit:
    """Intermediate values of the stake split."""
    tge_amount: int
    remainder: int
    raw_installment: int
    installment_amount: int
    installment_count: int

    @property
    def pledged(self) -> int:
        return self.installment_amount * self.installment_count + self.tge_amount

    @property
    def over_pledge(self) -> int:
        """Tokens pledged above the stake because of the ceiling step."""
        return self.pledged - (self.tge_amount + self.remainder)


def split_stake(stake: int, group: GroupConfig, precision_unit: int = DEFAULT_PRECISION_UNIT) -> AllocationSplit:
    """Compute the TGE / installment split for one stake."""
    tge_amount = stake * group.tge_fraction_per_million // PPM
    remainder = stake - tge_amount
    raw_installment = remainder // group.installment_count
    installment_amount = (raw_installment // precision_unit + 1) * precision_unit
    return AllocationSplit(
        tge_amount=tge_amount,
        remainder=remainder,
        raw_installment=raw_installment,
        installment_amount=installment_amount,
        installment_count=group.installment_count,
    )


def build_record(stake: int, group_id: int, group: GroupConfig, precision_unit: int = DEFAULT_PRECISION_UNIT) -> BeneficiaryRecord:
    """Create a fresh record, copying group parameters by value."""
    split = split_stake(stake, group, precision_unit)
    return BeneficiaryRecord(
        stake=stake,
        cliff_duration=group.cliff_duration,
        installment_count=group.installment_count,
        installment_amount=split.installment_amount,
        tge_amount=split.tge_amount,
        group_id=group_id,
    )


class EnrollmentEngine:
    """Batch enrollment with all-or-nothing validation."""

    def __init__(
        self,
        registry: GroupRegistry,
        ledger: BeneficiaryLedger,
        supply: SupplyAccount,
        precision_unit: int = DEFAULT_PRECISION_UNIT
    ):
        if precision_unit <= 0:
            raise ValueError(f"precision_unit must be positive, got {precision_unit}")
        self.registry = registry
        self.ledger = ledger
        self.supply = supply
        self.precision_unit = precision_unit

    def enroll(self, principals: Sequence[str], stakes: Sequence[int], group_id: int) -> List[BeneficiaryRecord]:
        """
        Enroll a batch of principals into one group.

        Every entry is validated before any record is written, so a single bad
        entry leaves the ledger untouched. total_pledged is deliberately not
        compared against total_deposited here; deposits usually arrive later.

        Args:
            principals: Beneficiary identities
            stakes: Stake per principal, same length as principals
            group_id: Active group to enroll into

        Returns:
            The created records, in input order

        Raises:
            LengthMismatch, InactiveGroup, ZeroStake, DuplicateEnrollment
        """
        if len(principals) != len(stakes):
            raise LengthMismatch(
                f"{len(principals)} principals but {len(stakes)} stakes"
            )
        group = self.registry.require_active(group_id)

        seen = set()
        for principal, stake in zip(principals, stakes):
            if stake <= 0:
                raise ZeroStake(f"Stake for {principal} must be positive, got {stake}")
            if principal in seen or self.ledger.is_enrolled(principal):
                raise DuplicateEnrollment(f"{principal} is already enrolled")
            seen.add(principal)

        records = []
        pledged = 0
        for principal, stake in zip(principals, stakes):
            record = build_record(int(stake), group_id, group, self.precision_unit)
            pledged += record.total_allocation
            self.ledger.add(principal, record)
            records.append(record)

        self.supply.total_pledged += pledged
        logger.debug(
            "Enrolled %d beneficiaries into group %s, pledged +%s (total %s)",
            len(records), group_id, pledged, self.supply.total_pledged
        )
        return records
