"""Release engine - TGE unlocks, installment entitlement, surplus sweep.

Ordering rule: every state mutation is committed before ``disburse`` is
called, so a recipient that calls back in observes the updated record and
is held off by the idempotence and clamping checks below.
"""

import logging
from typing import Callable

from .clock import DistributionClock
from .errors import CliffNotReached, NotEnrolled, NothingToRelease, UnderfundedSupply
from .ledger import BeneficiaryLedger, BeneficiaryRecord, SupplyAccount, VestingStatus

logger = logging.getLogger(__name__)

Disburse = Callable[[str, int], None]


class ReleaseEngine:
    """Computes and pays entitlements for one principal at one wall-clock time."""

    def __init__(self, ledger: BeneficiaryLedger, supply: SupplyAccount, clock: DistributionClock):
        self.ledger = ledger
        self.supply = supply
        self.clock = clock

    def _require_record(self, principal: str) -> BeneficiaryRecord:
        record = self.ledger.get(principal)
        if record is None or not record.enrolled:
            raise NotEnrolled(f"{principal} has no allocation")
        return record

    def status(self, principal: str, now: int) -> VestingStatus:
        record = self.ledger.get(principal)
        if record is None or not record.enrolled:
            return VestingStatus.UNENROLLED
        if not self.clock.activated:
            return VestingStatus.ENROLLED
        if record.fully_vested:
            return VestingStatus.FULLY_VESTED
        return VestingStatus.VESTING

    def payable_installments(self, record: BeneficiaryRecord, now: int) -> int:
        elapsed = self.clock.elapsed_installments(record.cliff_duration, record.installment_count, now)
        return max(elapsed - record.installments_released, 0)

    def claim_tge(self, principal: str, disburse: Disburse) -> int:
        """
        Pay the TGE amount once. Repeat calls are no-ops returning 0.

        Returns:
            Amount paid
        """
        record = self._require_record(principal)
        if record.tge_claimed:
            return 0

        record.tge_claimed = True
        amount = record.tge_amount
        self.supply.total_released += amount

        if amount > 0:
            disburse(principal, amount)
        return amount

    def claim_installments(self, principal: str, now: int, disburse: Disburse) -> int:
        """
        Pay every installment elapsed since the last claim.

        elapsed = min(floor((now - (activation_time + cliff)) / period), installment_count)
        payable = elapsed - installments_released

        Returns:
            Amount paid (0 when called twice within one period)

        Raises:
            NotEnrolled, CliffNotReached, NothingToRelease
        """
        record = self._require_record(principal)
        cliff_end = self.clock.cliff_end(record.cliff_duration)
        if now < cliff_end:
            raise CliffNotReached(
                f"Cliff for {principal} ends at {cliff_end}, now is {now}"
            )
        if record.fully_vested:
            raise NothingToRelease(f"{principal} has no installments left")

        payable = self.payable_installments(record, now)
        record.installments_released += payable
        amount = payable * record.installment_amount
        self.supply.total_released += amount

        if amount > 0:
            disburse(principal, amount)
        logger.debug(
            "%s released %d installments (%d/%d), amount=%s",
            principal, payable, record.installments_released, record.installment_count, amount
        )
        return amount

    def sweep_remainder(self, recipient: str, disburse: Disburse) -> int:
        """
        Withdraw deposited tokens never pledged to anyone.

        Raises:
            UnderfundedSupply: If total_pledged exceeds total_deposited
        """
        is_valid, error_msg = self.supply.validate_funding()
        if not is_valid:
            raise UnderfundedSupply(error_msg)

        remainder = self.supply.surplus
        self.supply.total_deposited = self.supply.total_pledged

        if remainder > 0:
            disburse(recipient, remainder)
        return remainder
