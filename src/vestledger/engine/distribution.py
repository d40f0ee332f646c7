"""Distribution facade - the public, owner-gated operation surface.

Each operation is one atomic transaction: checks, then effects, then the
token interaction. If anything raises, the state captured at entry is
restored and the exception propagates. Nested calls (a token hook calling
back in) take their own checkpoint, so an inner failure only undoes itself,
while an outer failure also undoes every nested payout it enclosed.
"""

import copy
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from .access import Authorizer
from .clock import ActivationState, DistributionClock
from .enrollment import DEFAULT_PRECISION_UNIT, EnrollmentEngine
from .errors import (
    ActivationInPast,
    AlreadyActivated,
    InvalidAmount,
    InvalidPeriod,
    InvalidToken,
    NotActivated,
    NotAdministrator,
    NotEnrolled,
    TransferFailed,
)
from .events import (
    Activated,
    BeneficiariesAdded,
    Deposited,
    Event,
    EventLog,
    GroupConfigured,
    InstallmentPaid,
    RemainderSwept,
    TgePaid,
)
from .groups import GroupConfig, GroupRegistry
from .ledger import BeneficiaryLedger, BeneficiaryRecord, SupplyAccount, VestingStatus
from .release import ReleaseEngine
from .token import TokenEndpoint

logger = logging.getLogger(__name__)


@dataclass
class LedgerState:
    """All mutable state of one distribution."""
    registry: GroupRegistry
    ledger: BeneficiaryLedger
    supply: SupplyAccount
    clock: DistributionClock


@dataclass
class _Checkpoint:
    """State a payout restores if it aborts, plus events held back until commit."""
    supply: SupplyAccount
    records: Dict[str, BeneficiaryRecord] = field(default_factory=dict)
    events: List[Event] = field(default_factory=list)


@dataclass
class DistributionSummary:
    """Read-only overview of a distribution."""
    activated: bool
    activation_time: int
    period_length: int
    group_count: int
    enrolled_count: int
    total_deposited: int
    total_pledged: int
    total_released: int
    surplus: int
    custody_balance: int

    @property
    def funding_gap(self) -> int:
        return max(0, -self.surplus)


class Distribution:
    """Time-gated token distribution with TGE unlock and periodic installments."""

    def __init__(
        self,
        authorizer: Authorizer,
        custody: str = "distribution",
        precision_unit: int = DEFAULT_PRECISION_UNIT,
        time_source: Callable[[], float] = time.time,
        events: Optional[EventLog] = None
    ):
        """
        Initialize an empty distribution in configuration phase.

        Args:
            authorizer: Decides which caller is the administrator
            custody: Account id under which deposited tokens are held
            precision_unit: Installment rounding unit in base token units
            time_source: Wall clock returning seconds
            events: Notification sink (a fresh EventLog by default)
        """
        self.authorizer = authorizer
        self.custody = custody
        self.precision_unit = precision_unit
        self.time_source = time_source
        self.events = events if events is not None else EventLog()
        self.token: Optional[TokenEndpoint] = None
        self._checkpoints: List[_Checkpoint] = []
        self.state = LedgerState(
            registry=GroupRegistry(),
            ledger=BeneficiaryLedger(),
            supply=SupplyAccount(),
            clock=DistributionClock(),
        )

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def now(self) -> int:
        return int(self.time_source())

    @property
    def activated(self) -> bool:
        return self.state.clock.activated

    def _enrollment(self) -> EnrollmentEngine:
        return EnrollmentEngine(
            self.state.registry, self.state.ledger, self.state.supply, self.precision_unit
        )

    def _release(self) -> ReleaseEngine:
        return ReleaseEngine(self.state.ledger, self.state.supply, self.state.clock)

    @contextmanager
    def _transaction(self, operation: str):
        snapshot = copy.deepcopy(self.state)
        try:
            yield
        except Exception:
            self.state = snapshot
            logger.warning("%s aborted, ledger state rolled back", operation)
            raise

    @contextmanager
    def _payout(self, operation: str, principal: Optional[str] = None):
        # Distribution-phase operations only touch the supply account and at
        # most one record, so only those are checkpointed and restored in place.
        checkpoint = _Checkpoint(supply=copy.copy(self.state.supply))
        record = self.state.ledger.get(principal) if principal is not None else None
        if record is not None:
            checkpoint.records[principal] = copy.copy(record)
        self._checkpoints.append(checkpoint)
        try:
            yield
        except Exception:
            self._checkpoints.pop()
            vars(self.state.supply).update(vars(checkpoint.supply))
            for owner, saved in checkpoint.records.items():
                vars(self.state.ledger.get(owner)).update(vars(saved))
            logger.warning("%s aborted, ledger state rolled back", operation)
            raise
        self._checkpoints.pop()
        if self._checkpoints:
            # Nested in another payout: that one must be able to undo this too.
            outer = self._checkpoints[-1]
            for owner, saved in checkpoint.records.items():
                outer.records.setdefault(owner, saved)
            outer.events.extend(checkpoint.events)
        else:
            for event in checkpoint.events:
                self.events.emit(event)

    def _emit(self, event: Event) -> None:
        # Events of a nested payout wait until the outermost one commits.
        if self._checkpoints:
            self._checkpoints[-1].events.append(event)
        else:
            self.events.emit(event)

    def _require_admin(self, caller: str) -> None:
        if not self.authorizer.is_administrator(caller):
            raise NotAdministrator(f"{caller} is not the administrator")

    def _require_configuring(self) -> None:
        if self.activated:
            raise AlreadyActivated("Distribution is already activated")

    def _require_activated(self) -> None:
        if not self.activated:
            raise NotActivated("Distribution is not activated yet")

    def _disburse(self, recipient: str, amount: int) -> None:
        if self.token.transfer(self.custody, recipient, amount) is False:
            raise TransferFailed(f"Transfer of {amount:,} to {recipient} failed")

    # ------------------------------------------------------------------
    # Configuration phase
    # ------------------------------------------------------------------

    def set_group(
        self,
        caller: str,
        group_id: int,
        cliff_duration: int,
        tge_fraction_per_million: int,
        installment_count: int
    ) -> GroupConfig:
        """Create or replace a group. Administrator only, before activation."""
        self._require_admin(caller)
        self._require_configuring()
        with self._transaction("set_group"):
            group = self.state.registry.set_group(
                group_id, cliff_duration, tge_fraction_per_million, installment_count
            )
        self.events.emit(GroupConfigured(
            group_id=group_id,
            cliff_duration=group.cliff_duration,
            tge_fraction_per_million=group.tge_fraction_per_million,
            installment_count=group.installment_count,
        ))
        return group

    def enroll(self, caller: str, principals: Sequence[str], stakes: Sequence[int], group_id: int) -> List[BeneficiaryRecord]:
        """Enroll a batch of beneficiaries. All-or-nothing."""
        self._require_admin(caller)
        self._require_configuring()
        with self._transaction("enroll"):
            records = self._enrollment().enroll(principals, stakes, group_id)
        self.events.emit(BeneficiariesAdded(
            group_id=group_id,
            principals=tuple(principals),
            stakes=tuple(int(s) for s in stakes),
            pledged=sum(r.total_allocation for r in records),
        ))
        return [copy.copy(r) for r in records]

    def enroll_one(self, caller: str, principal: str, stake: int, group_id: int) -> BeneficiaryRecord:
        return self.enroll(caller, [principal], [stake], group_id)[0]

    def activate(self, caller: str, token: TokenEndpoint, start_time: int, period_length: int) -> ActivationState:
        """
        Fix the schedule origin and token. Irreversible.

        Raises:
            NotAdministrator, AlreadyActivated, InvalidToken, ActivationInPast, InvalidPeriod
        """
        self._require_admin(caller)
        self._require_configuring()
        if token is None or not isinstance(token, TokenEndpoint):
            raise InvalidToken(f"{token!r} is not a token endpoint")
        now = self.now()
        if start_time <= now:
            raise ActivationInPast(f"Start time {start_time} is not after now ({now})")
        if period_length <= 0:
            raise InvalidPeriod(f"Period length must be positive, got {period_length}")

        state = self.state.clock.activate(start_time, period_length)
        self.token = token
        self.events.emit(Activated(
            token=getattr(token, "symbol", type(token).__name__),
            activation_time=state.activation_time,
            period_length=state.period_length,
        ))
        return state

    # ------------------------------------------------------------------
    # Distribution phase
    # ------------------------------------------------------------------

    def deposit(self, caller: str, amount: int) -> int:
        """
        Pull ``amount`` from the administrator into custody.

        The administrator must have approved the custody account as spender.

        Returns:
            New total_deposited
        """
        self._require_admin(caller)
        self._require_activated()
        if amount <= 0:
            raise InvalidAmount(f"Deposit must be positive, got {amount}")

        with self._payout("deposit"):
            self.state.supply.total_deposited += amount
            total = self.state.supply.total_deposited
            if self.token.transfer_from(self.custody, caller, self.custody, amount) is False:
                raise TransferFailed(f"Deposit of {amount:,} from {caller} failed")
        self._emit(Deposited(amount=amount, total_deposited=total))
        return total

    def claim_tge(self, caller: str) -> int:
        """Pay the caller's TGE unlock. Idempotent."""
        self._require_activated()
        with self._payout("claim_tge", caller):
            amount = self._release().claim_tge(caller, self._disburse)
        if amount > 0:
            self._emit(TgePaid(principal=caller, amount=amount))
        return amount

    def claim_installments(self, caller: str) -> int:
        """Pay the caller every installment elapsed since the last claim."""
        self._require_activated()
        now = self.now()
        with self._payout("claim_installments", caller):
            amount = self._release().claim_installments(caller, now, self._disburse)
        if amount > 0:
            record = self.state.ledger.get(caller)
            self._emit(InstallmentPaid(
                principal=caller,
                installments=amount // record.installment_amount,
                amount=amount,
                installments_released=record.installments_released,
            ))
        return amount

    def sweep_remainder(self, caller: str) -> int:
        """Send deposited-but-unpledged tokens to the administrator."""
        self._require_admin(caller)
        self._require_activated()
        with self._payout("sweep_remainder"):
            amount = self._release().sweep_remainder(caller, self._disburse)
        self._emit(RemainderSwept(recipient=caller, amount=amount))
        return amount

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def group(self, group_id: int) -> Optional[GroupConfig]:
        return self.state.registry.get(group_id)

    def groups(self) -> Dict[int, GroupConfig]:
        return self.state.registry.all()

    def beneficiary(self, principal: str) -> BeneficiaryRecord:
        record = self.state.ledger.snapshot(principal)
        if record is None:
            raise NotEnrolled(f"{principal} has no allocation")
        return record

    def beneficiaries(self) -> Dict[str, BeneficiaryRecord]:
        return {p: copy.copy(r) for p, r in self.state.ledger.items()}

    def beneficiary_status(self, principal: str, now: Optional[int] = None) -> VestingStatus:
        return self._release().status(principal, self.now() if now is None else now)

    def total_allocation(self, principal: str) -> int:
        return self.beneficiary(principal).total_allocation

    def vested_installments(self, principal: str, now: Optional[int] = None) -> int:
        """Installments accrued by ``now``, including already released ones."""
        record = self.beneficiary(principal)
        if not self.activated:
            return 0
        now = self.now() if now is None else now
        return self.state.clock.elapsed_installments(record.cliff_duration, record.installment_count, now)

    def releasable(self, principal: str, now: Optional[int] = None) -> int:
        """Amount a claim_installments call would pay at ``now``."""
        record = self.beneficiary(principal)
        if not self.activated:
            return 0
        now = self.now() if now is None else now
        return self._release().payable_installments(record, now) * record.installment_amount

    def summary(self) -> DistributionSummary:
        supply = self.state.supply
        clock = self.state.clock.state
        return DistributionSummary(
            activated=clock.activated,
            activation_time=clock.activation_time,
            period_length=clock.period_length,
            group_count=len(self.state.registry),
            enrolled_count=self.state.ledger.enrolled_count,
            total_deposited=supply.total_deposited,
            total_pledged=supply.total_pledged,
            total_released=supply.total_released,
            surplus=supply.surplus,
            custody_balance=supply.custody_balance,
        )
