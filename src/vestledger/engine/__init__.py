"""Allocation and release engine."""

from .access import Authorizer, SingleOwner
from .clock import ActivationState, DistributionClock
from .distribution import Distribution, DistributionSummary, LedgerState
from .enrollment import DEFAULT_PRECISION_UNIT, AllocationSplit, EnrollmentEngine, build_record, split_stake
from .errors import (
    ActivationInPast,
    AlreadyActivated,
    CliffNotReached,
    DistributionError,
    DuplicateEnrollment,
    InactiveGroup,
    InsufficientBalance,
    InvalidAmount,
    InvalidGroupParameters,
    InvalidPeriod,
    InvalidToken,
    LengthMismatch,
    NotActivated,
    NotAdministrator,
    NotEnrolled,
    NothingToRelease,
    TransferFailed,
    UnderfundedSupply,
    ZeroStake,
)
from .events import EventLog
from .groups import PPM, GroupConfig, GroupRegistry
from .ledger import BeneficiaryLedger, BeneficiaryRecord, SupplyAccount, VestingStatus
from .release import ReleaseEngine
from .token import InMemoryToken, TokenEndpoint

__all__ = [
    # Facade
    "Distribution",
    "DistributionSummary",
    "LedgerState",
    # Components
    "GroupConfig",
    "GroupRegistry",
    "BeneficiaryLedger",
    "BeneficiaryRecord",
    "SupplyAccount",
    "VestingStatus",
    "ActivationState",
    "DistributionClock",
    "EnrollmentEngine",
    "ReleaseEngine",
    "AllocationSplit",
    "split_stake",
    "build_record",
    "PPM",
    "DEFAULT_PRECISION_UNIT",
    # Collaborators
    "Authorizer",
    "SingleOwner",
    "TokenEndpoint",
    "InMemoryToken",
    "EventLog",
    # Errors
    "DistributionError",
    "NotAdministrator",
    "AlreadyActivated",
    "NotActivated",
    "ActivationInPast",
    "InvalidPeriod",
    "InvalidToken",
    "InvalidGroupParameters",
    "InactiveGroup",
    "DuplicateEnrollment",
    "LengthMismatch",
    "ZeroStake",
    "NotEnrolled",
    "CliffNotReached",
    "NothingToRelease",
    "InvalidAmount",
    "InsufficientBalance",
    "UnderfundedSupply",
    "TransferFailed",
]
