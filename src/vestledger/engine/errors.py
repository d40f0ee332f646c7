"""Rule violations raised by the distribution engine.

Every precondition failure rejects the whole operation with no state change.
Idempotent no-ops (already-claimed TGE, zero payable installments) never raise.
"""


class DistributionError(ValueError):
    """Base class for all rejected distribution operations."""


class NotAdministrator(DistributionError):
    """Caller is not the administrator."""


class AlreadyActivated(DistributionError):
    """Operation is only valid during the configuration phase."""


class NotActivated(DistributionError):
    """Operation is only valid after activation."""


class ActivationInPast(DistributionError):
    """Activation start time must be strictly in the future."""


class InvalidPeriod(DistributionError):
    """Installment period length must be positive."""


class InvalidToken(DistributionError):
    """Token source is not a usable transfer endpoint."""


class InvalidGroupParameters(DistributionError):
    """Group parameters are out of range."""


class InactiveGroup(DistributionError):
    """Group id does not refer to an active group."""


class DuplicateEnrollment(DistributionError):
    """Principal is already enrolled."""


class LengthMismatch(DistributionError):
    """Batch principals and stakes differ in length."""


class ZeroStake(DistributionError):
    """Stake must be positive."""


class NotEnrolled(DistributionError):
    """Principal has no allocation."""


class CliffNotReached(DistributionError):
    """Installments cannot be claimed before the group cliff has passed."""


class NothingToRelease(DistributionError):
    """Every installment has already been released."""


class InvalidAmount(DistributionError):
    """Amount must be positive."""


class InsufficientBalance(DistributionError):
    """Sender balance or allowance does not cover a transfer."""


class UnderfundedSupply(DistributionError):
    """Deposits do not cover the pledged supply."""


class TransferFailed(DistributionError):
    """Token endpoint reported a failed transfer."""
