"""Distribution clock - one activation timestamp and a fixed installment period."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ActivationState:
    """Set exactly once; moves the system from configuration to distribution phase."""
    activated: bool = False
    activation_time: int = 0
    period_length: int = 0


class DistributionClock:
    """Shared read-only reference for schedule math once activation is set."""

    def __init__(self, state: Optional[ActivationState] = None):
        self.state = state or ActivationState()

    @property
    def activated(self) -> bool:
        return self.state.activated

    def activate(self, activation_time: int, period_length: int) -> ActivationState:
        """Fix the schedule origin. Validation belongs to the caller."""
        self.state = ActivationState(
            activated=True,
            activation_time=int(activation_time),
            period_length=int(period_length),
        )
        return self.state

    def cliff_end(self, cliff_duration: int) -> int:
        """Timestamp at which installments start accruing for a given cliff."""
        return self.state.activation_time + cliff_duration

    def cliff_passed(self, cliff_duration: int, now: int) -> bool:
        return self.state.activated and now >= self.cliff_end(cliff_duration)

    def elapsed_installments(self, cliff_duration: int, installment_count: int, now: int) -> int:
        """
        Whole periods elapsed since the cliff ended, clamped to [0, installment_count].

        Formula: floor((now - (activation_time + cliff)) / period_length)
        """
        if not self.cliff_passed(cliff_duration, now):
            return 0
        elapsed = (now - self.cliff_end(cliff_duration)) // self.state.period_length
        return min(elapsed, installment_count)

    def installment_unlock_time(self, cliff_duration: int, index: int) -> int:
        """Timestamp at which installment number ``index`` (1-based) becomes claimable."""
        return self.cliff_end(cliff_duration) + index * self.state.period_length
