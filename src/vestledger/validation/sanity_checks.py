"""Sanity checks for distribution configs and simulation results."""

from dataclasses import dataclass
from typing import Dict, List, Optional

from ..config.schema import Config, GroupSpec
from ..engine.enrollment import AllocationSplit, build_record, split_stake
from ..engine.groups import PPM, GroupConfig
from ..engine.ledger import SupplyAccount
from ..simulation.runner import SimulationResult, SupplySnapshot
from ..simulation.schedule import schedule_horizon


@dataclass
class ValidationWarning:
    """A validation warning with severity and message."""
    severity: str  # "warning" or "error"
    category: str  # e.g., "input", "funding", "rounding"
    message: str
    details: Optional[str] = None


def _group_config(spec: GroupSpec) -> GroupConfig:
    return GroupConfig(
        active=True,
        cliff_duration=spec.cliff_seconds,
        tge_fraction_per_million=spec.tge_ppm,
        installment_count=spec.installment_count,
    )


def pledge_breakdown(config: Config) -> Dict[str, AllocationSplit]:
    """Split every configured stake exactly as enrollment would."""
    groups = {g.id: _group_config(g) for g in config.groups}
    return {
        b.principal: split_stake(b.stake, groups[b.group], config.token.precision_unit)
        for b in config.beneficiaries
    }


class SanityChecker:
    """Run sanity checks on configuration and simulation state."""

    def __init__(self, config: Config):
        """Initialize with configuration."""
        self.config = config
        self.splits = pledge_breakdown(config)

    @property
    def total_pledged(self) -> int:
        return sum(s.pledged for s in self.splits.values())

    @property
    def planned_deposit(self) -> int:
        funding = self.config.funding
        if funding.deposit is not None:
            return funding.deposit
        return self.total_pledged + funding.surplus

    def check_config_inputs(self) -> List[ValidationWarning]:
        """
        Check configuration inputs for implausible values.

        Returns:
            List of validation warnings
        """
        warnings = []
        unit = self.config.token.precision_unit
        stake_total = sum(b.stake for b in self.config.beneficiaries)
        pledged = self.total_pledged
        deposit = self.planned_deposit

        if not self.config.beneficiaries:
            warnings.append(ValidationWarning(
                severity="warning",
                category="input",
                message="No beneficiaries configured",
                details="Every deposited token will be sweepable"
            ))

        # Funding must cover pledges or claims will eventually fail
        if deposit < pledged:
            details = f"Short by {pledged - deposit:,} base units"
            if deposit >= stake_total:
                details += (
                    f"; deposit covers stakes ({stake_total:,}) but not the "
                    f"{pledged - stake_total:,} units of installment rounding"
                )
            warnings.append(ValidationWarning(
                severity="error",
                category="funding",
                message=f"Deposit {deposit:,} does not cover pledged supply {pledged:,}",
                details=details
            ))
        elif deposit == pledged and pledged > 0:
            warnings.append(ValidationWarning(
                severity="warning",
                category="funding",
                message="Deposit exactly matches pledged supply; sweep will return nothing",
            ))

        # Rounding headroom: every beneficiary may be over-pledged by up to count * unit
        worst_case = sum(s.installment_count * unit for s in self.splits.values())
        if deposit >= pledged and deposit - stake_total < worst_case:
            warnings.append(ValidationWarning(
                severity="warning",
                category="rounding",
                message="Surplus over stakes is below the worst-case rounding over-pledge",
                details=(
                    f"Surplus over stakes: {deposit - stake_total:,}, "
                    f"worst case: {worst_case:,} base units"
                )
            ))

        enrolled_groups = {b.group for b in self.config.beneficiaries}
        for group in self.config.groups:
            if group.id not in enrolled_groups:
                warnings.append(ValidationWarning(
                    severity="warning",
                    category="input",
                    message=f"Group {group.id} ({group.name or 'unnamed'}) has no beneficiaries",
                ))
            if group.tge_ppm == PPM:
                warnings.append(ValidationWarning(
                    severity="warning",
                    category="rounding",
                    message=f"Group {group.id} unlocks 100% at TGE",
                    details=(
                        f"Each of its {group.installment_count} installments still pays "
                        f"{unit:,} base units of rounding"
                    )
                ))

        # Coarse rounding relative to the installment itself
        for principal, split in self.splits.items():
            if split.raw_installment < unit and split.remainder > 0:
                warnings.append(ValidationWarning(
                    severity="warning",
                    category="rounding",
                    message=f"{principal}: installment share below the precision unit",
                    details=f"Raw installment {split.raw_installment:,} < unit {unit:,}"
                ))

        horizon_periods = self.config.simulation.horizon_periods
        if horizon_periods is not None:
            period = self.config.clock.period_seconds
            records = [
                build_record(b.stake, b.group, _group_config(self.config.group_by_id(b.group)), unit)
                for b in self.config.beneficiaries
            ]
            needed = schedule_horizon(records, period)
            if horizon_periods * period < needed:
                warnings.append(ValidationWarning(
                    severity="warning",
                    category="input",
                    message="Simulation horizon ends before the last installment",
                    details=f"Horizon: {horizon_periods} periods, schedule needs {needed / period:.1f}"
                ))

        return warnings

    def check_snapshot(self, snapshot: SupplySnapshot) -> List[ValidationWarning]:
        """
        Check one simulation snapshot.

        Args:
            snapshot: Supply state after a tick

        Returns:
            List of validation warnings
        """
        warnings = []
        account = SupplyAccount(
            total_deposited=snapshot.total_deposited,
            total_pledged=snapshot.total_pledged,
            total_released=snapshot.total_released,
        )

        is_valid, error_msg = account.validate_non_negative()
        if not is_valid:
            warnings.append(ValidationWarning(
                severity="error",
                category="bounds",
                message=f"Negative supply bucket at t={snapshot.t}",
                details=error_msg
            ))

        if snapshot.total_released > snapshot.total_pledged:
            warnings.append(ValidationWarning(
                severity="error",
                category="conservation",
                message=f"Released more than pledged at t={snapshot.t}",
                details=f"Released {snapshot.total_released:,}, pledged {snapshot.total_pledged:,}"
            ))

        return warnings


def validate_simulation_results(result: SimulationResult) -> List[ValidationWarning]:
    """
    Validate complete simulation results.

    Args:
        result: Output of ScheduleSimulator.run()

    Returns:
        List of all validation warnings
    """
    checker = SanityChecker(result.config)
    warnings = []

    # Check config first
    warnings.extend(checker.check_config_inputs())

    for snapshot in result.snapshots:
        warnings.extend(checker.check_snapshot(snapshot))

    for error in result.conservation_errors:
        warnings.append(ValidationWarning(
            severity="error",
            category="conservation",
            message="Custody reconciliation failed",
            details=error
        ))

    for principal, paid in result.payouts.items():
        split = checker.splits.get(principal)
        if split is not None and paid > split.pledged:
            warnings.append(ValidationWarning(
                severity="error",
                category="conservation",
                message=f"{principal} was paid above allocation",
                details=f"Paid {paid:,}, allocation {split.pledged:,}"
            ))

    if result.snapshots and result.snapshots[-1].fully_vested < len(result.payouts):
        final = result.snapshots[-1]
        warnings.append(ValidationWarning(
            severity="warning",
            category="schedule",
            message="Not every beneficiary is fully vested at the end of the run",
            details=f"{final.fully_vested} of {len(result.payouts)} fully vested"
        ))

    return warnings
