"""Simulation runner - replay a configured distribution end to end.

Key Features:
- Drives the real Distribution against an in-memory token
- Numpy time grid of ticks after activation
- Seeded, irregular claim behaviour to exercise idempotent claims
- Per-tick funding and custody reconciliation
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List

import numpy as np

from ..config.loader import build_distribution
from ..config.schema import Config
from ..engine.distribution import Distribution
from ..engine.errors import DistributionError
from ..engine.events import EventLog
from ..engine.ledger import VestingStatus
from ..engine.token import InMemoryToken
from .schedule import schedule_horizon

logger = logging.getLogger(__name__)


@dataclass
class SupplySnapshot:
    """Supply state after one tick."""
    t: int  # Seconds since activation
    period: float  # t / period_length
    total_deposited: int
    total_pledged: int
    total_released: int
    custody_balance: int
    tge_claimed: int  # Beneficiaries that have claimed TGE
    fully_vested: int  # Beneficiaries with every installment released


@dataclass
class SimulationResult:
    """Complete simulation result."""
    config: Config
    snapshots: List[SupplySnapshot]
    payouts: Dict[str, int]
    final_metrics: Dict[str, Any]
    events: List[Dict[str, Any]] = field(default_factory=list)
    conservation_errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


class ScheduleSimulator:
    """Replays enrollment, activation, deposit, claims and sweep for a config."""

    def __init__(self, config: Config):
        """
        Initialize simulator.

        Args:
            config: Distribution configuration
        """
        self.config = config
        self.current_time = 0
        self.events = EventLog()
        self.token = InMemoryToken(symbol=config.token.symbol, decimals=config.token.decimals)
        self.distribution: Distribution = build_distribution(
            config, time_source=lambda: self.current_time, events=self.events
        )
        self.rng = np.random.default_rng(config.simulation.random_seed)
        self._conservation_errors: List[str] = []
        self._warnings: List[str] = []

    def _deposit_amount(self) -> int:
        funding = self.config.funding
        if funding.deposit is not None:
            return funding.deposit
        return self.distribution.summary().total_pledged + funding.surplus

    def _activate_and_fund(self) -> int:
        admin = self.config.administrator
        activation_time = self.current_time + self.config.clock.start_delay_seconds
        self.distribution.activate(admin, self.token, activation_time, self.config.clock.period_seconds)

        deposit = self._deposit_amount()
        if deposit > 0:
            self.token.mint(admin, deposit)
            self.token.approve(admin, self.distribution.custody, deposit)
            self.distribution.deposit(admin, deposit)
        return activation_time

    def _tick_grid(self, activation_time: int) -> np.ndarray:
        period = self.config.clock.period_seconds
        records = list(self.distribution.beneficiaries().values())
        if self.config.simulation.horizon_periods is not None:
            horizon = self.config.simulation.horizon_periods * period
        else:
            horizon = schedule_horizon(records, period)
        tick = max(1, period // self.config.simulation.steps_per_period)
        n_ticks = max(1, math.ceil(horizon / tick))
        return activation_time + np.arange(0, n_ticks + 1, dtype=np.int64) * tick

    def _claim(self, principal: str) -> None:
        d = self.distribution
        d.claim_tge(principal)
        record = d.beneficiary(principal)
        cliff_end = d.state.clock.cliff_end(record.cliff_duration)
        if self.current_time >= cliff_end and not record.fully_vested:
            d.claim_installments(principal)

    def _reconcile(self, activation_time: int) -> SupplySnapshot:
        d = self.distribution
        summary = d.summary()
        records = d.beneficiaries()
        t = self.current_time - activation_time

        pledged = sum(r.total_allocation for r in records.values())
        if pledged != summary.total_pledged:
            self._conservation_errors.append(
                f"t={t}: pledged accumulator {summary.total_pledged:,} != sum of allocations {pledged:,}"
            )
        custody = self.token.balance_of(d.custody)
        if custody != summary.custody_balance:
            self._conservation_errors.append(
                f"t={t}: custody token balance {custody:,} != ledger custody {summary.custody_balance:,}"
            )
        for principal, record in records.items():
            received = self.token.balance_of(principal)
            if received > record.total_allocation:
                self._conservation_errors.append(
                    f"t={t}: {principal} received {received:,} above allocation {record.total_allocation:,}"
                )

        return SupplySnapshot(
            t=t,
            period=t / summary.period_length,
            total_deposited=summary.total_deposited,
            total_pledged=summary.total_pledged,
            total_released=summary.total_released,
            custody_balance=summary.custody_balance,
            tge_claimed=sum(1 for r in records.values() if r.tge_claimed),
            fully_vested=sum(
                1 for p in records if d.beneficiary_status(p) == VestingStatus.FULLY_VESTED
            ),
        )

    def run(self) -> SimulationResult:
        """
        Run the replay.

        Returns:
            SimulationResult with per-tick snapshots and final metrics
        """
        activation_time = self._activate_and_fund()
        grid = self._tick_grid(activation_time)
        principals = [b.principal for b in self.config.beneficiaries]
        probability = self.config.simulation.claim_probability

        snapshots = []
        for i, ts in enumerate(grid.tolist()):
            self.current_time = int(ts)
            last_tick = i == len(grid) - 1
            draws = self.rng.random(len(principals))
            for principal, draw in zip(principals, draws):
                if last_tick or draw < probability:
                    try:
                        self._claim(principal)
                    except DistributionError as e:
                        # Under-funded distributions run dry; record and keep going
                        self._warnings.append(f"t={self.current_time - activation_time}: {principal}: {e}")
            snapshots.append(self._reconcile(activation_time))

        swept = 0
        if self.config.simulation.sweep_at_end:
            try:
                swept = self.distribution.sweep_remainder(self.config.administrator)
            except DistributionError as e:
                self._warnings.append(f"sweep blocked: {e}")

        payouts = {p: self.token.balance_of(p) for p in principals}
        summary = self.distribution.summary()
        stake_total = sum(b.stake for b in self.config.beneficiaries)
        final_metrics = {
            'beneficiaries': summary.enrolled_count,
            'total_stake': stake_total,
            'total_pledged': summary.total_pledged,
            'over_pledge': summary.total_pledged - stake_total,
            'total_deposited': summary.total_deposited,
            'total_released': summary.total_released,
            'custody_balance': self.token.balance_of(self.distribution.custody),
            'swept': swept,
            'fully_vested': snapshots[-1].fully_vested if snapshots else 0,
            'ticks': len(snapshots),
        }
        logger.info("Simulation %s finished: %s", self.config.compute_hash(), final_metrics)

        return SimulationResult(
            config=self.config,
            snapshots=snapshots,
            payouts=payouts,
            final_metrics=final_metrics,
            events=[e.to_dict() for e in self.events.events],
            conservation_errors=list(self._conservation_errors),
            warnings=list(self._warnings),
        )
