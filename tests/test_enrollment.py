"""Unit tests for group configuration and enrollment.

Tests verify:
- Stake split arithmetic, including the ceiling on installments
- Batch enrollment is all-or-nothing
- Group parameters are copied at enrollment
- Configuration-phase gating and administrator checks
"""

import pytest

from conftest import ACTIVATION, ADMIN, PERIOD
from vestledger.engine import (
    AlreadyActivated,
    DuplicateEnrollment,
    GroupConfig,
    InactiveGroup,
    InvalidGroupParameters,
    LengthMismatch,
    NotAdministrator,
    NotEnrolled,
    SingleOwner,
    ZeroStake,
    split_stake,
)
from vestledger.engine.events import BeneficiariesAdded, GroupConfigured


def group(cliff=0, tge_ppm=100_000, count=4):
    return GroupConfig(active=True, cliff_duration=cliff, tge_fraction_per_million=tge_ppm, installment_count=count)


class TestStakeSplit:
    """Tests for the TGE / installment split."""

    def test_reference_scenario(self):
        """10% TGE, 4 installments, stake 1_000_000, U=1."""
        split = split_stake(1_000_000, group(), precision_unit=1)
        assert split.tge_amount == 100_000
        assert split.remainder == 900_000
        assert split.raw_installment == 225_000
        assert split.installment_amount == 225_001
        assert split.pledged == 1_000_004
        assert split.over_pledge == 4

    def test_ceiling_rounds_to_precision_unit(self):
        """Installment rounds up to the next whole unit."""
        split = split_stake(1_000_000, group(), precision_unit=1_000)
        assert split.raw_installment == 225_000
        assert split.installment_amount == 226_000
        assert split.installment_amount % 1_000 == 0

    def test_ceiling_on_non_multiple(self):
        """Raw 333_333 with U=1000 becomes 334_000."""
        split = split_stake(1_000_000, group(tge_ppm=0, count=3), precision_unit=1_000)
        assert split.raw_installment == 333_333
        assert split.installment_amount == 334_000

    def test_tge_floors(self):
        """TGE amount is truncated, never rounded up."""
        split = split_stake(999, group(tge_ppm=333_333), precision_unit=1)
        assert split.tge_amount == 332  # 999 * 0.333333 = 332.99...

    def test_full_tge_still_pays_unit_installments(self):
        """100% TGE leaves a zero raw installment that rounds up to one unit."""
        split = split_stake(5_000, group(tge_ppm=1_000_000, count=3), precision_unit=1)
        assert split.tge_amount == 5_000
        assert split.raw_installment == 0
        assert split.installment_amount == 1
        assert split.pledged == 5_003

    def test_installment_never_below_raw(self):
        """Ceiling never produces less than the raw share."""
        for stake in (1, 7, 99, 1_000_001, 123_456_789):
            for unit in (1, 10, 1_000):
                split = split_stake(stake, group(tge_ppm=123_456, count=7), precision_unit=unit)
                assert split.installment_amount > split.raw_installment
                assert split.pledged >= stake


class TestGroupRegistry:
    """Tests for group configuration."""

    def test_set_group_marks_active(self, dist):
        g = dist.set_group(ADMIN, 3, 50, 200_000, 6)
        assert g.active is True
        assert dist.group(3) == g
        assert dist.group(99) is None

    def test_overwrite_replaces(self, dist):
        dist.set_group(ADMIN, 1, 0, 100_000, 4)
        dist.set_group(ADMIN, 1, 10, 0, 2)
        assert dist.group(1).installment_count == 2
        assert len(dist.groups()) == 1

    def test_rejects_out_of_range(self, dist):
        with pytest.raises(InvalidGroupParameters):
            dist.set_group(ADMIN, 1, 0, 1_000_001, 4)
        with pytest.raises(InvalidGroupParameters):
            dist.set_group(ADMIN, 1, 0, 100_000, 0)
        with pytest.raises(InvalidGroupParameters):
            dist.set_group(ADMIN, 1, -1, 100_000, 4)
        assert dist.groups() == {}

    def test_non_admin_rejected(self, dist):
        with pytest.raises(NotAdministrator):
            dist.set_group("mallory", 1, 0, 100_000, 4)

    def test_emits_event(self, dist):
        dist.set_group(ADMIN, 2, 5, 10, 3)
        events = dist.events.of_type(GroupConfigured)
        assert len(events) == 1
        assert events[0].group_id == 2
        assert events[0].installment_count == 3


class TestEnrollment:
    """Tests for beneficiary enrollment."""

    def test_enroll_creates_record(self, dist):
        dist.set_group(ADMIN, 1, 0, 100_000, 4)
        record = dist.enroll_one(ADMIN, "alice", 1_000_000, 1)
        assert record.tge_amount == 100_000
        assert record.installment_amount == 225_001
        assert record.installments_released == 0
        assert record.tge_claimed is False
        assert dist.summary().total_pledged == 1_000_004
        assert dist.summary().enrolled_count == 1

    def test_batch_accumulates_pledged(self, dist):
        dist.set_group(ADMIN, 1, 0, 100_000, 4)
        records = dist.enroll(ADMIN, ["a", "b", "c"], [1_000_000, 40, 7], 1)
        assert dist.summary().total_pledged == sum(r.total_allocation for r in records)
        assert dist.summary().enrolled_count == 3

    def test_unknown_group(self, dist):
        with pytest.raises(InactiveGroup):
            dist.enroll_one(ADMIN, "alice", 100, 7)

    def test_zero_stake_aborts_whole_batch(self, dist):
        dist.set_group(ADMIN, 1, 0, 100_000, 4)
        with pytest.raises(ZeroStake):
            dist.enroll(ADMIN, ["a", "b"], [10, 0], 1)
        with pytest.raises(NotEnrolled):
            dist.beneficiary("a")
        assert dist.summary().total_pledged == 0
        assert dist.summary().enrolled_count == 0

    def test_duplicate_existing_rejected(self, dist):
        dist.set_group(ADMIN, 1, 0, 100_000, 4)
        dist.enroll_one(ADMIN, "alice", 100, 1)
        with pytest.raises(DuplicateEnrollment):
            dist.enroll(ADMIN, ["bob", "alice"], [5, 5], 1)
        with pytest.raises(NotEnrolled):
            dist.beneficiary("bob")

    def test_duplicate_within_batch_rejected(self, dist):
        dist.set_group(ADMIN, 1, 0, 100_000, 4)
        with pytest.raises(DuplicateEnrollment):
            dist.enroll(ADMIN, ["bob", "bob"], [5, 6], 1)
        assert dist.summary().enrolled_count == 0

    def test_length_mismatch(self, dist):
        dist.set_group(ADMIN, 1, 0, 100_000, 4)
        with pytest.raises(LengthMismatch):
            dist.enroll(ADMIN, ["a", "b"], [5], 1)

    def test_non_admin_rejected(self, dist):
        dist.set_group(ADMIN, 1, 0, 100_000, 4)
        with pytest.raises(NotAdministrator):
            dist.enroll_one("alice", "alice", 100, 1)

    def test_group_edit_does_not_touch_existing(self, dist):
        """Parameters are copied at enrollment."""
        dist.set_group(ADMIN, 1, 0, 100_000, 4)
        dist.enroll_one(ADMIN, "alice", 1_000_000, 1)
        dist.set_group(ADMIN, 1, 999, 500_000, 10)
        record = dist.beneficiary("alice")
        assert record.cliff_duration == 0
        assert record.installment_count == 4
        assert record.tge_amount == 100_000

    def test_no_funding_check_at_enrollment(self, dist):
        """Enrollment may pledge far more than will ever be deposited."""
        dist.set_group(ADMIN, 1, 0, 0, 1)
        dist.enroll_one(ADMIN, "whale", 10 ** 30, 1)
        assert dist.summary().total_deposited == 0
        assert dist.summary().funding_gap > 0

    def test_returned_records_are_copies(self, dist):
        dist.set_group(ADMIN, 1, 0, 100_000, 4)
        record = dist.enroll_one(ADMIN, "alice", 1_000, 1)
        record.tge_claimed = True
        assert dist.beneficiary("alice").tge_claimed is False

    def test_emits_event(self, dist):
        dist.set_group(ADMIN, 1, 0, 100_000, 4)
        dist.enroll(ADMIN, ["a", "b"], [1_000_000, 1_000_000], 1)
        (event,) = dist.events.of_type(BeneficiariesAdded)
        assert event.principals == ("a", "b")
        assert event.pledged == 2 * 1_000_004


class TestConfigurationPhase:
    """Configuration is frozen by activation."""

    def test_frozen_after_activation(self, dist, token, clock):
        dist.set_group(ADMIN, 1, 0, 100_000, 4)
        dist.activate(ADMIN, token, ACTIVATION, PERIOD)
        with pytest.raises(AlreadyActivated):
            dist.set_group(ADMIN, 2, 0, 100_000, 4)
        with pytest.raises(AlreadyActivated):
            dist.enroll_one(ADMIN, "late", 100, 1)

    def test_ownership_transfer(self, dist):
        dist.authorizer.transfer_ownership(ADMIN, "treasury")
        with pytest.raises(NotAdministrator):
            dist.set_group(ADMIN, 1, 0, 100_000, 4)
        dist.set_group("treasury", 1, 0, 100_000, 4)
        assert dist.group(1).installment_count == 4

    def test_ownership_transfer_requires_owner(self):
        owner = SingleOwner(ADMIN)
        with pytest.raises(NotAdministrator):
            owner.transfer_ownership("mallory", "mallory")
        assert owner.is_administrator(ADMIN)
