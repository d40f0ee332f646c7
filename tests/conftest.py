"""Shared fixtures for distribution tests."""

import os
import sys

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from vestledger.engine import Distribution, InMemoryToken, SingleOwner

ADMIN = "admin"
ACTIVATION = 1_000
PERIOD = 100


class FakeClock:
    """Settable wall clock."""

    def __init__(self, t: int = 0):
        self.t = t

    def __call__(self) -> int:
        return self.t


@pytest.fixture
def clock():
    return FakeClock(0)


@pytest.fixture
def token():
    return InMemoryToken(symbol="TST", decimals=6)


@pytest.fixture
def dist(clock):
    """Distribution in configuration phase with U = 1."""
    return Distribution(SingleOwner(ADMIN), precision_unit=1, time_source=clock)


def fund(dist, token, amount):
    """Mint, approve and deposit ``amount`` as the administrator."""
    token.mint(ADMIN, amount)
    token.approve(ADMIN, dist.custody, amount)
    return dist.deposit(ADMIN, amount)


@pytest.fixture
def scenario(dist, token, clock):
    """Reference scenario: cliff 0, 10% TGE, 4 installments, alice stakes 1_000_000.

    Activated at t=1000 with period 100 and funded with pledged + 500.
    """
    dist.set_group(ADMIN, 1, 0, 100_000, 4)
    dist.enroll_one(ADMIN, "alice", 1_000_000, 1)
    dist.activate(ADMIN, token, ACTIVATION, PERIOD)
    fund(dist, token, dist.summary().total_pledged + 500)
    return dist
