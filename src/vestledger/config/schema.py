"""Pydantic schema for distribution configuration."""

import hashlib
import json
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class TokenSpec(BaseModel):
    """Token being distributed."""
    symbol: str = Field(default="TKN", description="Token symbol")
    decimals: int = Field(ge=0, le=36, default=6, description="Base units per token = 10**decimals")
    precision_unit: int = Field(
        gt=0, default=1,
        description="Installment rounding unit in base units (10**-6 of a token)"
    )

    @model_validator(mode='after')
    def validate_precision(self):
        """Rounding unit cannot be coarser than one whole token."""
        if self.precision_unit > 10 ** self.decimals:
            raise ValueError(
                f"precision_unit {self.precision_unit} exceeds one whole token (10**{self.decimals})"
            )
        return self


class GroupSpec(BaseModel):
    """Vesting group parameters."""
    id: int = Field(ge=0, description="Group id")
    name: str = Field(default="", description="Human-readable label")
    cliff_seconds: int = Field(ge=0, description="Cliff after activation")
    tge_ppm: int = Field(ge=0, le=1_000_000, description="TGE unlock in parts per million")
    installment_count: int = Field(gt=0, description="Number of equal installments")


class BeneficiarySpec(BaseModel):
    """One allocation."""
    principal: str = Field(min_length=1, description="Beneficiary identity")
    stake: int = Field(gt=0, description="Stake in base units")
    group: int = Field(ge=0, description="Group id")


class ClockSpec(BaseModel):
    """Activation schedule."""
    start_delay_seconds: int = Field(gt=0, default=3600, description="Activation time relative to setup")
    period_seconds: int = Field(gt=0, default=30 * 86400, description="Installment period length")


class FundingSpec(BaseModel):
    """How much the administrator deposits after activation."""
    deposit: Optional[int] = Field(
        default=None, ge=0,
        description="Explicit deposit in base units (default: total pledged + surplus)"
    )
    surplus: int = Field(ge=0, default=0, description="Extra deposit above pledged when deposit is unset")


class SimulationSpec(BaseModel):
    """Replay parameters."""
    horizon_periods: Optional[int] = Field(
        default=None, gt=0,
        description="Periods to simulate after activation (default: until everyone is fully vested)"
    )
    steps_per_period: int = Field(gt=0, default=1, description="Clock ticks per installment period")
    claim_probability: float = Field(
        ge=0, le=1, default=1.0,
        description="Chance a beneficiary claims on a given tick"
    )
    random_seed: int = Field(default=42, description="Random seed for reproducibility")
    sweep_at_end: bool = Field(default=True, description="Sweep the surplus after the last tick")


class Config(BaseModel):
    """Complete configuration for a distribution."""
    administrator: str = Field(default="admin", min_length=1)
    token: TokenSpec = Field(default_factory=TokenSpec)
    clock: ClockSpec = Field(default_factory=ClockSpec)
    groups: List[GroupSpec]
    beneficiaries: List[BeneficiarySpec] = Field(default_factory=list)
    funding: FundingSpec = Field(default_factory=FundingSpec)
    simulation: SimulationSpec = Field(default_factory=SimulationSpec)

    @field_validator('groups')
    @classmethod
    def validate_unique_groups(cls, v):
        """Group ids must be unique."""
        ids = [g.id for g in v]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Duplicate group ids: {sorted(ids)}")
        return v

    @model_validator(mode='after')
    def validate_beneficiaries(self):
        """Principals are unique and every referenced group exists."""
        group_ids = {g.id for g in self.groups}
        seen = set()
        for b in self.beneficiaries:
            if b.principal in seen:
                raise ValueError(f"Beneficiary {b.principal} listed twice")
            if b.group not in group_ids:
                raise ValueError(f"Beneficiary {b.principal} references unknown group {b.group}")
            if b.principal == self.administrator:
                raise ValueError("Administrator cannot also be a beneficiary")
            seen.add(b.principal)
        return self

    def group_by_id(self, group_id: int) -> GroupSpec:
        for g in self.groups:
            if g.id == group_id:
                return g
        raise KeyError(group_id)

    def compute_hash(self) -> str:
        """Compute config hash for reproducibility."""
        config_dict = self.model_dump()
        config_str = json.dumps(config_dict, sort_keys=True)
        return hashlib.sha256(config_str.encode()).hexdigest()[:16]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        """Create config from dictionary."""
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return self.model_dump()
