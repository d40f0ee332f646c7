"""Group registry - named vesting parameter sets keyed by a small integer id."""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from .errors import InactiveGroup, InvalidGroupParameters

logger = logging.getLogger(__name__)

PPM = 1_000_000


@dataclass(frozen=True)
class GroupConfig:
    """Vesting parameters shared by every beneficiary enrolled into a group."""
    active: bool
    cliff_duration: int  # Seconds after activation before installments accrue
    tge_fraction_per_million: int  # Immediate unlock, parts per million of stake
    installment_count: int


class GroupRegistry:
    """Configuration store for groups. No deletes; ids are only added or replaced."""

    def __init__(self):
        self._groups: Dict[int, GroupConfig] = {}

    def set_group(
        self,
        group_id: int,
        cliff_duration: int,
        tge_fraction_per_million: int,
        installment_count: int
    ) -> GroupConfig:
        """
        Upsert a group and mark it active.

        Phase gating is the caller's concern; the registry only validates ranges.

        Raises:
            InvalidGroupParameters: If any parameter is out of range
        """
        if cliff_duration < 0:
            raise InvalidGroupParameters(f"cliff_duration must be >= 0, got {cliff_duration}")
        if not 0 <= tge_fraction_per_million <= PPM:
            raise InvalidGroupParameters(
                f"tge_fraction_per_million must be in [0, {PPM}], got {tge_fraction_per_million}"
            )
        if installment_count <= 0:
            raise InvalidGroupParameters(f"installment_count must be positive, got {installment_count}")

        group = GroupConfig(
            active=True,
            cliff_duration=int(cliff_duration),
            tge_fraction_per_million=int(tge_fraction_per_million),
            installment_count=int(installment_count),
        )
        if group_id in self._groups:
            logger.debug("Replacing group %s: %s -> %s", group_id, self._groups[group_id], group)
        self._groups[group_id] = group
        return group

    def get(self, group_id: int) -> Optional[GroupConfig]:
        return self._groups.get(group_id)

    def require_active(self, group_id: int) -> GroupConfig:
        """Return the group or raise InactiveGroup if unknown or inactive."""
        group = self._groups.get(group_id)
        if group is None or not group.active:
            raise InactiveGroup(f"Group {group_id} is not configured")
        return group

    def all(self) -> Dict[int, GroupConfig]:
        return dict(self._groups)

    def __contains__(self, group_id: int) -> bool:
        return group_id in self._groups

    def __len__(self) -> int:
        return len(self._groups)
