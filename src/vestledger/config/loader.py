"""Configuration loader from YAML, plus wiring a distribution from a config."""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Tuple

import yaml

from ..engine.access import SingleOwner
from ..engine.distribution import Distribution
from ..engine.events import EventLog
from .schema import Config

logger = logging.getLogger(__name__)


def load_config(yaml_path: str = None) -> Config:
    """
    Load configuration from YAML file.

    Args:
        yaml_path: Path to YAML file (defaults to defaults.yaml)

    Returns:
        Config object
    """
    if yaml_path is None:
        yaml_path = Path(__file__).parent / "defaults.yaml"

    with open(yaml_path, 'r') as f:
        data = yaml.safe_load(f)

    return Config.from_dict(data)


def config_from_dict(data: Dict[str, Any]) -> Config:
    """
    Create config from dictionary.

    Args:
        data: Configuration dictionary

    Returns:
        Config object
    """
    return Config.from_dict(data)


def build_distribution(
    config: Config,
    time_source: Callable[[], float],
    events: EventLog = None
) -> Distribution:
    """
    Create a distribution with every group configured and every beneficiary
    enrolled. The result is still in configuration phase.

    Beneficiaries are enrolled one batch per group, in config order.
    """
    distribution = Distribution(
        authorizer=SingleOwner(config.administrator),
        precision_unit=config.token.precision_unit,
        time_source=time_source,
        events=events,
    )
    admin = config.administrator
    for group in config.groups:
        distribution.set_group(
            admin, group.id, group.cliff_seconds, group.tge_ppm, group.installment_count
        )

    batches: Dict[int, Tuple[list, list]] = {}
    for b in config.beneficiaries:
        principals, stakes = batches.setdefault(b.group, ([], []))
        principals.append(b.principal)
        stakes.append(b.stake)
    for group_id, (principals, stakes) in batches.items():
        distribution.enroll(admin, principals, stakes, group_id)

    logger.info(
        "Built distribution %s: %d groups, %d beneficiaries, pledged=%s",
        config.compute_hash(), len(config.groups), len(config.beneficiaries),
        distribution.summary().total_pledged
    )
    return distribution
