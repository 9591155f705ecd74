"""Settlement engine configuration."""

import os
from dataclasses import dataclass
from typing import Optional, TypedDict

from dotenv import load_dotenv
from eth_utils import is_address, to_checksum_address


ENV_INSTANCE_ADDRESS = "SWAP_SETTLEMENT_INSTANCE_ADDRESS"
ENV_NULLIFIER_PATH = "SWAP_SETTLEMENT_NULLIFIER_PATH"


class SettlementConfig(TypedDict, total=False):
    """Configuration for the settlement engine."""

    instance_address: str
    """Address identifying this settlement instance. Required."""

    nullifier_path: Optional[str]
    """JSON file holding filled fractions. Default: None (in-memory)"""


@dataclass
class ResolvedSettlementConfig:
    """Resolved settlement configuration with all defaults applied."""

    instance_address: str
    nullifier_path: Optional[str]


def resolve_settlement_config(
    config: Optional[SettlementConfig] = None,
) -> ResolvedSettlementConfig:
    """Apply defaults and validate a settlement configuration.

    Raises:
        ValueError: If the instance address is missing or invalid
    """
    config = config or {}

    instance_address = config.get("instance_address")
    if not instance_address:
        raise ValueError("instance_address is required for a settlement engine.")
    if not is_address(instance_address):
        raise ValueError(f"Invalid instance address: {instance_address}")

    return ResolvedSettlementConfig(
        instance_address=to_checksum_address(instance_address),
        nullifier_path=config.get("nullifier_path"),
    )


def load_settlement_config_from_env(
    dotenv_path: Optional[str] = None,
) -> SettlementConfig:
    """Read settlement configuration from the environment (and a .env file).

    Args:
        dotenv_path: Optional path to a .env file. Default: search upward from cwd

    Returns:
        SettlementConfig with the values found
    """
    load_dotenv(dotenv_path)

    config: SettlementConfig = {}
    instance_address = os.environ.get(ENV_INSTANCE_ADDRESS)
    if instance_address:
        config["instance_address"] = instance_address
    nullifier_path = os.environ.get(ENV_NULLIFIER_PATH)
    if nullifier_path:
        config["nullifier_path"] = nullifier_path
    return config
