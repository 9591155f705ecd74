"""Settlement Module.

Key components:
- SettlementEngine: validity checks, swaps, flash swaps, cancellation
- NullifierStore: monotonic filled-fraction accounting (in-memory or file-backed)
- Asset ledger protocol, safe transfer handling and an in-memory ledger
- Configuration from dicts or SWAP_SETTLEMENT_* environment variables
"""

from .config import (
    SettlementConfig,
    ResolvedSettlementConfig,
    resolve_settlement_config,
    load_settlement_config_from_env,
)
from .engine import SettlementEngine
from .interfaces import AssetLedger, FlashCallee, Transactional
from .ledger import InMemoryAssetLedger, safe_transfer_from
from .nullifier import NullifierStore, FileNullifierStore, open_nullifier_store

__all__ = [
    # Config
    "SettlementConfig",
    "ResolvedSettlementConfig",
    "resolve_settlement_config",
    "load_settlement_config_from_env",
    # Engine
    "SettlementEngine",
    # Interfaces
    "AssetLedger",
    "FlashCallee",
    "Transactional",
    # Ledger
    "InMemoryAssetLedger",
    "safe_transfer_from",
    # Nullifiers
    "NullifierStore",
    "FileNullifierStore",
    "open_nullifier_store",
]
