"""Signed swap settlement.

Makers sign offers off-channel; takers redeem them in full or in parts
through a SettlementEngine, optionally as flash swaps.
"""

from .exceptions import (
    SettlementError,
    ValidationError,
    AuthorizationError,
    StateError,
    TransferError,
)
from .offer import (
    Offer,
    SignedOffer,
    SwapRequest,
    OfferParams,
    generate_offer_id,
    create_offer,
    sign_offer,
    sign_offer_with_signer,
    recover_offer_signer,
    verify_offer_signature,
    offer_hash,
    SCALE,
    ZERO_ADDRESS,
    parse_part,
    format_part,
)
from .settlement import (
    SettlementEngine,
    NullifierStore,
    FileNullifierStore,
    InMemoryAssetLedger,
    AssetLedger,
    FlashCallee,
    SettlementConfig,
)

__version__ = "0.1.0"

__all__ = [
    # Errors
    "SettlementError",
    "ValidationError",
    "AuthorizationError",
    "StateError",
    "TransferError",
    # Offers
    "Offer",
    "SignedOffer",
    "SwapRequest",
    "OfferParams",
    "generate_offer_id",
    "create_offer",
    "sign_offer",
    "sign_offer_with_signer",
    "recover_offer_signer",
    "verify_offer_signature",
    "offer_hash",
    "SCALE",
    "ZERO_ADDRESS",
    "parse_part",
    "format_part",
    # Settlement
    "SettlementEngine",
    "NullifierStore",
    "FileNullifierStore",
    "InMemoryAssetLedger",
    "AssetLedger",
    "FlashCallee",
    "SettlementConfig",
]
