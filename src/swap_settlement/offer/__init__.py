"""Signed Offer Module.

This module provides everything a maker or taker needs off-engine:

Key components:
- Offer ID generation (deterministic, collision-resistant)
- Domain-separated offer hashing
- Offer signing and signer recovery (signed message convention)
- Fixed-point helpers for partial fills

Example usage:
    ```python
    from swap_settlement.offer import (
        create_offer,
        sign_offer,
        parse_part,
        SwapRequest,
    )

    offer = create_offer(
        offer_id=1,
        token0="0x...",
        token1="0x...",
        amount0=100 * 10**18,
        amount1=50 * 10**6,
        expiration_seconds=3600,
    )

    signed = sign_offer(
        private_key="0x...",
        instance_address="0x...",
        offer=offer,
    )

    request = SwapRequest.from_signed(signed, part=parse_part("0.5"))
    ```
"""

from .types import (
    OfferParams,
    Offer,
    SignedOffer,
    SwapRequest,
    OFFER_HASH_TYPES,
    NULLIFIER_KEY_TYPES,
)
from .hashing import offer_hash, nullifier_key, generate_offer_id, verify_offer_id
from .signing import (
    create_offer,
    sign_offer,
    sign_offer_with_signer,
    recover_offer_signer,
    verify_offer_signature,
    MessageSigner,
)
from .utils import (
    SCALE,
    MAX_UINT256,
    MAX_SCALABLE_AMOUNT,
    ZERO_ADDRESS,
    fill_amount,
    clamp_part,
    parse_part,
    format_part,
)

__all__ = [
    # Types
    "OfferParams",
    "Offer",
    "SignedOffer",
    "SwapRequest",
    "OFFER_HASH_TYPES",
    "NULLIFIER_KEY_TYPES",
    "MessageSigner",
    # Hashing
    "offer_hash",
    "nullifier_key",
    "generate_offer_id",
    "verify_offer_id",
    # Signing
    "create_offer",
    "sign_offer",
    "sign_offer_with_signer",
    "recover_offer_signer",
    "verify_offer_signature",
    # Utils
    "SCALE",
    "MAX_UINT256",
    "MAX_SCALABLE_AMOUNT",
    "ZERO_ADDRESS",
    "fill_amount",
    "clamp_part",
    "parse_part",
    "format_part",
]
