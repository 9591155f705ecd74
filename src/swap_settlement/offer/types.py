"""Offer Types for signed swap settlement.

User-facing types for creating, signing and redeeming offers.
"""

from dataclasses import dataclass


@dataclass
class OfferParams:
    """Parameters used to generate a deterministic offer ID."""

    maker: str
    """Address of the maker who will sign the offer."""

    token0: str
    """Asset the maker gives."""

    token1: str
    """Asset the maker receives."""

    amount0: int
    """Full amount of token0 offered, in base units."""

    amount1: int
    """Full amount of token1 requested, in base units."""

    timestamp: int
    """Unix timestamp in milliseconds (e.g., int(time.time() * 1000))."""

    chain_id: int
    """Chain ID for cross-chain collision prevention."""


@dataclass
class Offer:
    """Economic terms of an offer, as hashed and signed by the maker."""

    offer_id: int
    """Maker-scoped identifier (uint256)."""

    token0: str
    """Asset the maker gives."""

    token1: str
    """Asset the maker receives."""

    amount0: int
    """Full amount of token0 (100% fill)."""

    amount1: int
    """Full amount of token1 (100% fill)."""

    expiration: int
    """Unix timestamp (seconds) after which the offer can no longer settle."""


@dataclass
class SignedOffer(Offer):
    """Offer with the maker's signature."""

    signature: str
    """Personal-sign signature over the offer hash (65 bytes packed hex string)."""


@dataclass
class SwapRequest(SignedOffer):
    """Signed offer plus the fraction a taker wants to execute."""

    part: int
    """Fraction to execute, scaled so that SCALE is the whole offer."""

    @classmethod
    def from_signed(cls, signed: SignedOffer, part: int) -> "SwapRequest":
        return cls(
            offer_id=signed.offer_id,
            token0=signed.token0,
            token1=signed.token1,
            amount0=signed.amount0,
            amount1=signed.amount1,
            expiration=signed.expiration,
            signature=signed.signature,
            part=part,
        )


# ABI types of the hashed offer tuple, instance address first
OFFER_HASH_TYPES = [
    "address",  # settlement instance (domain separator)
    "uint256",  # offerId
    "address",  # token0
    "address",  # token1
    "uint256",  # amount0
    "uint256",  # amount1
    "uint256",  # expiration
]

NULLIFIER_KEY_TYPES = ["address", "uint256"]
