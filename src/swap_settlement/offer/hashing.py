"""Offer hashing and ID generation.

The offer hash binds every economic term of an offer to the settlement
instance it is meant for, so a signature cannot be replayed against
another instance.
"""

from eth_abi import encode
from eth_utils import keccak, is_address, to_checksum_address

from ..exceptions import ValidationError
from .types import NULLIFIER_KEY_TYPES, OFFER_HASH_TYPES, Offer, OfferParams
from .utils import MAX_UINT256


def checked_address(value: str, name: str) -> str:
    if not isinstance(value, str) or not is_address(value):
        raise ValidationError(f"Invalid {name}: {value}")
    return to_checksum_address(value)


def checked_uint(value: int, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(f"Invalid {name}: {value!r}. Must be an integer")
    if value < 0 or value > MAX_UINT256:
        raise ValidationError(f"Invalid {name}: {value}. Must fit in uint256")
    return value


def offer_hash(instance_address: str, offer: Offer) -> str:
    """Compute the domain-separated hash a maker signs.

    Args:
        instance_address: Address of the settlement instance
        offer: Offer terms

    Returns:
        bytes32 hex string

    Raises:
        ValidationError: If an address is invalid or a number is outside uint256
    """
    encoded = encode(
        OFFER_HASH_TYPES,
        [
            checked_address(instance_address, "instance_address"),
            checked_uint(offer.offer_id, "offer_id"),
            checked_address(offer.token0, "token0"),
            checked_address(offer.token1, "token1"),
            checked_uint(offer.amount0, "amount0"),
            checked_uint(offer.amount1, "amount1"),
            checked_uint(offer.expiration, "expiration"),
        ],
    )
    return "0x" + keccak(encoded).hex()


def nullifier_key(maker: str, offer_id: int) -> str:
    """Key under which the filled fraction of (maker, offer_id) is stored."""
    encoded = encode(
        NULLIFIER_KEY_TYPES,
        [checked_address(maker, "maker"), checked_uint(offer_id, "offer_id")],
    )
    return "0x" + keccak(encoded).hex()


def generate_offer_id(params: OfferParams) -> int:
    """Generate a unique offer ID using a deterministic hash.

    Args:
        params: Offer parameters (timestamp should be in milliseconds)

    Returns:
        uint256 offer ID

    Raises:
        ValidationError: If the maker or a token address is invalid, or a number is
            not an integer within uint256
    """
    encoded = encode(
        ["uint256", "address", "address", "address", "uint256", "uint256", "uint256"],
        [
            checked_uint(params.chain_id, "chain_id"),  # First, for cross-chain collision prevention
            checked_address(params.maker, "maker"),
            checked_address(params.token0, "token0"),
            checked_address(params.token1, "token1"),
            checked_uint(params.amount0, "amount0"),
            checked_uint(params.amount1, "amount1"),
            checked_uint(params.timestamp, "timestamp"),  # Milliseconds
        ],
    )

    return int.from_bytes(keccak(encoded), "big")


def verify_offer_id(offer_id: int, params: OfferParams) -> bool:
    """Verify an offer ID matches the given parameters.

    Args:
        offer_id: The offer ID to verify
        params: Offer parameters to check against

    Returns:
        True if the offer ID matches, False otherwise
    """
    try:
        return generate_offer_id(params) == offer_id
    except Exception:
        return False
