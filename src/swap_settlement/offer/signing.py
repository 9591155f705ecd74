"""Offer Signing and Signer Recovery.

Makers sign the offer hash with the standard "signed message" convention
(EIP-191 personal sign). Provides signing functions that work with:
- eth_account.Account (direct signing)
- any wallet implementing the MessageSigner protocol
"""

import time
from typing import Protocol, Union

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import is_address, to_bytes, to_checksum_address, to_hex

from .hashing import offer_hash
from .types import Offer, SignedOffer
from .utils import MAX_SCALABLE_AMOUNT, ZERO_ADDRESS


# Expiration bounds
MIN_EXPIRATION_SECONDS = 60  # 1 minute
MAX_EXPIRATION_SECONDS = 30 * 86400  # 30 days


def _as_bytes(value: Union[str, bytes]) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return to_bytes(hexstr=value)


def create_offer(
    offer_id: int,
    token0: str,
    token1: str,
    amount0: int,
    amount1: int,
    expiration_seconds: int = 3600,
) -> Offer:
    """Create an offer object.

    Args:
        offer_id: Maker-scoped offer ID
        token0: Asset the maker gives
        token1: Asset the maker receives
        amount0: Full amount of token0
        amount1: Full amount of token1
        expiration_seconds: Seconds from now until the offer expires (default: 1 hour)

    Returns:
        Offer object

    Raises:
        ValueError: If a token address or amount is invalid or expiration is out of bounds
    """
    for name, token in (("token0", token0), ("token1", token1)):
        if not is_address(token):
            raise ValueError(f"Invalid {name} address: {token}")
    if to_checksum_address(token0) == to_checksum_address(token1):
        raise ValueError("token0 and token1 must differ")

    for name, amount in (("amount0", amount0), ("amount1", amount1)):
        if amount <= 0 or amount > MAX_SCALABLE_AMOUNT:
            raise ValueError(
                f"Invalid {name}: {amount}. Must be in (0, {MAX_SCALABLE_AMOUNT}]"
            )

    if expiration_seconds < MIN_EXPIRATION_SECONDS:
        raise ValueError(
            f"Expiration too short: {expiration_seconds}s. Minimum: {MIN_EXPIRATION_SECONDS}s"
        )
    if expiration_seconds > MAX_EXPIRATION_SECONDS:
        raise ValueError(
            f"Expiration too long: {expiration_seconds}s. Maximum: {MAX_EXPIRATION_SECONDS}s"
        )

    return Offer(
        offer_id=offer_id,
        token0=to_checksum_address(token0),
        token1=to_checksum_address(token1),
        amount0=amount0,
        amount1=amount1,
        expiration=int(time.time()) + expiration_seconds,
    )


def _signed(offer: Offer, signature: str) -> SignedOffer:
    return SignedOffer(
        offer_id=offer.offer_id,
        token0=offer.token0,
        token1=offer.token1,
        amount0=offer.amount0,
        amount1=offer.amount1,
        expiration=offer.expiration,
        signature=signature,
    )


def sign_offer(
    private_key: str,
    instance_address: str,
    offer: Offer,
) -> SignedOffer:
    """Sign an offer using a private key.

    Args:
        private_key: Private key (hex string with or without 0x prefix)
        instance_address: Address of the settlement instance
        offer: Offer to sign

    Returns:
        SignedOffer with signature
    """
    digest = _as_bytes(offer_hash(instance_address, offer))
    account = Account.from_key(private_key)
    signed_message = account.sign_message(encode_defunct(primitive=digest))
    return _signed(offer, to_hex(signed_message.signature))


class MessageSigner(Protocol):
    """Protocol for signers that can personal-sign raw bytes."""

    async def get_address(self) -> str:
        """Get the signer's address."""
        ...

    async def sign_message(self, message: bytes) -> str:
        """Sign bytes with the signed message prefix.

        Args:
            message: Raw bytes to sign (the 32-byte offer hash)

        Returns:
            Signature as hex string
        """
        ...


async def sign_offer_with_signer(
    signer: MessageSigner,
    instance_address: str,
    offer: Offer,
) -> SignedOffer:
    """Sign an offer using any compatible signer.

    Args:
        signer: Signer that implements the MessageSigner protocol
        instance_address: Address of the settlement instance
        offer: Offer to sign

    Returns:
        SignedOffer with signature
    """
    digest = _as_bytes(offer_hash(instance_address, offer))
    signature = await signer.sign_message(digest)
    return _signed(offer, signature)


def recover_offer_signer(
    offer_hash_value: Union[str, bytes],
    signature: Union[str, bytes],
) -> str:
    """Recover the address that signed an offer hash.

    Never raises: malformed input recovers ZERO_ADDRESS, and a well-formed
    signature over something else recovers an unrelated address. Callers
    authorize the result through allowance and fill checks.

    Args:
        offer_hash_value: bytes32 offer hash (hex string or bytes)
        signature: 65-byte r || s || v signature (hex string or bytes)

    Returns:
        Checksum address of the recovered signer, or ZERO_ADDRESS
    """
    try:
        message = encode_defunct(primitive=_as_bytes(offer_hash_value))
        recovered = Account.recover_message(message, signature=_as_bytes(signature))
        return to_checksum_address(recovered)
    except Exception:
        return ZERO_ADDRESS


def verify_offer_signature(
    signed_offer: SignedOffer,
    instance_address: str,
    expected_maker: str,
) -> bool:
    """Verify an offer signature locally.

    Args:
        signed_offer: Signed offer
        instance_address: Address of the settlement instance
        expected_maker: Expected signer address

    Returns:
        True if the signature is valid and from the expected maker
    """
    try:
        digest = offer_hash(instance_address, signed_offer)
    except ValueError:
        return False
    recovered = recover_offer_signer(digest, signed_offer.signature)
    if recovered == ZERO_ADDRESS:
        return False
    return recovered.lower() == str(expected_maker).lower()
