"""Tests for the offer module."""

import asyncio
import dataclasses
import time

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import to_checksum_address, to_hex

from swap_settlement.exceptions import ValidationError
from swap_settlement.offer import (
    Offer,
    OfferParams,
    SignedOffer,
    SwapRequest,
    generate_offer_id,
    verify_offer_id,
    offer_hash,
    nullifier_key,
    create_offer,
    sign_offer,
    sign_offer_with_signer,
    recover_offer_signer,
    verify_offer_signature,
    SCALE,
    MAX_UINT256,
    MAX_SCALABLE_AMOUNT,
    ZERO_ADDRESS,
    fill_amount,
    clamp_part,
    parse_part,
    format_part,
)


# Test wallet (DO NOT use in production)
TEST_PRIVATE_KEY = "0x" + "ab" * 32  # Deterministic test key
TEST_ACCOUNT = Account.from_key(TEST_PRIVATE_KEY)
TEST_ADDRESS = TEST_ACCOUNT.address

INSTANCE = to_checksum_address("0x" + "22" * 20)
TOKEN0 = to_checksum_address("0x" + "10" * 20)
TOKEN1 = to_checksum_address("0x" + "11" * 20)


def _offer(**overrides) -> Offer:
    fields = dict(
        offer_id=1,
        token0=TOKEN0,
        token1=TOKEN1,
        amount0=100,
        amount1=50,
        expiration=1_700_003_600,
    )
    fields.update(overrides)
    return Offer(**fields)


def _params(**overrides) -> OfferParams:
    fields = dict(
        maker=TEST_ADDRESS,
        token0=TOKEN0,
        token1=TOKEN1,
        amount0=100,
        amount1=50,
        timestamp=1700000000000,
        chain_id=1,
    )
    fields.update(overrides)
    return OfferParams(**fields)


class TestOfferId:
    """Tests for offer ID generation."""

    def test_generate_offer_id_basic(self):
        offer_id = generate_offer_id(_params())

        assert isinstance(offer_id, int)
        assert 0 <= offer_id <= MAX_UINT256

    def test_generate_offer_id_deterministic(self):
        assert generate_offer_id(_params()) == generate_offer_id(_params())

    def test_generate_offer_id_different_timestamps(self):
        """Test that different timestamps produce different IDs."""
        assert generate_offer_id(_params()) != generate_offer_id(
            _params(timestamp=1700000000001)  # 1ms different
        )

    def test_generate_offer_id_different_makers(self):
        other_address = Account.create().address

        assert generate_offer_id(_params()) != generate_offer_id(
            _params(maker=other_address)
        )

    def test_generate_offer_id_invalid_maker(self):
        with pytest.raises(ValueError, match="Invalid maker"):
            generate_offer_id(_params(maker="invalid"))

    @pytest.mark.parametrize(
        "field,value",
        [
            ("timestamp", 1700000000000.5),
            ("timestamp", MAX_UINT256 + 1),
            ("chain_id", -1),
            ("chain_id", "1"),
            ("amount0", True),
        ],
    )
    def test_generate_offer_id_invalid_number(self, field, value):
        with pytest.raises(ValidationError, match=f"Invalid {field}"):
            generate_offer_id(_params(**{field: value}))

    def test_generate_offer_id_error_is_value_error(self):
        with pytest.raises(ValueError):
            generate_offer_id(_params(chain_id=-1))

    def test_verify_offer_id(self):
        params = _params()
        offer_id = generate_offer_id(params)
        assert verify_offer_id(offer_id, params) is True

        params.timestamp = 1700000000001
        assert verify_offer_id(offer_id, params) is False

    def test_verify_offer_id_never_raises(self):
        assert verify_offer_id(1, _params(maker="invalid")) is False


class TestOfferHash:
    """Tests for domain-separated offer hashing."""

    def test_offer_hash_format(self):
        digest = offer_hash(INSTANCE, _offer())

        assert digest.startswith("0x")
        assert len(digest) == 66

    def test_offer_hash_deterministic(self):
        assert offer_hash(INSTANCE, _offer()) == offer_hash(INSTANCE, _offer())

    @pytest.mark.parametrize(
        "field,value",
        [
            ("offer_id", 2),
            ("token0", to_checksum_address("0x" + "33" * 20)),
            ("token1", to_checksum_address("0x" + "44" * 20)),
            ("amount0", 101),
            ("amount1", 51),
            ("expiration", 1_700_003_601),
        ],
    )
    def test_offer_hash_changes_with_each_field(self, field, value):
        changed = dataclasses.replace(_offer(), **{field: value})

        assert offer_hash(INSTANCE, changed) != offer_hash(INSTANCE, _offer())

    def test_offer_hash_changes_with_instance(self):
        other_instance = to_checksum_address("0x" + "23" * 20)

        assert offer_hash(other_instance, _offer()) != offer_hash(INSTANCE, _offer())

    def test_offer_hash_accepts_lowercase_addresses(self):
        lowered = _offer(token0=TOKEN0.lower(), token1=TOKEN1.lower())

        assert offer_hash(INSTANCE.lower(), lowered) == offer_hash(INSTANCE, _offer())

    def test_offer_hash_ignores_signature(self):
        signed = SignedOffer(**dataclasses.asdict(_offer()), signature="0x1234")

        assert offer_hash(INSTANCE, signed) == offer_hash(INSTANCE, _offer())

    def test_offer_hash_invalid_token(self):
        with pytest.raises(ValidationError, match="Invalid token0"):
            offer_hash(INSTANCE, _offer(token0="invalid"))

    def test_offer_hash_negative_amount(self):
        with pytest.raises(ValidationError, match="uint256"):
            offer_hash(INSTANCE, _offer(amount0=-1))

    def test_offer_hash_amount_overflow(self):
        with pytest.raises(ValidationError, match="uint256"):
            offer_hash(INSTANCE, _offer(amount1=MAX_UINT256 + 1))

    def test_nullifier_key_scoped_by_maker_and_offer(self):
        other_address = Account.create().address

        key = nullifier_key(TEST_ADDRESS, 1)
        assert key == nullifier_key(TEST_ADDRESS.lower(), 1)
        assert key != nullifier_key(TEST_ADDRESS, 2)
        assert key != nullifier_key(other_address, 1)


class TestCreateOffer:
    """Tests for offer creation."""

    def test_create_offer(self):
        offer = create_offer(
            offer_id=7,
            token0=TOKEN0.lower(),
            token1=TOKEN1,
            amount0=100,
            amount1=50,
            expiration_seconds=3600,
        )

        assert offer.offer_id == 7
        assert offer.token0 == TOKEN0
        assert offer.amount0 == 100
        assert offer.expiration > int(time.time())

    def test_create_offer_invalid_token(self):
        with pytest.raises(ValueError, match="Invalid token1"):
            create_offer(1, TOKEN0, "invalid", 100, 50)

    def test_create_offer_same_tokens(self):
        with pytest.raises(ValueError, match="must differ"):
            create_offer(1, TOKEN0, TOKEN0.lower(), 100, 50)

    @pytest.mark.parametrize("amount", [0, -5, MAX_SCALABLE_AMOUNT + 1])
    def test_create_offer_invalid_amount(self, amount):
        with pytest.raises(ValueError, match="Invalid amount0"):
            create_offer(1, TOKEN0, TOKEN1, amount, 50)

    def test_create_offer_expiration_too_short(self):
        with pytest.raises(ValueError, match="Expiration too short"):
            create_offer(1, TOKEN0, TOKEN1, 100, 50, expiration_seconds=30)

    def test_create_offer_expiration_too_long(self):
        with pytest.raises(ValueError, match="Expiration too long"):
            create_offer(1, TOKEN0, TOKEN1, 100, 50, expiration_seconds=31 * 86400)


class _LocalSigner:
    """MessageSigner backed by a local account."""

    def __init__(self, private_key: str):
        self._account = Account.from_key(private_key)

    async def get_address(self) -> str:
        return self._account.address

    async def sign_message(self, message: bytes) -> str:
        signed = self._account.sign_message(encode_defunct(primitive=message))
        return to_hex(signed.signature)


class TestSigning:
    """Tests for offer signing and signer recovery."""

    def test_sign_offer(self):
        signed = sign_offer(TEST_PRIVATE_KEY, INSTANCE, _offer())

        assert isinstance(signed, SignedOffer)
        assert signed.signature.startswith("0x")
        assert len(signed.signature) == 2 + 65 * 2
        assert signed.offer_id == 1

    def test_recover_offer_signer(self):
        signed = sign_offer(TEST_PRIVATE_KEY, INSTANCE, _offer())

        recovered = recover_offer_signer(offer_hash(INSTANCE, signed), signed.signature)
        assert recovered == TEST_ADDRESS

    def test_recover_offer_signer_accepts_bytes(self):
        signed = sign_offer(TEST_PRIVATE_KEY, INSTANCE, _offer())
        digest = bytes.fromhex(offer_hash(INSTANCE, signed)[2:])
        signature = bytes.fromhex(signed.signature[2:])

        assert recover_offer_signer(digest, signature) == TEST_ADDRESS

    def test_recover_with_other_hash_yields_unrelated_address(self):
        signed = sign_offer(TEST_PRIVATE_KEY, INSTANCE, _offer())
        other_digest = offer_hash(INSTANCE, _offer(amount0=1))

        recovered = recover_offer_signer(other_digest, signed.signature)
        assert recovered != TEST_ADDRESS

    @pytest.mark.parametrize(
        "signature",
        [
            "0x",
            "0x1234",
            "not-hex",
            "0x" + "11" * 64 + "05",  # invalid v
            b"\x00" * 10,
        ],
    )
    def test_recover_malformed_signature_returns_zero_address(self, signature):
        digest = offer_hash(INSTANCE, _offer())

        assert recover_offer_signer(digest, signature) == ZERO_ADDRESS

    def test_recover_malformed_hash_returns_zero_address(self):
        signed = sign_offer(TEST_PRIVATE_KEY, INSTANCE, _offer())

        assert recover_offer_signer("zz", signed.signature) == ZERO_ADDRESS

    def test_verify_offer_signature(self):
        signed = sign_offer(TEST_PRIVATE_KEY, INSTANCE, _offer())

        assert verify_offer_signature(signed, INSTANCE, TEST_ADDRESS) is True

        wrong_address = Account.create().address
        assert verify_offer_signature(signed, INSTANCE, wrong_address) is False

    def test_verify_offer_signature_other_instance(self):
        """A signature for one instance does not verify on another."""
        signed = sign_offer(TEST_PRIVATE_KEY, INSTANCE, _offer())
        other_instance = to_checksum_address("0x" + "23" * 20)

        assert verify_offer_signature(signed, other_instance, TEST_ADDRESS) is False

    def test_verify_offer_signature_malformed(self):
        signed = SignedOffer(**dataclasses.asdict(_offer()), signature="0xdead")

        assert verify_offer_signature(signed, INSTANCE, TEST_ADDRESS) is False
        assert verify_offer_signature(signed, INSTANCE, ZERO_ADDRESS) is False

    def test_sign_offer_with_signer(self):
        signer = _LocalSigner(TEST_PRIVATE_KEY)

        signed = asyncio.run(sign_offer_with_signer(signer, INSTANCE, _offer()))

        assert signed == sign_offer(TEST_PRIVATE_KEY, INSTANCE, _offer())
        assert verify_offer_signature(signed, INSTANCE, TEST_ADDRESS) is True

    def test_swap_request_from_signed(self):
        signed = sign_offer(TEST_PRIVATE_KEY, INSTANCE, _offer())

        request = SwapRequest.from_signed(signed, part=SCALE // 2)

        assert request.part == SCALE // 2
        assert request.signature == signed.signature
        assert offer_hash(INSTANCE, request) == offer_hash(INSTANCE, signed)


class TestUtils:
    """Tests for fixed-point helpers."""

    def test_fill_amount(self):
        assert fill_amount(100, SCALE // 2) == 50
        assert fill_amount(50, SCALE // 2) == 25
        assert fill_amount(100, SCALE) == 100
        assert fill_amount(100, 0) == 0

    def test_fill_amount_truncates(self):
        # Three thirds of 3 never add up to 3: dust stays with the maker
        assert fill_amount(3, SCALE // 3) == 0
        assert fill_amount(10, SCALE // 3) == 3

    def test_fill_amount_at_overflow_bound(self):
        assert fill_amount(MAX_SCALABLE_AMOUNT, SCALE) == MAX_SCALABLE_AMOUNT
        assert MAX_SCALABLE_AMOUNT * SCALE <= MAX_UINT256

    def test_clamp_part(self):
        assert clamp_part(0, SCALE // 2) == SCALE // 2
        assert clamp_part(SCALE // 2, SCALE * 6 // 10) == SCALE // 2
        assert clamp_part(SCALE, SCALE // 2) == 0
        assert clamp_part(SCALE // 4, SCALE) == SCALE * 3 // 4

    def test_parse_part(self):
        assert parse_part(0.5) == SCALE // 2
        assert parse_part("0.25") == SCALE // 4
        assert parse_part(1) == SCALE
        assert parse_part(0) == 0

    def test_parse_part_out_of_range(self):
        with pytest.raises(ValueError, match="Invalid fraction"):
            parse_part(1.5)
        with pytest.raises(ValueError, match="Invalid fraction"):
            parse_part(-0.1)

    def test_format_part(self):
        assert format_part(SCALE // 4) == "25%"
        assert format_part(SCALE) == "100%"
        assert format_part(0) == "0%"
        assert format_part(SCALE // 1000) == "0.1%"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
