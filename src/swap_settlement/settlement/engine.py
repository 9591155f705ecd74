"""
Settlement engine for signed, partially fillable offers.

Takers redeem a maker's signed offer in one or more parts. Each call runs as
a single atomic unit: the nullifier update and both transfers (and, for a
composed swap, the flash callback between them) all take effect or none do.
"""

import logging
import threading
import time
from contextlib import contextmanager
from typing import Callable, Iterator, List, Mapping, Optional, Union

from eth_utils import to_checksum_address

from ..exceptions import ValidationError
from ..offer.hashing import checked_address, checked_uint, offer_hash
from ..offer.signing import recover_offer_signer
from ..offer.types import Offer, SwapRequest
from ..offer.utils import MAX_SCALABLE_AMOUNT, SCALE, clamp_part, fill_amount
from .config import (
    ResolvedSettlementConfig,
    SettlementConfig,
    load_settlement_config_from_env,
    resolve_settlement_config,
)
from .interfaces import AssetLedger, FlashCallee, Transactional
from .ledger import safe_transfer_from
from .nullifier import NullifierStore, open_nullifier_store


class SettlementEngine:
    """
    Settles signed offers between a maker and any number of takers.

    Example:
        ```python
        engine = SettlementEngine(
            {"instance_address": "0x..."},
            ledgers={token0: ledger0, token1: ledger1},
        )

        if engine.is_valid(signed, signed.signature):
            executed = engine.swap(parse_part("0.5"), signed, signed.signature, taker=me)
        ```
    """

    def __init__(
        self,
        config: Optional[SettlementConfig],
        ledgers: Mapping[str, AssetLedger],
        nullifiers: Optional[NullifierStore] = None,
        clock: Optional[Callable[[], int]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the settlement engine.

        Args:
            config: Engine configuration (instance_address is required)
            ledgers: Asset ledger per token address
            nullifiers: Nullifier store. Default: opened from config.nullifier_path
            clock: Returns the current unix time in seconds
            logger: Logger for audit lines
        """
        self._config = resolve_settlement_config(config)
        self.address = self._config.instance_address
        self._ledgers = {
            to_checksum_address(token): ledger for token, ledger in ledgers.items()
        }
        self._nullifiers = (
            nullifiers
            if nullifiers is not None
            else open_nullifier_store(self._config.nullifier_path)
        )
        self._clock = clock or (lambda: int(time.time()))
        self.logger = logger or logging.getLogger(__name__)
        # Re-entrant so a flash callback on the same thread can call back in
        self._lock = threading.RLock()

    @classmethod
    def from_env(
        cls,
        ledgers: Mapping[str, AssetLedger],
        dotenv_path: Optional[str] = None,
        **kwargs,
    ) -> "SettlementEngine":
        """Build an engine from SWAP_SETTLEMENT_* environment variables."""
        return cls(load_settlement_config_from_env(dotenv_path), ledgers, **kwargs)

    def get_config(self) -> ResolvedSettlementConfig:
        """Get the resolved configuration."""
        return self._config

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def offer_hash(self, offer: Offer) -> str:
        """Hash a maker must sign for this instance."""
        return offer_hash(self.address, offer)

    def recover(self, offer_hash_value: Union[str, bytes], signature: Union[str, bytes]) -> str:
        """Signer of an offer hash, ZERO_ADDRESS for a malformed signature."""
        return recover_offer_signer(offer_hash_value, signature)

    def filled(self, maker: str, offer_id: int) -> int:
        """Fraction of an offer already executed or cancelled."""
        return self._nullifiers.get(maker, offer_id)

    def remaining(self, maker: str, offer_id: int) -> int:
        """Fraction of an offer still executable."""
        return SCALE - self.filled(maker, offer_id)

    def is_valid(self, offer: Offer, signature: Union[str, bytes], now: Optional[int] = None) -> bool:
        """
        Pre-screen an offer without changing any state.

        True iff the offer has not expired, is not fully filled, and its maker
        has approved at least amount0 of token0 to this instance.
        """
        try:
            # Validates every offer field before any comparison below
            digest = self.offer_hash(offer)
        except ValidationError as e:
            self.logger.debug(f"Offer {offer.offer_id}: malformed ({e})")
            return False

        now = self._clock() if now is None else now
        if offer.expiration < now:
            self.logger.debug(f"Offer {offer.offer_id}: expired at {offer.expiration}")
            return False

        maker = self.recover(digest, signature)
        filled = self.filled(maker, offer.offer_id)
        ledger = self._ledgers.get(to_checksum_address(offer.token0))

        if filled >= SCALE:
            self.logger.debug(f"Offer {offer.offer_id}: fully filled for maker {maker}")
            return False
        if ledger is None:
            self.logger.debug(f"Offer {offer.offer_id}: no ledger for token0 {offer.token0}")
            return False
        return ledger.allowance(maker, self.address) >= offer.amount0

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def swap(
        self,
        part: int,
        offer: Offer,
        signature: Union[str, bytes],
        *,
        taker: str,
    ) -> int:
        """
        Execute up to ``part`` of a signed offer.

        Args:
            part: Requested fraction (SCALE = whole offer)
            offer: Offer terms as signed by the maker
            signature: Maker's signature over the offer hash
            taker: Identity redeeming the offer

        Returns:
            Executed fraction, clamped to what remains (0 if exhausted)

        Raises:
            ValidationError: Expired offer, a non-integer or out-of-range part,
                an invalid taker, or unsafe amounts
            StateError: Nullifier invariant violated
            TransferError: A ledger refused a transfer
        """
        return self._settle(part, offer, signature, taker, b"", None)

    def composed_swap(
        self,
        request: SwapRequest,
        flash_data: bytes = b"",
        *,
        taker: str,
        callee: Optional[FlashCallee] = None,
    ) -> int:
        """
        Execute a swap request, optionally as a flash swap.

        token0 is delivered to the taker first. When ``flash_data`` is
        non-empty, ``callee.callback(flash_data)`` then runs before token1 is
        pulled from the taker. If the taker cannot pay, everything is undone.

        Returns:
            Executed fraction
        """
        if flash_data and callee is None:
            raise ValidationError(
                "Flash data given without a callee", {"offer_id": request.offer_id}
            )
        return self._settle(
            request.part, request, request.signature, taker, flash_data, callee
        )

    def cancel_offer(self, offer_id: int, *, maker: str) -> None:
        """Mark one of ``maker``'s offers fully filled."""
        with self._atomic():
            self._nullifiers.set(maker, offer_id, SCALE)
        self.logger.info(f"Offer {offer_id}: cancelled by maker {maker}")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _settle(
        self,
        part: int,
        offer: Offer,
        signature: Union[str, bytes],
        taker: str,
        flash_data: bytes,
        callee: Optional[FlashCallee],
    ) -> int:
        # Must run before any fixed-point multiplication
        for name, amount in (("amount0", offer.amount0), ("amount1", offer.amount1)):
            checked_uint(amount, name)
            if amount > MAX_SCALABLE_AMOUNT:
                raise ValidationError(
                    f"{name} too large for fixed-point scaling",
                    {"offer_id": offer.offer_id, name: amount},
                )

        now = self._clock()
        checked_uint(offer.expiration, "expiration")
        if offer.expiration < now:
            raise ValidationError(
                "Offer expired",
                {"offer_id": offer.offer_id, "expiration": offer.expiration, "now": now},
            )

        maker = self.recover(self.offer_hash(offer), signature)

        checked_uint(part, "part")
        if part > SCALE:
            raise ValidationError("part out of range", {"part": part, "scale": SCALE})

        taker = checked_address(taker, "taker")

        with self._atomic():
            current = self._nullifiers.get(maker, offer.offer_id)
            part = clamp_part(current, part)
            self._nullifiers.set(maker, offer.offer_id, current + part)

            amount0 = fill_amount(offer.amount0, part)
            if amount0:
                self._transfer(offer.token0, maker, taker, amount0)

            if flash_data:
                callee.callback(flash_data)

            amount1 = fill_amount(offer.amount1, part)
            if amount1:
                self._transfer(offer.token1, taker, maker, amount1)

        self.logger.info(
            f"Offer {offer.offer_id}: maker {maker} -> taker {taker}, "
            f"executed {part}, filled {current + part}/{SCALE}"
        )
        return part

    def _ledger(self, token: str) -> AssetLedger:
        ledger = self._ledgers.get(to_checksum_address(token))
        if ledger is None:
            raise ValidationError("No ledger for token", {"token": token})
        return ledger

    def _transfer(self, token: str, owner: str, recipient: str, amount: int) -> None:
        safe_transfer_from(self._ledger(token), self.address, owner, recipient, amount)

    @contextmanager
    def _atomic(self) -> Iterator[None]:
        """One all-or-nothing unit across the nullifier store and every ledger."""
        participants: List[Transactional] = [self._nullifiers]
        participants.extend(
            ledger for ledger in self._ledgers.values() if isinstance(ledger, Transactional)
        )

        with self._lock:
            for p in participants:
                p.begin()
            try:
                yield
                # The store commits first: its durable write can still fail
                # while every ledger savepoint is open
                self._nullifiers.commit()
            except BaseException as e:
                for p in reversed(participants):
                    p.rollback()
                self.logger.warning(f"Settlement rolled back: {e}")
                raise
            for p in participants[1:]:
                p.commit()
