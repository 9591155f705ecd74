"""Partial fills and a flash swap against in-memory ledgers.

This example signs one offer and redeems it three ways:
- a plain partial swap
- a flash swap whose callback raises the token1 it needs from the token0
  it has just received
- a late swap on the exhausted offer

Prerequisites:
1. pip install -e .
2. Optionally set SWAP_SETTLEMENT_INSTANCE_ADDRESS (and
   SWAP_SETTLEMENT_NULLIFIER_PATH) in the environment or a .env file

Usage:
    python flash_swap.py
"""

import logging
import os

from dotenv import load_dotenv

load_dotenv()


class ResellCallee:
    """Pretends to sell the received token0 elsewhere for token1."""

    def __init__(self, ledger1, taker, instance_address, proceeds):
        self.ledger1 = ledger1
        self.taker = taker
        self.instance_address = instance_address
        self.proceeds = proceeds

    def callback(self, data: bytes) -> None:
        print(f"    Callback running with data {data!r}")
        self.ledger1.mint(self.taker, self.proceeds)
        self.ledger1.approve(self.taker, self.instance_address, self.proceeds)


def main():
    # Import here to show what's needed
    from eth_account import Account
    from swap_settlement import (
        InMemoryAssetLedger,
        SettlementEngine,
        SwapRequest,
        create_offer,
        format_part,
        parse_part,
        sign_offer,
    )

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    os.environ.setdefault("SWAP_SETTLEMENT_INSTANCE_ADDRESS", "0x" + "22" * 20)

    maker = Account.create()
    taker = Account.create().address
    flash_taker = Account.create().address
    late_taker = Account.create().address

    token0 = InMemoryAssetLedger("0x" + "10" * 20)
    token1 = InMemoryAssetLedger("0x" + "11" * 20)

    engine = SettlementEngine.from_env({token0.token: token0, token1.token: token1})
    instance_address = engine.address

    print("=" * 60)
    print("  SIGNED OFFER: PARTIAL FILLS AND FLASH SWAP")
    print("=" * 60)

    print("\n[1] Maker signs an offer: 100 token0 for 50 token1")
    offer = create_offer(
        offer_id=1,
        token0=token0.token,
        token1=token1.token,
        amount0=100,
        amount1=50,
        expiration_seconds=3600,
    )
    signed = sign_offer(maker.key.hex(), instance_address, offer)
    token0.mint(maker.address, 100)
    token0.approve(maker.address, instance_address, 100)
    print(f"    Valid: {engine.is_valid(signed, signed.signature)}")

    print("\n[2] Taker swaps 40%")
    token1.mint(taker, 20)
    token1.approve(taker, instance_address, 20)
    executed = engine.swap(parse_part("0.4"), signed, signed.signature, taker=taker)
    print(f"    Executed {format_part(executed)}, taker holds {token0.balance_of(taker)} token0")

    print("\n[3] Flash taker requests 100%, gets the remaining 60%")
    callee = ResellCallee(token1, flash_taker, instance_address, proceeds=30)
    request = SwapRequest.from_signed(signed, parse_part(1))
    executed = engine.composed_swap(request, b"resell", taker=flash_taker, callee=callee)
    print(f"    Executed {format_part(executed)}, flash taker holds {token0.balance_of(flash_taker)} token0")

    print("\n[4] Late taker finds the offer exhausted")
    executed = engine.swap(parse_part("0.5"), signed, signed.signature, taker=late_taker)
    print(f"    Executed {format_part(executed)}")

    print("\n" + "=" * 60)
    print(f"  Maker received {token1.balance_of(maker.address)} token1")
    print(f"  Offer filled: {format_part(engine.filled(maker.address, 1))}")
    print("=" * 60)


if __name__ == "__main__":
    main()
