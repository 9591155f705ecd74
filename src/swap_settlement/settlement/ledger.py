"""
Asset ledger helpers.

``safe_transfer_from`` interprets whatever a ledger returns the way token
integrations usually do: no return value counts as success, anything else
must decode to ``True``. ``InMemoryAssetLedger`` is an ERC-20 style ledger
with savepoints, used for simulations and tests.
"""

from typing import Dict, List, Tuple

from eth_abi import decode
from eth_utils import to_checksum_address

from ..exceptions import TransferError
from ..offer.utils import MAX_UINT256
from .interfaces import AssetLedger


def safe_transfer_from(
    ledger: AssetLedger, spender: str, owner: str, recipient: str, amount: int
) -> None:
    """Call ``ledger.transfer_from`` and raise unless it clearly succeeded.

    Raises:
        TransferError: If the ledger raised, returned False, or returned
            data that does not decode to True
    """
    details = {"owner": owner, "recipient": recipient, "amount": amount}
    try:
        result = ledger.transfer_from(spender, owner, recipient, amount)
    except TransferError:
        raise
    except Exception as e:
        raise TransferError(f"Transfer raised: {e}", details) from e

    if result is None or result is True:
        return
    if isinstance(result, (bytes, bytearray)):
        if len(result) == 0:
            return
        try:
            (ok,) = decode(["bool"], bytes(result))
        except Exception as e:
            raise TransferError("Undecodable transfer result", details) from e
        if ok:
            return
    raise TransferError("Transfer failed", details)


class InMemoryAssetLedger:
    """
    Balances and allowances of one asset.

    ``transfer_from`` returns False instead of raising when the owner lacks
    balance or the spender lacks allowance. An allowance of MAX_UINT256 is
    treated as infinite and never decremented.
    """

    def __init__(self, token: str):
        self.token = to_checksum_address(token)
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}
        self._snapshots: List[Tuple[Dict[str, int], Dict[Tuple[str, str], int]]] = []

    def balance_of(self, account: str) -> int:
        return self._balances.get(to_checksum_address(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get(
            (to_checksum_address(owner), to_checksum_address(spender)), 0
        )

    def mint(self, account: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"Invalid mint amount: {amount}")
        account = to_checksum_address(account)
        self._balances[account] = self._balances.get(account, 0) + amount

    def approve(self, owner: str, spender: str, amount: int) -> None:
        if amount < 0 or amount > MAX_UINT256:
            raise ValueError(f"Invalid allowance: {amount}")
        key = (to_checksum_address(owner), to_checksum_address(spender))
        self._allowances[key] = amount

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> bool:
        owner = to_checksum_address(owner)
        recipient = to_checksum_address(recipient)
        key = (owner, to_checksum_address(spender))

        if amount < 0:
            return False
        allowed = self._allowances.get(key, 0)
        if allowed < amount or self._balances.get(owner, 0) < amount:
            return False

        if allowed != MAX_UINT256:
            self._allowances[key] = allowed - amount
        self._balances[owner] -= amount
        self._balances[recipient] = self._balances.get(recipient, 0) + amount
        return True

    def begin(self) -> None:
        self._snapshots.append((dict(self._balances), dict(self._allowances)))

    def commit(self) -> None:
        if not self._snapshots:
            raise TransferError("Commit without an open savepoint", {"token": self.token})
        self._snapshots.pop()

    def rollback(self) -> None:
        if not self._snapshots:
            raise TransferError("Rollback without an open savepoint", {"token": self.token})
        self._balances, self._allowances = self._snapshots.pop()
