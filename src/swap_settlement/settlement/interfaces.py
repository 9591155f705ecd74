"""Collaborator protocols used by the settlement engine."""

from typing import Optional, Protocol, Union, runtime_checkable


TransferResult = Optional[Union[bool, bytes]]


class AssetLedger(Protocol):
    """Conditional value transfer for a single asset."""

    def transfer_from(
        self, spender: str, owner: str, recipient: str, amount: int
    ) -> TransferResult:
        """Move ``amount`` from ``owner`` to ``recipient`` using ``spender``'s allowance.

        Returns:
            True/False, None when the ledger has no return value, or the raw
            ABI-encoded return data
        """
        ...

    def allowance(self, owner: str, spender: str) -> int:
        """Capacity ``owner`` has approved for ``spender``."""
        ...


@runtime_checkable
class Transactional(Protocol):
    """Savepoint interface the engine drives around each settlement unit."""

    def begin(self) -> None:
        ...

    def commit(self) -> None:
        ...

    def rollback(self) -> None:
        ...


class FlashCallee(Protocol):
    """Taker-side hook invoked between the two legs of a composed swap.

    By the time ``callback`` returns, the taker must hold enough approved
    token1 for the second leg, or the whole settlement is rolled back.
    """

    def callback(self, data: bytes) -> None:
        ...
