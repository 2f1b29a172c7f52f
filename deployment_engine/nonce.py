"""Single-writer nonce cursor for one account."""

from typing import List, Tuple

from ledger_client.client import LedgerClient


class NonceTracker:
    """Issues gap-free, strictly increasing nonces for one account.

    The cursor is seeded once from the ledger's pending-inclusive transaction
    count and then advanced locally on every reservation. It never waits for
    confirmations and never hands out the same nonce twice, even when the
    submission that used it failed.
    """

    def __init__(self, address: str, start: int) -> None:
        if start < 0:
            raise ValueError("Starting nonce must be non-negative.")
        self._address = address
        self._next_nonce = start
        self._issued: List[int] = []

    @classmethod
    def from_ledger(cls, ledger: LedgerClient, address: str) -> "NonceTracker":
        return cls(address, ledger.get_nonce(address, "pending"))

    @property
    def address(self) -> str:
        return self._address

    @property
    def next_nonce(self) -> int:
        return self._next_nonce

    @property
    def issued(self) -> Tuple[int, ...]:
        return tuple(self._issued)

    def reserve(self) -> int:
        nonce = self._next_nonce
        self._next_nonce += 1
        self._issued.append(nonce)
        return nonce
