"""
Loyalty Token Ledger

Minimal fungible-token balances. Supply only grows (mint); there is no burn.
"""

import threading
from typing import Optional

from .errors import TokenError


class TokenLedger:
    """
    Balance tracking for one fungible token.

    Addresses are organization or patient ids.
    """

    def __init__(self, name: str, symbol: str, total_supply: int = 0):
        if total_supply < 0:
            raise TokenError("total_supply must be non-negative")

        self.name = name
        self.symbol = symbol
        self._total_supply = total_supply
        self._balances: dict[str, int] = {}
        self._lock = threading.Lock()

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def mint(self, address: str, amount: int) -> None:
        """
        Credit `amount` new tokens to `address`.

        Raises:
            TokenError: If amount is negative
        """
        if amount < 0:
            raise TokenError(f"Cannot mint a negative amount ({amount})")

        with self._lock:
            self._balances[address] = self._balances.get(address, 0) + amount
            self._total_supply += amount

    def transfer(self, from_address: str, to_address: str, amount: int) -> bool:
        """
        Move tokens between addresses.

        Returns False and changes nothing if the sender's balance is short
        or the amount is negative.
        """
        if amount < 0:
            return False

        with self._lock:
            from_balance = self._balances.get(from_address, 0)
            if from_balance < amount:
                return False

            self._balances[from_address] = from_balance - amount
            self._balances[to_address] = self._balances.get(to_address, 0) + amount
            return True

    def balance_of(self, address: str) -> int:
        """Balance of `address`; 0 if it has never held tokens."""
        return self._balances.get(address, 0)

    def holders(self, min_balance: Optional[int] = None) -> dict[str, int]:
        """Copy of the balance table, optionally filtered by minimum balance."""
        with self._lock:
            balances = dict(self._balances)
        if min_balance is not None:
            balances = {a: b for a, b in balances.items() if b >= min_balance}
        return balances
