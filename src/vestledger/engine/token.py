"""Value-transfer endpoint and the in-memory reference token.

The distribution only ever talks to a token through the ``TokenEndpoint``
protocol. A failed transfer must raise (or return ``False``); the enclosing
operation is then rolled back as a whole.
"""

import logging
from contextlib import contextmanager
from typing import Callable, Dict, List, Protocol, Tuple, runtime_checkable

from .errors import InsufficientBalance, InvalidAmount

logger = logging.getLogger(__name__)

TransferHook = Callable[[str, str, int], None]


@runtime_checkable
class TokenEndpoint(Protocol):
    """Fungible token interface required by the distribution."""

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        ...

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> bool:
        ...

    def balance_of(self, account: str) -> int:
        ...


class InMemoryToken:
    """Balance and allowance book implementing ``TokenEndpoint``.

    Hooks registered with ``on_transfer`` run after every transfer, which is
    how tests model a recipient calling back in. A hook that raises reverts
    the transfer together with anything it did to the book.
    """

    def __init__(self, symbol: str = "TKN", decimals: int = 18):
        self.symbol = symbol
        self.decimals = decimals
        self.total_supply = 0
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}
        self._hooks: List[TransferHook] = []

    def mint(self, account: str, amount: int) -> None:
        if amount <= 0:
            raise InvalidAmount(f"Mint amount must be positive, got {amount}")
        self._balances[account] = self._balances.get(account, 0) + amount
        self.total_supply += amount

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        if amount < 0:
            raise InvalidAmount(f"Allowance must be >= 0, got {amount}")
        self._allowances[(owner, spender)] = amount
        return True

    def on_transfer(self, hook: TransferHook) -> None:
        self._hooks.append(hook)

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """Move ``amount`` from ``sender`` to ``recipient``."""
        with self._atomic():
            self._move(sender, recipient, amount)
        return True

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> bool:
        """Move ``amount`` from ``owner`` to ``recipient`` against the spender's allowance."""
        allowed = self.allowance(owner, spender)
        if allowed < amount:
            raise InsufficientBalance(
                f"Allowance too low: {owner} -> {spender} allows {allowed:,}, needs {amount:,}"
            )
        with self._atomic():
            self._allowances[(owner, spender)] = allowed - amount
            self._move(owner, recipient, amount)
        return True

    @contextmanager
    def _atomic(self):
        # Hooks may transfer again before raising, so the whole book is restored.
        balances = dict(self._balances)
        allowances = dict(self._allowances)
        total_supply = self.total_supply
        try:
            yield
        except Exception:
            self._balances = balances
            self._allowances = allowances
            self.total_supply = total_supply
            logger.debug("%s transfer reverted", self.symbol)
            raise

    def _move(self, sender: str, recipient: str, amount: int) -> None:
        if amount < 0:
            raise InvalidAmount(f"Transfer amount must be >= 0, got {amount}")
        balance = self.balance_of(sender)
        if balance < amount:
            raise InsufficientBalance(
                f"Balance too low: {sender} holds {balance:,}, needs {amount:,}"
            )
        self._balances[sender] = balance - amount
        self._balances[recipient] = self.balance_of(recipient) + amount
        logger.debug("%s transfer %s -> %s: %s", self.symbol, sender, recipient, amount)
        for hook in list(self._hooks):
            hook(sender, recipient, amount)
