"""
In-process world state for the marketplace.

Plays the part of the chain: it owns native-value balances, the block
clock, the address space, and the contracts deployed into it. Calls into
contracts run inside ``World.atomic()`` so that a failure anywhere in the
call undoes every change it made to the stateful members.
"""

import itertools
import logging
import threading
import time
from contextlib import contextmanager
from typing import Any, Callable, Iterator

from nftmarket.errors import InsufficientFundsError, Revert, ValueTransferError

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x" + "0" * 40

ReceiveHook = Callable[[str, int], None]


def make_address(n: int) -> str:
    """Format an integer as a 20-byte hex address."""
    return f"0x{n:040x}"


_MISSING = object()


def _restore_item(mapping: dict, key: Any, old: Any) -> None:
    if old is _MISSING:
        mapping.pop(key, None)
    else:
        mapping[key] = old


def _restore_attrs(obj: Any, saved: dict[str, Any]) -> None:
    for name, value in saved.items():
        setattr(obj, name, value)


class Stateful:
    """
    Mixin for objects whose state is rolled back with a failed call.

    Subclasses make every change through the ``_set_item``, ``_pop_item``,
    ``_append`` and ``_save_attrs`` helpers. Inside a call each helper
    records how to undo its change in the world's journal, so a rollback
    costs time in proportion to what the call touched rather than to the
    size of the state. Outside a call, or before the object is tracked by
    a world, the helpers just apply the change.
    """

    _world: "World | None" = None

    def _journal(self, undo: Callable[[], None]) -> None:
        if self._world is not None:
            self._world.journal(undo)

    def _set_item(self, mapping: dict, key: Any, value: Any) -> None:
        old = mapping[key] if key in mapping else _MISSING
        self._journal(lambda: _restore_item(mapping, key, old))
        mapping[key] = value

    def _pop_item(self, mapping: dict, key: Any) -> Any:
        old = mapping.pop(key)
        self._journal(lambda: _restore_item(mapping, key, old))
        return old

    def _append(self, items: list, item: Any) -> None:
        length = len(items)
        self._journal(lambda: items.__delitem__(slice(length, None)))
        items.append(item)

    def _save_attrs(self, obj: Any, *names: str) -> None:
        """Record attributes of ``obj`` before they are reassigned."""
        saved = {name: getattr(obj, name) for name in names}
        self._journal(lambda: _restore_attrs(obj, saved))

    def commit(self) -> None:
        """Hook run after the outermost call succeeds."""


class World(Stateful):
    """
    Shared state for accounts and contracts.

    Attributes:
        balances: Native value held by each address
        timestamp: Current block time in seconds (always > 0)
        contracts: Deployed contracts by address
    """

    def __init__(self, timestamp: int | None = None) -> None:
        self.balances: dict[str, int] = {}
        self.timestamp = int(timestamp if timestamp is not None else time.time())
        if self.timestamp <= 0:
            raise ValueError(f"timestamp must be positive, got {self.timestamp}")
        self.contracts: dict[str, Any] = {}
        self._receive_hooks: dict[str, ReceiveHook] = {}
        self._members: list[Stateful] = [self]
        self._addresses = itertools.count(1)
        self._lock = threading.RLock()
        self._depth = 0
        self._undo_log: list[Callable[[], None]] = []
        self._world = self

    # =========================================================================
    # Addresses and contracts
    # =========================================================================

    def new_address(self) -> str:
        """Allocate a fresh externally-owned account."""
        return make_address(next(self._addresses))

    def deploy(self, contract: Any) -> str:
        """Give a contract an address and track its state."""
        address = self.new_address()
        contract.address = address
        self.contracts[address] = contract
        if isinstance(contract, Stateful):
            self.track(contract)
        logger.debug(f"Deployed {type(contract).__name__} at {address}")
        return address

    def track(self, member: Stateful) -> None:
        """Include a member in call rollback and commit."""
        member._world = self
        if member not in self._members:
            self._members.append(member)

    def contract_at(self, address: str) -> Any:
        try:
            return self.contracts[address]
        except KeyError:
            raise Revert(f"no contract at {address}") from None

    # =========================================================================
    # Native value
    # =========================================================================

    def fund(self, address: str, amount: int) -> None:
        """Credit an account out of thin air (test faucet)."""
        if amount < 0:
            raise ValueError(f"amount must be >= 0, got {amount}")
        self._set_item(self.balances, address, self.balance_of(address) + amount)

    def balance_of(self, address: str) -> int:
        return self.balances.get(address, 0)

    def on_receive(self, address: str, hook: ReceiveHook | None) -> None:
        """Register code that runs whenever ``address`` receives value."""
        if hook is None:
            self._receive_hooks.pop(address, None)
        else:
            self._receive_hooks[address] = hook

    def send_value(self, sender: str, recipient: str, amount: int) -> None:
        """
        Move native value between accounts.

        The recipient's receive hook, if any, runs after the balances
        move. A hook that raises fails the whole transfer.

        Raises:
            InsufficientFundsError: If the sender cannot cover ``amount``
            ValueTransferError: If the recipient rejects the value
        """
        if amount < 0:
            raise ValueTransferError(f"negative transfer of {amount}")
        if amount == 0:
            return
        with self.atomic():
            available = self.balance_of(sender)
            if available < amount:
                raise InsufficientFundsError(
                    f"{sender} holds {available}, cannot send {amount}"
                )
            self._set_item(self.balances, sender, available - amount)
            self._set_item(self.balances, recipient, self.balance_of(recipient) + amount)

            hook = self._receive_hooks.get(recipient)
            if hook is not None:
                try:
                    hook(sender, amount)
                except Exception as exc:
                    raise ValueTransferError(
                        f"{recipient} rejected {amount} from {sender}: {exc}"
                    ) from exc

    # =========================================================================
    # Clock
    # =========================================================================

    def now(self) -> int:
        return self.timestamp

    def advance_time(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("time cannot move backwards")
        self._save_attrs(self, "timestamp")
        self.timestamp += seconds
        return self.timestamp

    # =========================================================================
    # Atomic calls
    # =========================================================================

    @property
    def in_call(self) -> bool:
        return self._depth > 0

    @property
    def lock(self) -> threading.RLock:
        """Lock held for the duration of every call; readers take it too."""
        return self._lock

    def journal(self, undo: Callable[[], None]) -> None:
        """Record how to undo a change made by the running call."""
        if self._depth > 0:
            self._undo_log.append(undo)

    def _rollback(self) -> None:
        undo_log, self._undo_log = self._undo_log, []
        while undo_log:
            undo_log.pop()()

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """
        Run a call with all-or-nothing semantics.

        Changes are journaled for the whole outermost call. Nested entries
        join the enclosing call, so only the outermost entry rolls back.
        """
        with self._lock:
            outermost = self._depth == 0
            if outermost:
                self._undo_log = []
            self._depth += 1
            try:
                yield
            except BaseException:
                if outermost:
                    self._rollback()
                raise
            finally:
                self._depth -= 1
            if outermost:
                self._undo_log = []
                for member in self._members:
                    member.commit()
