"""
Transfer Requests - deferred token movements emitted by actions.

An action never moves tokens itself. It returns an EventGroup describing:

1. **Calls**: ordered invocations on token contracts, each a shortname
   (which token operation) plus positional arguments.
2. **Callback** (optional, at most one): the continuation the host must run
   once every call in the group has completed, told whether they succeeded.

Callbacks are plain frozen values (subclasses of Continuation), never
closures, so an in-flight group can be logged, serialized and replayed.

Token Contract Shortnames:
-------------------------
    TRANSFER       0x01  (to, amount)         push from the caller contract
    TRANSFER_FROM  0x03  (from, to, amount)   pull from `from` into `to`
"""

from dataclasses import dataclass, fields
from typing import Any, ClassVar, List, Optional, Tuple

from tokenauction.core.address import Address
from tokenauction.utils.logger import get_logger

logger = get_logger("transfer")


# =============================================================================
# Constants
# =============================================================================

TOKEN_TRANSFER = 0x01
TOKEN_TRANSFER_FROM = 0x03

TOKEN_SHORTNAMES = {
    TOKEN_TRANSFER: "transfer",
    TOKEN_TRANSFER_FROM: "transfer_from",
}


def _argument_to_json(value: Any) -> Any:
    if isinstance(value, Address):
        return value.to_hex()
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return value


# =============================================================================
# Calls and Continuations
# =============================================================================


@dataclass(frozen=True)
class ContractCall:
    """
    One invocation on a token contract.

    Attributes:
        target: Token contract address
        shortname: Operation selector on the token contract
        arguments: Positional arguments, in order
    """
    target: Address
    shortname: int
    arguments: Tuple[Any, ...] = ()

    @property
    def name(self) -> str:
        return TOKEN_SHORTNAMES.get(self.shortname, f"0x{self.shortname:02x}")

    def to_dict(self) -> dict:
        return {
            "target": self.target.to_hex(),
            "shortname": self.shortname,
            "arguments": [_argument_to_json(a) for a in self.arguments],
        }


@dataclass(frozen=True)
class Continuation:
    """
    Base for callback continuations.

    Subclasses set `shortname` (the callback selector on the auction) and
    declare their captured context as dataclass fields.
    """
    shortname: ClassVar[int] = -1

    @property
    def arguments(self) -> Tuple[Any, ...]:
        """Captured context, echoed back to the callback unchanged."""
        return tuple(getattr(self, f.name) for f in fields(self))

    def to_dict(self) -> dict:
        return {
            "callback": type(self).__name__,
            "shortname": self.shortname,
            "arguments": [_argument_to_json(a) for a in self.arguments],
        }


# =============================================================================
# Event Group
# =============================================================================


@dataclass(frozen=True)
class EventGroup:
    """
    Ordered contract calls plus an optional bound callback.

    The host executes `calls` in order, then delivers `callback` exactly
    once with the combined verdict.
    """
    calls: Tuple[ContractCall, ...]
    callback: Optional[Continuation] = None

    @staticmethod
    def builder() -> "EventGroupBuilder":
        return EventGroupBuilder()

    def to_dict(self) -> dict:
        return {
            "calls": [c.to_dict() for c in self.calls],
            "callback": self.callback.to_dict() if self.callback else None,
        }

    def __repr__(self) -> str:
        calls = ", ".join(f"{c.name}@{c.target.short()}" for c in self.calls)
        cb = type(self.callback).__name__ if self.callback else "none"
        return f"EventGroup(calls=[{calls}], callback={cb})"


class CallBuilder:
    """Accumulates positional arguments for one call."""

    def __init__(self, parent: "EventGroupBuilder", target: Address, shortname: int):
        self._parent = parent
        self._target = target
        self._shortname = shortname
        self._arguments: List[Any] = []

    def argument(self, value: Any) -> "CallBuilder":
        self._arguments.append(value)
        return self

    def done(self) -> "EventGroupBuilder":
        self._parent._calls.append(
            ContractCall(self._target, self._shortname, tuple(self._arguments))
        )
        return self._parent


class EventGroupBuilder:
    """
    Builder for a single EventGroup.

    Example:
        group = EventGroup.builder()
        group.call(token, TOKEN_TRANSFER_FROM).argument(a).argument(b).argument(n).done()
        group.with_callback(StartConfirmed())
        event = group.build()
    """

    def __init__(self):
        self._calls: List[ContractCall] = []
        self._callback: Optional[Continuation] = None

    def call(self, target: Address, shortname: int) -> CallBuilder:
        return CallBuilder(self, target, shortname)

    def with_callback(self, continuation: Continuation) -> "EventGroupBuilder":
        if self._callback is not None:
            raise ValueError("An event group can carry only one callback")
        self._callback = continuation
        return self

    @property
    def is_empty(self) -> bool:
        return not self._calls

    def build(self) -> EventGroup:
        if not self._calls:
            raise ValueError("An event group needs at least one call")
        group = EventGroup(calls=tuple(self._calls), callback=self._callback)
        logger.debug(f"Built {group!r}")
        return group


__all__ = [
    "TOKEN_TRANSFER",
    "TOKEN_TRANSFER_FROM",
    "ContractCall",
    "Continuation",
    "EventGroup",
    "EventGroupBuilder",
    "CallBuilder",
]
