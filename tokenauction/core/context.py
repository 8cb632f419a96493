"""
Invocation context supplied by the host on every action and callback.
"""

from dataclasses import dataclass, field
from typing import Tuple

from tokenauction.core.address import Address


@dataclass(frozen=True)
class ContractContext:
    """
    Who is calling, when, and on which contract.

    Attributes:
        sender: Address of the caller
        block_time: Current logical time in milliseconds
        contract_address: Address of the auction contract itself
    """
    sender: Address
    block_time: int
    contract_address: Address


@dataclass(frozen=True)
class CallbackContext:
    """
    Verdict for a completed event group.

    Attributes:
        success: True only if every call in the group succeeded
        results: Per-call success flags, in emission order
    """
    success: bool
    results: Tuple[bool, ...] = field(default_factory=tuple)

    @classmethod
    def from_results(cls, results) -> "CallbackContext":
        results = tuple(results)
        return cls(success=all(results), results=results)
