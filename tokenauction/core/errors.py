"""
Errors raised by the auction engine.

Any of these aborts the whole invocation: the host discards every state
change made by an action or callback that raised.
"""


class AuctionError(Exception):
    """Base class for all engine errors."""


class PreconditionViolation(AuctionError):
    """Wrong caller, wrong status, wrong timing window or malformed input."""


class ClaimOverflow(PreconditionViolation):
    """Merging a claim would push an amount past the u128 range."""


class TransferDenied(AuctionError):
    """A callback verdict reported that the requested transfer failed."""


__all__ = [
    "AuctionError",
    "PreconditionViolation",
    "ClaimOverflow",
    "TransferDenied",
]
