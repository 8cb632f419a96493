"""
Auction Module.

English auction exchanging a sale token for a bidding token:
- Auction state and status lifecycle
- Lifecycle actions (start, bid, claim, execute, cancel)
- Callback continuations for deferred transfers
- Selector routing for the action surface
"""

from tokenauction.core.auction.state import (
    AuctionState,
    AuctionStatus,
    Bid,
    MILLIS_PER_HOUR,
)

from tokenauction.core.auction.callbacks import (
    StartConfirmed,
    BidConfirmed,
    SHORTNAME_START_CALLBACK,
    SHORTNAME_BID_CALLBACK,
)

from tokenauction.core.auction.machine import (
    ActionResult,
    initialize,
    start,
    start_callback,
    bid,
    bid_callback,
    is_winning_bid,
    claim,
    execute,
    cancel,
    invoke_action,
    invoke_callback,
    SHORTNAME_START,
    SHORTNAME_BID,
    SHORTNAME_CLAIM,
    SHORTNAME_EXECUTE,
    SHORTNAME_CANCEL,
)

__all__ = [
    # State
    "AuctionState",
    "AuctionStatus",
    "Bid",
    "MILLIS_PER_HOUR",
    # Callbacks
    "StartConfirmed",
    "BidConfirmed",
    "SHORTNAME_START_CALLBACK",
    "SHORTNAME_BID_CALLBACK",
    # Actions
    "ActionResult",
    "initialize",
    "start",
    "start_callback",
    "bid",
    "bid_callback",
    "is_winning_bid",
    "claim",
    "execute",
    "cancel",
    "invoke_action",
    "invoke_callback",
    "SHORTNAME_START",
    "SHORTNAME_BID",
    "SHORTNAME_CLAIM",
    "SHORTNAME_EXECUTE",
    "SHORTNAME_CANCEL",
]
