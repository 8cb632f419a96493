"""
Callback continuations bound to the auction's event groups.
"""

from dataclasses import dataclass

from tokenauction.core.auction.state import Bid
from tokenauction.core.transfer import Continuation

# Callback selectors on the auction contract
SHORTNAME_START_CALLBACK = 0x02
SHORTNAME_BID_CALLBACK = 0x04


@dataclass(frozen=True)
class StartConfirmed(Continuation):
    """Sale tokens escrowed by start; promotes CREATION to BIDDING."""
    shortname = SHORTNAME_START_CALLBACK


@dataclass(frozen=True)
class BidConfirmed(Continuation):
    """Bid funds pulled; decides whether `candidate` becomes the highest bid."""
    shortname = SHORTNAME_BID_CALLBACK

    candidate: Bid
