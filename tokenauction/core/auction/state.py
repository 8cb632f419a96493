"""
Auction State - the persisted aggregate of one auction instance.

Status Lifecycle:
----------------
    CREATION -> BIDDING -> ENDED
                        -> CANCELLED

Strictly one-directional. ENDED and CANCELLED are terminal.

Only `highest_bidder`, `claim_ledger` and `status` change after creation.
State transitions never mutate an AuctionState in place; they work on a
copy and hand the copy back to the host.
"""

from dataclasses import dataclass, field, replace
from enum import IntEnum

from tokenauction.core.address import Address
from tokenauction.core.ledger import ClaimLedger

MILLIS_PER_HOUR = 60 * 60 * 1000


class AuctionStatus(IntEnum):
    """Lifecycle status of an auction."""
    CREATION = 0    # Deployed, sale tokens not yet escrowed
    BIDDING = 1     # Sale tokens escrowed, accepting bids
    ENDED = 2       # Settled after end time
    CANCELLED = 3   # Cancelled by owner before end time


@dataclass(frozen=True)
class Bid:
    """
    A fund-confirmed (or candidate) bid.

    Bids order by amount only. Equality stays structural, so two bids of
    the same amount from different bidders are not equal.
    """
    bidder: Address
    amount: int

    def __lt__(self, other: "Bid") -> bool:
        if not isinstance(other, Bid):
            return NotImplemented
        return self.amount < other.amount

    def __le__(self, other: "Bid") -> bool:
        if not isinstance(other, Bid):
            return NotImplemented
        return self.amount <= other.amount

    def __gt__(self, other: "Bid") -> bool:
        if not isinstance(other, Bid):
            return NotImplemented
        return self.amount > other.amount

    def __ge__(self, other: "Bid") -> bool:
        if not isinstance(other, Bid):
            return NotImplemented
        return self.amount >= other.amount

    def to_dict(self) -> dict:
        return {"bidder": self.bidder.to_hex(), "amount": self.amount}

    @classmethod
    def from_dict(cls, data: dict) -> "Bid":
        return cls(bidder=Address.from_hex(data["bidder"]), amount=int(data["amount"]))


@dataclass
class AuctionState:
    """
    Full record of one auction.

    Attributes:
        contract_owner: Creator of the auction, receives the winning bid
        start_time_millis: Creation time
        end_time_millis: Bids confirmed at or after this time lose
        token_amount_for_sale: Sale tokens escrowed by start
        token_for_sale: Sale token contract
        token_for_bidding: Bidding token contract
        highest_bidder: Leading bid; {owner, 0} until the first winning bid
        reserve_price: Minimum winning amount
        min_increment: Minimum raise over the current highest bid
        claim_ledger: Withdrawable amounts per participant
        status: Lifecycle status
    """
    contract_owner: Address
    start_time_millis: int
    end_time_millis: int
    token_amount_for_sale: int
    token_for_sale: Address
    token_for_bidding: Address
    highest_bidder: Bid
    reserve_price: int
    min_increment: int
    claim_ledger: ClaimLedger = field(default_factory=ClaimLedger)
    status: AuctionStatus = AuctionStatus.CREATION

    def copy(self) -> "AuctionState":
        """Independent copy; the ledger is the only mutable member."""
        return replace(self, claim_ledger=self.claim_ledger.copy())

    @property
    def has_real_bid(self) -> bool:
        """False while the highest bidder is still the owner sentinel."""
        return not (
            self.highest_bidder.bidder == self.contract_owner
            and self.highest_bidder.amount == 0
        )

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict:
        """JSON-friendly snapshot."""
        return {
            "contract_owner": self.contract_owner.to_hex(),
            "start_time_millis": self.start_time_millis,
            "end_time_millis": self.end_time_millis,
            "token_amount_for_sale": self.token_amount_for_sale,
            "token_for_sale": self.token_for_sale.to_hex(),
            "token_for_bidding": self.token_for_bidding.to_hex(),
            "highest_bidder": self.highest_bidder.to_dict(),
            "reserve_price": self.reserve_price,
            "min_increment": self.min_increment,
            "claim_ledger": self.claim_ledger.to_dict(),
            "status": self.status.name,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AuctionState":
        return cls(
            contract_owner=Address.from_hex(data["contract_owner"]),
            start_time_millis=int(data["start_time_millis"]),
            end_time_millis=int(data["end_time_millis"]),
            token_amount_for_sale=int(data["token_amount_for_sale"]),
            token_for_sale=Address.from_hex(data["token_for_sale"]),
            token_for_bidding=Address.from_hex(data["token_for_bidding"]),
            highest_bidder=Bid.from_dict(data["highest_bidder"]),
            reserve_price=int(data["reserve_price"]),
            min_increment=int(data["min_increment"]),
            claim_ledger=ClaimLedger.from_dict(data["claim_ledger"]),
            status=AuctionStatus[data["status"]],
        )

    def __repr__(self) -> str:
        return (
            f"AuctionState(status={self.status.name}, "
            f"highest={self.highest_bidder.amount}, claims={len(self.claim_ledger)})"
        )
