"""
Claim Ledger - accrued, withdrawable token amounts per participant.

Conceptual Background:
---------------------
The auction never pays anybody directly from inside a state transition.
Every refund and every payout is first *credited* here, and the participant
later pulls it out with a claim action:

1. **Accrue**: a bid callback, execute or cancel adds an amount pair
   (bidding tokens, sale tokens) to a participant's entry.
2. **Settle**: a claim reads the entry, emits payouts, and zeroes it.

Entries are zeroed in place rather than removed, so a participant who
claims and then bids again reuses the same key.

Arithmetic:
----------
Amounts are unsigned 128-bit. Merging two claims is component-wise
addition; a sum past 2**128 - 1 raises ClaimOverflow instead of wrapping.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple

from tokenauction.core.address import Address
from tokenauction.core.errors import ClaimOverflow
from tokenauction.utils.logger import get_logger
from tokenauction.utils.validation import U128_MAX, validate_u128

logger = get_logger("ledger")


# =============================================================================
# Token Claim
# =============================================================================


@dataclass(frozen=True)
class TokenClaim:
    """
    An amount a participant may withdraw.

    Attributes:
        tokens_for_bidding: Amount of the bidding token owed
        tokens_for_sale: Amount of the sale token owed
    """
    tokens_for_bidding: int = 0
    tokens_for_sale: int = 0

    def __post_init__(self):
        for name in ("tokens_for_bidding", "tokens_for_sale"):
            is_valid, error = validate_u128(getattr(self, name), name)
            if not is_valid:
                raise ValueError(error)

    @property
    def is_empty(self) -> bool:
        return self.tokens_for_bidding == 0 and self.tokens_for_sale == 0

    def merged(self, other: "TokenClaim") -> "TokenClaim":
        """Component-wise sum of two claims."""
        bidding = self.tokens_for_bidding + other.tokens_for_bidding
        sale = self.tokens_for_sale + other.tokens_for_sale
        if bidding > U128_MAX or sale > U128_MAX:
            raise ClaimOverflow(
                f"Claim overflow: bidding={bidding}, sale={sale} exceeds u128"
            )
        return TokenClaim(tokens_for_bidding=bidding, tokens_for_sale=sale)

    def to_dict(self) -> dict:
        return {
            "tokens_for_bidding": self.tokens_for_bidding,
            "tokens_for_sale": self.tokens_for_sale,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TokenClaim":
        return cls(
            tokens_for_bidding=int(data["tokens_for_bidding"]),
            tokens_for_sale=int(data["tokens_for_sale"]),
        )


EMPTY_CLAIM = TokenClaim()


def bidding_claim(amount: int) -> TokenClaim:
    """Claim on the bidding token only."""
    return TokenClaim(tokens_for_bidding=amount)


def sale_claim(amount: int) -> TokenClaim:
    """Claim on the sale token only."""
    return TokenClaim(tokens_for_sale=amount)


# =============================================================================
# Claim Ledger
# =============================================================================


class ClaimLedger:
    """
    Mapping of participant address to accrued TokenClaim.

    Attributes:
        entries: address -> TokenClaim (iteration order carries no meaning)
    """

    def __init__(self, entries: Optional[Dict[Address, TokenClaim]] = None):
        self.entries: Dict[Address, TokenClaim] = dict(entries) if entries else {}

    # =========================================================================
    # Access
    # =========================================================================

    def get(self, address: Address) -> Optional[TokenClaim]:
        """Entry for `address`, or None if it never accrued anything."""
        return self.entries.get(address)

    def __contains__(self, address: Address) -> bool:
        return address in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[Tuple[Address, TokenClaim]]:
        return iter(self.entries.items())

    def __eq__(self, other) -> bool:
        if not isinstance(other, ClaimLedger):
            return NotImplemented
        return self.entries == other.entries

    def totals(self) -> Tuple[int, int]:
        """
        Sum of all outstanding claims as (bidding, sale).

        Plain integers: each entry fits u128, their sum need not.
        """
        bidding = sum(c.tokens_for_bidding for c in self.entries.values())
        sale = sum(c.tokens_for_sale for c in self.entries.values())
        return bidding, sale

    # =========================================================================
    # Mutation
    # =========================================================================

    def accrue(self, address: Address, additional: TokenClaim) -> TokenClaim:
        """
        Add `additional` to the entry for `address`, creating it if needed.

        Returns:
            The updated entry

        Raises:
            ClaimOverflow: if either field would exceed u128
        """
        current = self.entries.get(address, EMPTY_CLAIM)
        updated = current.merged(additional)
        self.entries[address] = updated

        logger.debug(
            f"Claim credited: {address.short()} +{additional.tokens_for_bidding} bidding, "
            f"+{additional.tokens_for_sale} sale"
        )
        return updated

    def settle(self, address: Address) -> Optional[TokenClaim]:
        """
        Zero the entry for `address` and return what it held.

        The key is kept. Returns None if `address` has no entry.
        """
        current = self.entries.get(address)
        if current is None:
            return None

        self.entries[address] = EMPTY_CLAIM
        if not current.is_empty:
            logger.debug(f"Claim settled: {address.short()} {current.to_dict()}")
        return current

    def copy(self) -> "ClaimLedger":
        return ClaimLedger(self.entries)

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict:
        """JSON-friendly form keyed by hex address, sorted for stable output."""
        return {
            address.to_hex(): claim.to_dict()
            for address, claim in sorted(self.entries.items())
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ClaimLedger":
        return cls({
            Address.from_hex(key): TokenClaim.from_dict(value)
            for key, value in data.items()
        })

    def __repr__(self) -> str:
        return f"ClaimLedger(entries={len(self.entries)})"
