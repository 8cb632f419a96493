"""Claim ledger: refundable and payable amounts per participant"""
from tokenauction.core.ledger.claims import (
    TokenClaim,
    ClaimLedger,
    EMPTY_CLAIM,
    bidding_claim,
    sale_claim,
)

__all__ = [
    "TokenClaim",
    "ClaimLedger",
    "EMPTY_CLAIM",
    "bidding_claim",
    "sale_claim",
]
