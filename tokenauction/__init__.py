"""
Token Auction Engine

An English auction exchanging a sale token for a bidding token:
- Status lifecycle state machine
- Claim ledger for refunds and payouts
- Deferred two-phase token transfers with bound callbacks
- In-memory host for simulation and testing
"""

__version__ = "0.1.0"
