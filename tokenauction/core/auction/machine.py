"""
Auction State Machine - lifecycle actions and their callbacks.

Every operation takes the current AuctionState and returns an ActionResult
holding a new state plus the event groups to hand to the host. The input
state is never modified, so an operation that raises leaves nothing behind.

Two-Phase Transfers:
-------------------
Token movement is not atomic with state changes. `start` and `bid` only
*request* a pull of tokens into the contract and bind a continuation. The
host later runs `start_callback` / `bid_callback` with the verdict:

    start  --(transfer_from sale token)-->  start_callback  -> BIDDING
    bid    --(transfer_from bid token)--->  bid_callback    -> promote or refund

A bid is only compared against the highest bid once its funds have arrived,
so a bid whose transfer fails never displaces anybody.

Settlement:
----------
`execute` and `cancel` never transfer anything. They credit the claim
ledger, and participants withdraw with `claim`.

Action Surface:
--------------
    0x01 start      0x02 start_callback (host only)
    0x03 bid        0x04 bid_callback   (host only)
    0x05 claim
    0x06 execute
    0x07 cancel
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List

from tokenauction.core.address import Address
from tokenauction.core.auction.callbacks import (
    BidConfirmed,
    StartConfirmed,
    SHORTNAME_BID_CALLBACK,
    SHORTNAME_START_CALLBACK,
)
from tokenauction.core.auction.state import (
    AuctionState,
    AuctionStatus,
    Bid,
    MILLIS_PER_HOUR,
)
from tokenauction.core.context import CallbackContext, ContractContext
from tokenauction.core.errors import PreconditionViolation, TransferDenied
from tokenauction.core.ledger import ClaimLedger, bidding_claim, sale_claim
from tokenauction.core.transfer import (
    EventGroup,
    TOKEN_TRANSFER,
    TOKEN_TRANSFER_FROM,
)
from tokenauction.utils.logger import get_logger
from tokenauction.utils.validation import validate_duration_hours, validate_u128

logger = get_logger("auction")


# =============================================================================
# Constants
# =============================================================================

SHORTNAME_START = 0x01
SHORTNAME_BID = 0x03
SHORTNAME_CLAIM = 0x05
SHORTNAME_EXECUTE = 0x06
SHORTNAME_CANCEL = 0x07


@dataclass
class ActionResult:
    """New state plus the event groups emitted by one invocation."""
    state: AuctionState
    events: List[EventGroup] = field(default_factory=list)


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise PreconditionViolation(message)


def _require_u128(value, name: str) -> None:
    is_valid, error = validate_u128(value, name)
    _require(is_valid, error)


# =============================================================================
# Creation
# =============================================================================


def initialize(
    ctx: ContractContext,
    token_amount_for_sale: int,
    token_for_sale: Address,
    token_for_bidding: Address,
    reserve_price: int,
    min_increment: int,
    auction_duration_hours: int,
) -> ActionResult:
    """
    Create a new auction owned by the deploying sender.

    Args:
        ctx: Deployment context; sender becomes the owner
        token_amount_for_sale: Sale tokens the owner will escrow on start
        token_for_sale: Public token contract being sold
        token_for_bidding: Public token contract bids are paid in
        reserve_price: Minimum winning bid
        min_increment: Minimum raise over the current highest bid
        auction_duration_hours: Bidding window measured from creation

    Returns:
        ActionResult with the fresh state and no events

    Raises:
        PreconditionViolation: non-contract token address or out-of-range value
    """
    _require(
        token_for_sale.is_public_contract,
        "Tried to create a contract selling a non publicContract token",
    )
    _require(
        token_for_bidding.is_public_contract,
        "Tried to create a contract buying a non publicContract token",
    )
    _require_u128(token_amount_for_sale, "token_amount_for_sale")
    _require_u128(reserve_price, "reserve_price")
    _require_u128(min_increment, "min_increment")
    is_valid, error = validate_duration_hours(auction_duration_hours)
    _require(is_valid, error)

    end_time_millis = ctx.block_time + auction_duration_hours * MILLIS_PER_HOUR
    state = AuctionState(
        contract_owner=ctx.sender,
        start_time_millis=ctx.block_time,
        end_time_millis=end_time_millis,
        token_amount_for_sale=token_amount_for_sale,
        token_for_sale=token_for_sale,
        token_for_bidding=token_for_bidding,
        highest_bidder=Bid(bidder=ctx.sender, amount=0),
        reserve_price=reserve_price,
        min_increment=min_increment,
        claim_ledger=ClaimLedger(),
        status=AuctionStatus.CREATION,
    )

    logger.info(
        f"Auction created by {ctx.sender.short()}: sale={token_amount_for_sale}, "
        f"reserve={reserve_price}, increment={min_increment}, ends at {end_time_millis}"
    )
    return ActionResult(state)


# =============================================================================
# Start
# =============================================================================


def start(ctx: ContractContext, state: AuctionState) -> ActionResult:
    """
    Request escrow of the sale tokens from the owner.

    Status stays CREATION until start_callback confirms the transfer.
    """
    _require(
        ctx.sender == state.contract_owner,
        "Start can only be called by the creator of the contract",
    )
    _require(
        state.status == AuctionStatus.CREATION,
        "Start should only be called while setting up the contract",
    )

    event_group = EventGroup.builder()
    event_group.call(state.token_for_sale, TOKEN_TRANSFER_FROM) \
        .argument(ctx.sender) \
        .argument(ctx.contract_address) \
        .argument(state.token_amount_for_sale) \
        .done()
    event_group.with_callback(StartConfirmed())

    return ActionResult(state.copy(), [event_group.build()])


def start_callback(
    ctx: ContractContext,
    callback_ctx: CallbackContext,
    state: AuctionState,
) -> ActionResult:
    """Enter BIDDING once the sale tokens are in escrow."""
    if not callback_ctx.success:
        raise TransferDenied("Transfer event did not succeed for start")
    _require(
        state.status == AuctionStatus.CREATION,
        "Start callback received while not setting up the contract",
    )

    new_state = state.copy()
    new_state.status = AuctionStatus.BIDDING

    logger.info(f"Auction started: {state.token_amount_for_sale} sale tokens escrowed")
    return ActionResult(new_state)


# =============================================================================
# Bidding
# =============================================================================


def bid(ctx: ContractContext, state: AuctionState, bid_amount: int) -> ActionResult:
    """
    Request the bid funds from the sender.

    The bid is only evaluated in bid_callback, after the funds arrived.
    """
    _require_u128(bid_amount, "bid_amount")

    candidate = Bid(bidder=ctx.sender, amount=bid_amount)

    event_group = EventGroup.builder()
    event_group.call(state.token_for_bidding, TOKEN_TRANSFER_FROM) \
        .argument(ctx.sender) \
        .argument(ctx.contract_address) \
        .argument(bid_amount) \
        .done()
    event_group.with_callback(BidConfirmed(candidate))

    logger.debug(f"Bid requested: {ctx.sender.short()} amount={bid_amount}")
    return ActionResult(state.copy(), [event_group.build()])


def is_winning_bid(state: AuctionState, candidate: Bid, block_time: int) -> bool:
    """
    Whether a fund-confirmed bid displaces the current highest bid.

    It must arrive while BIDDING and before the end time, clear the reserve,
    and beat the current highest by at least `min_increment`. An equal bid
    never wins.
    """
    return (
        state.status == AuctionStatus.BIDDING
        and block_time < state.end_time_millis
        and candidate.amount > state.highest_bidder.amount
        and candidate.amount >= state.highest_bidder.amount + state.min_increment
        and candidate.amount >= state.reserve_price
    )


def bid_callback(
    ctx: ContractContext,
    callback_ctx: CallbackContext,
    state: AuctionState,
    candidate: Bid,
) -> ActionResult:
    """
    Apply a confirmed bid.

    A losing bid is credited back to its bidder. A winning bid replaces the
    highest bidder, whose amount is credited back to them instead.
    """
    if not callback_ctx.success:
        raise TransferDenied("Transfer event did not succeed for bid")

    new_state = state.copy()

    if not is_winning_bid(state, candidate, ctx.block_time):
        new_state.claim_ledger.accrue(candidate.bidder, bidding_claim(candidate.amount))
        logger.info(f"Bid refunded: {candidate.bidder.short()} amount={candidate.amount}")
    else:
        previous = new_state.highest_bidder
        new_state.highest_bidder = candidate
        new_state.claim_ledger.accrue(previous.bidder, bidding_claim(previous.amount))
        logger.info(
            f"New highest bid: {candidate.bidder.short()} amount={candidate.amount} "
            f"(previous {previous.amount})"
        )

    return ActionResult(new_state)


# =============================================================================
# Claim
# =============================================================================


def claim(ctx: ContractContext, state: AuctionState) -> ActionResult:
    """
    Pay out everything the sender has accrued.

    Bidding tokens are paid before sale tokens. The entry is zeroed right
    away; no callback is bound to the payout.
    """
    claimable = state.claim_ledger.get(ctx.sender)
    if claimable is None:
        return ActionResult(state.copy())

    new_state = state.copy()
    new_state.claim_ledger.settle(ctx.sender)

    event_group = EventGroup.builder()
    if claimable.tokens_for_bidding > 0:
        event_group.call(state.token_for_bidding, TOKEN_TRANSFER) \
            .argument(ctx.sender) \
            .argument(claimable.tokens_for_bidding) \
            .done()
    if claimable.tokens_for_sale > 0:
        event_group.call(state.token_for_sale, TOKEN_TRANSFER) \
            .argument(ctx.sender) \
            .argument(claimable.tokens_for_sale) \
            .done()

    if event_group.is_empty:
        return ActionResult(new_state)

    logger.info(
        f"Claim paid: {ctx.sender.short()} bidding={claimable.tokens_for_bidding}, "
        f"sale={claimable.tokens_for_sale}"
    )
    return ActionResult(new_state, [event_group.build()])


# =============================================================================
# Settlement
# =============================================================================


def execute(ctx: ContractContext, state: AuctionState) -> ActionResult:
    """
    Settle the auction after its end time. Anyone may call.

    The owner is credited the winning bid; the winner is credited the sale
    tokens. With no real bid the owner is both, and gets the sale tokens back.
    """
    _require(
        ctx.block_time >= state.end_time_millis,
        "Tried to execute the auction before auction end block time",
    )
    _require(
        state.status == AuctionStatus.BIDDING,
        "Tried to execute the auction when the status isn't Bidding",
    )

    new_state = state.copy()
    new_state.status = AuctionStatus.ENDED
    winner = new_state.highest_bidder
    new_state.claim_ledger.accrue(new_state.contract_owner, bidding_claim(winner.amount))
    new_state.claim_ledger.accrue(winner.bidder, sale_claim(new_state.token_amount_for_sale))

    if new_state.has_real_bid:
        logger.info(f"Auction ended: winner={winner.bidder.short()} amount={winner.amount}")
    else:
        logger.info("Auction ended without a winning bid; sale tokens return to the owner")
    return ActionResult(new_state)


def cancel(ctx: ContractContext, state: AuctionState) -> ActionResult:
    """
    Cancel the auction before its end time. Owner only.

    The highest bidder is refunded and the sale tokens go back to the owner.
    """
    _require(
        ctx.sender == state.contract_owner,
        "Only the contract owner can cancel the auction",
    )
    _require(
        ctx.block_time < state.end_time_millis,
        "Tried to cancel the auction after auction end block time",
    )
    _require(
        state.status == AuctionStatus.BIDDING,
        "Tried to cancel the auction when the status isn't Bidding",
    )

    new_state = state.copy()
    new_state.status = AuctionStatus.CANCELLED
    highest = new_state.highest_bidder
    new_state.claim_ledger.accrue(highest.bidder, bidding_claim(highest.amount))
    new_state.claim_ledger.accrue(new_state.contract_owner, sale_claim(new_state.token_amount_for_sale))

    logger.info(f"Auction cancelled: refunding {highest.amount} to {highest.bidder.short()}")
    return ActionResult(new_state)


# =============================================================================
# Selector Routing
# =============================================================================

ACTIONS: Dict[int, Callable[..., ActionResult]] = {
    SHORTNAME_START: start,
    SHORTNAME_BID: bid,
    SHORTNAME_CLAIM: claim,
    SHORTNAME_EXECUTE: execute,
    SHORTNAME_CANCEL: cancel,
}

CALLBACKS: Dict[int, Callable[..., ActionResult]] = {
    SHORTNAME_START_CALLBACK: start_callback,
    SHORTNAME_BID_CALLBACK: bid_callback,
}


def invoke_action(selector: int, ctx: ContractContext, state: AuctionState, *args) -> ActionResult:
    """Dispatch a public action by selector."""
    handler = ACTIONS.get(selector)
    if handler is None:
        if selector in CALLBACKS:
            raise PreconditionViolation(f"Selector 0x{selector:02x} is reserved for callbacks")
        raise PreconditionViolation(f"Unknown action selector 0x{selector:02x}")
    return handler(ctx, state, *args)


def invoke_callback(
    selector: int,
    ctx: ContractContext,
    callback_ctx: CallbackContext,
    state: AuctionState,
    *args,
) -> ActionResult:
    """Dispatch a host-delivered callback by selector."""
    handler = CALLBACKS.get(selector)
    if handler is None:
        raise PreconditionViolation(f"Unknown callback selector 0x{selector:02x}")
    return handler(ctx, callback_ctx, state, *args)
