"""
Local Host - in-memory execution environment for one auction instance.

The auction core never moves tokens and never persists itself. Something
has to:

1. Supply the invocation context (sender, time, contract address)
2. Commit the returned state, or drop it if the invocation raised
3. Execute emitted event groups against the token contracts
4. Deliver each bound callback with the verdict, in emission order

LocalHost does all four in memory. It is the gateway used by the test-suite
and the CLI simulator.

Delivery Semantics:
------------------
- Event groups queue FIFO and run only when process_pending() is called,
  so several requests can be in flight at once.
- Calls in a group run in order; after the first failing call the rest of
  the group is skipped. Transfers that already succeeded stay applied.
- The callback runs once, after its group, with success only if every call
  succeeded. If the callback raises, its state change is discarded.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional, Tuple

from tokenauction.core.address import Address, AddressType, contract_address
from tokenauction.core.auction import (
    ActionResult,
    AuctionState,
    MILLIS_PER_HOUR,
    SHORTNAME_BID,
    SHORTNAME_CANCEL,
    SHORTNAME_CLAIM,
    SHORTNAME_EXECUTE,
    SHORTNAME_START,
    initialize,
    invoke_action,
    invoke_callback,
)
from tokenauction.core.context import CallbackContext, ContractContext
from tokenauction.core.errors import AuctionError
from tokenauction.core.transfer import (
    ContractCall,
    EventGroup,
    TOKEN_TRANSFER,
    TOKEN_TRANSFER_FROM,
)
from tokenauction.crypto import bytes_to_hex, generate_keypair
from tokenauction.utils.logger import get_logger

logger = get_logger("host")

HOST_OPERATOR = Address(AddressType.SYSTEM_CONTRACT, bytes(20))


# =============================================================================
# Token Contract
# =============================================================================


class TokenContract:
    """
    Minimal fungible token: balances plus allowances.

    Attributes:
        address: Contract address
        symbol: Display symbol
        balances: owner -> amount
        allowances: (owner, spender) -> amount
    """

    def __init__(self, address: Address, symbol: str):
        self.address = address
        self.symbol = symbol
        self.balances: Dict[Address, int] = {}
        self.allowances: Dict[Tuple[Address, Address], int] = {}

    def balance_of(self, owner: Address) -> int:
        return self.balances.get(owner, 0)

    def allowance(self, owner: Address, spender: Address) -> int:
        return self.allowances.get((owner, spender), 0)

    @property
    def total_supply(self) -> int:
        return sum(self.balances.values())

    def mint(self, owner: Address, amount: int) -> None:
        self.balances[owner] = self.balance_of(owner) + amount

    def approve(self, owner: Address, spender: Address, amount: int) -> None:
        self.allowances[(owner, spender)] = amount

    def _move(self, source: Address, destination: Address, amount: int) -> bool:
        if amount < 0 or self.balance_of(source) < amount:
            return False
        self.balances[source] = self.balance_of(source) - amount
        self.balances[destination] = self.balance_of(destination) + amount
        return True

    def transfer(self, sender: Address, to: Address, amount: int) -> bool:
        """Move `amount` from the calling contract/account to `to`."""
        return self._move(sender, to, amount)

    def transfer_from(self, spender: Address, source: Address, to: Address, amount: int) -> bool:
        """Move `amount` from `source` to `to` on behalf of `spender`."""
        if self.allowance(source, spender) < amount:
            return False
        if not self._move(source, to, amount):
            return False
        self.allowances[(source, spender)] -= amount
        return True

    def __repr__(self) -> str:
        return f"TokenContract({self.symbol}, holders={len(self.balances)})"


# =============================================================================
# Records
# =============================================================================


@dataclass
class PendingGroup:
    """An emitted event group awaiting execution."""
    group: EventGroup
    origin: Address          # Sender of the action that emitted it
    emitted_at: int


@dataclass
class Delivery:
    """Outcome of executing one event group."""
    group: EventGroup
    verdict: CallbackContext
    error: Optional[AuctionError] = None

    @property
    def committed(self) -> bool:
        return self.error is None


@dataclass
class InvocationRecord:
    """One action attempt, for inspection and CLI output."""
    selector: int
    sender: Address
    block_time: int
    events: int = 0
    error: Optional[str] = None


# =============================================================================
# Local Host
# =============================================================================


class LocalHost:
    """
    In-memory host for a single auction contract.

    Attributes:
        block_time: Current logical time in milliseconds
        contract_address: Address of the auction contract
        tokens: Deployed token contracts by address
        state: Last committed auction state (None before deployment)
        pending: Event groups waiting for process_pending()
        history: Every action attempt, committed or not
    """

    def __init__(self, block_time: int = 0, label: str = "auction"):
        self.block_time = block_time
        self.contract_address = contract_address(HOST_OPERATOR, label)
        self.tokens: Dict[Address, TokenContract] = {}
        self.state: Optional[AuctionState] = None
        self.pending: Deque[PendingGroup] = deque()
        self.history: List[InvocationRecord] = []

    # =========================================================================
    # Environment
    # =========================================================================

    def deploy_token(self, symbol: str) -> TokenContract:
        """Deploy a public token contract."""
        token = TokenContract(contract_address(HOST_OPERATOR, f"token:{symbol}"), symbol)
        self.tokens[token.address] = token
        logger.debug(f"Token deployed: {symbol} at {token.address.short()}")
        return token

    def token(self, address: Address) -> TokenContract:
        return self.tokens[address]

    def new_account(self) -> Address:
        """Fresh account address backed by a random secp256k1 keypair."""
        keypair = generate_keypair()
        return Address(AddressType.ACCOUNT, keypair.identifier)

    def advance_time(self, millis: int) -> int:
        if millis < 0:
            raise ValueError("Time cannot move backwards")
        self.block_time += millis
        return self.block_time

    def advance_hours(self, hours: float) -> int:
        return self.advance_time(int(hours * MILLIS_PER_HOUR))

    def context(self, sender: Address) -> ContractContext:
        return ContractContext(
            sender=sender,
            block_time=self.block_time,
            contract_address=self.contract_address,
        )

    # =========================================================================
    # Deployment and Actions
    # =========================================================================

    def deploy_auction(
        self,
        sender: Address,
        token_amount_for_sale: int,
        token_for_sale: Address,
        token_for_bidding: Address,
        reserve_price: int,
        min_increment: int,
        auction_duration_hours: int,
    ) -> AuctionState:
        """Run initialize and commit the resulting state."""
        if self.state is not None:
            raise RuntimeError("Auction already deployed on this host")

        result = initialize(
            self.context(sender),
            token_amount_for_sale,
            token_for_sale,
            token_for_bidding,
            reserve_price,
            min_increment,
            auction_duration_hours,
        )
        self.state = result.state
        return self.state

    def invoke(self, selector: int, sender: Address, *args) -> ActionResult:
        """
        Run one action. Commits state and queues events only on success.

        Raises:
            AuctionError: propagated from the action; nothing is committed
        """
        if self.state is None:
            raise RuntimeError("No auction deployed")

        record = InvocationRecord(selector=selector, sender=sender, block_time=self.block_time)
        self.history.append(record)

        try:
            result = invoke_action(selector, self.context(sender), self.state, *args)
        except AuctionError as e:
            record.error = str(e)
            logger.warning(f"Action 0x{selector:02x} by {sender.short()} rejected: {e}")
            raise

        self.state = result.state
        for group in result.events:
            self.pending.append(PendingGroup(group=group, origin=sender, emitted_at=self.block_time))
        record.events = len(result.events)
        return result

    def start(self, sender: Address) -> ActionResult:
        return self.invoke(SHORTNAME_START, sender)

    def bid(self, sender: Address, amount: int) -> ActionResult:
        return self.invoke(SHORTNAME_BID, sender, amount)

    def claim(self, sender: Address) -> ActionResult:
        return self.invoke(SHORTNAME_CLAIM, sender)

    def execute(self, sender: Address) -> ActionResult:
        return self.invoke(SHORTNAME_EXECUTE, sender)

    def cancel(self, sender: Address) -> ActionResult:
        return self.invoke(SHORTNAME_CANCEL, sender)

    # =========================================================================
    # Event Processing
    # =========================================================================

    def _execute_call(self, call: ContractCall) -> bool:
        token = self.tokens.get(call.target)
        if token is None:
            logger.warning(f"Call to unknown contract {call.target.short()}")
            return False

        if call.shortname == TOKEN_TRANSFER:
            to, amount = call.arguments
            return token.transfer(self.contract_address, to, amount)
        if call.shortname == TOKEN_TRANSFER_FROM:
            source, to, amount = call.arguments
            return token.transfer_from(self.contract_address, source, to, amount)

        logger.warning(f"Unsupported token shortname 0x{call.shortname:02x}")
        return False

    def _run_group(self, group: EventGroup) -> CallbackContext:
        results: List[bool] = []
        for call in group.calls:
            ok = self._execute_call(call)
            results.append(ok)
            if not ok:
                token = self.tokens.get(call.target)
                symbol = token.symbol if token else call.target.short()
                logger.warning(f"{call.name} of {call.arguments[-1]} {symbol} failed")
                break
        # Skipped calls count as failed
        results.extend([False] * (len(group.calls) - len(results)))
        return CallbackContext.from_results(results)

    def process_next(self) -> Optional[Delivery]:
        """Execute the oldest pending group and deliver its callback."""
        if not self.pending:
            return None

        pending = self.pending.popleft()
        group = pending.group
        verdict = self._run_group(group)
        delivery = Delivery(group=group, verdict=verdict)

        if group.callback is None:
            return delivery

        ctx = self.context(pending.origin)
        try:
            result = invoke_callback(
                group.callback.shortname,
                ctx,
                verdict,
                self.state,
                *group.callback.arguments,
            )
        except AuctionError as e:
            delivery.error = e
            logger.warning(f"Callback {type(group.callback).__name__} aborted: {e}")
            return delivery

        self.state = result.state
        for follow_up in result.events:
            self.pending.append(PendingGroup(group=follow_up, origin=pending.origin, emitted_at=self.block_time))
        return delivery

    def process_pending(self) -> List[Delivery]:
        """Drain the queue in FIFO order."""
        deliveries = []
        while self.pending:
            deliveries.append(self.process_next())
        return deliveries

    # =========================================================================
    # Inspection
    # =========================================================================

    def balances(self, owner: Address) -> Dict[str, int]:
        """Balance of `owner` in every deployed token, by symbol."""
        return {token.symbol: token.balance_of(owner) for token in self.tokens.values()}

    def stats(self) -> dict:
        return {
            "block_time": self.block_time,
            "contract": bytes_to_hex(self.contract_address.to_bytes()),
            "status": self.state.status.name if self.state else None,
            "pending_groups": len(self.pending),
            "invocations": len(self.history),
            "rejected": sum(1 for r in self.history if r.error),
        }
