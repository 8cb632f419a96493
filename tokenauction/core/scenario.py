"""
Scenario - scripted auction runs on a LocalHost.

A scenario names participants, their starting balances, the auction
parameters and an ordered list of steps. Scenario files are JSON validated
with pydantic; the demo scenario is built in code from EngineConfig.

Example file:
    {
      "owner": "owner",
      "params": {"token_amount_for_sale": 1000, "reserve_price": 50,
                 "min_increment": 5, "auction_duration_hours": 24},
      "participants": [
        {"name": "owner", "sale_balance": 1000},
        {"name": "alice", "bidding_balance": 100}
      ],
      "steps": [
        {"action": "approve", "caller": "owner", "token": "sale", "amount": 1000},
        {"action": "start", "caller": "owner"},
        {"action": "approve", "caller": "alice", "token": "bidding", "amount": 60},
        {"action": "bid", "caller": "alice", "amount": 60},
        {"action": "advance", "hours": 24},
        {"action": "execute", "caller": "alice"}
      ]
    }
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from tokenauction.core.address import Address, account_address
from tokenauction.core.config import EngineConfig
from tokenauction.core.errors import AuctionError
from tokenauction.core.host import Delivery, LocalHost, TokenContract
from tokenauction.crypto import keypair_from_seed
from tokenauction.utils.logger import get_logger
from tokenauction.utils.validation import MAX_DURATION_HOURS, MIN_DURATION_HOURS, U128_MAX

logger = get_logger("scenario")

SALE_SYMBOL = "SALE"
BIDDING_SYMBOL = "BID"

ACTIONS_WITH_CALLER = {"approve", "start", "bid", "claim", "execute", "cancel"}


# =============================================================================
# Schema
# =============================================================================


class ScenarioParams(BaseModel):
    """Construction parameters of the auction."""
    model_config = ConfigDict(extra="forbid")

    token_amount_for_sale: int = Field(ge=0, le=U128_MAX)
    reserve_price: int = Field(ge=0, le=U128_MAX)
    min_increment: int = Field(ge=0, le=U128_MAX)
    auction_duration_hours: int = Field(ge=MIN_DURATION_HOURS, le=MAX_DURATION_HOURS)


class Participant(BaseModel):
    """A named account and its starting balances."""
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, max_length=64)
    sale_balance: int = Field(default=0, ge=0, le=U128_MAX)
    bidding_balance: int = Field(default=0, ge=0, le=U128_MAX)


class Step(BaseModel):
    """One scripted action, time advance, or queue drain."""
    model_config = ConfigDict(extra="forbid")

    action: Literal["approve", "start", "bid", "claim", "execute", "cancel", "advance", "process"]
    caller: Optional[str] = None
    amount: Optional[int] = Field(default=None, ge=0, le=U128_MAX)
    token: Optional[Literal["sale", "bidding"]] = None
    hours: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    expect_error: bool = False

    @model_validator(mode="after")
    def _check_arguments(self) -> "Step":
        if self.action in ACTIONS_WITH_CALLER and not self.caller:
            raise ValueError(f"'{self.action}' needs a caller")
        if self.action in ("bid", "approve") and self.amount is None:
            raise ValueError(f"'{self.action}' needs an amount")
        if self.action == "approve" and self.token is None:
            raise ValueError("'approve' needs a token ('sale' or 'bidding')")
        if self.action == "advance" and self.hours is None:
            raise ValueError("'advance' needs hours")
        return self


class Scenario(BaseModel):
    """A complete scripted auction."""
    model_config = ConfigDict(extra="forbid")

    owner: str
    params: ScenarioParams
    participants: List[Participant]
    steps: List[Step] = Field(default_factory=list)
    auto_process: bool = True

    @model_validator(mode="after")
    def _check_names(self) -> "Scenario":
        names = [p.name for p in self.participants]
        if len(names) != len(set(names)):
            raise ValueError("participant names must be unique")
        if self.owner not in names:
            raise ValueError(f"owner '{self.owner}' is not a participant")
        for i, step in enumerate(self.steps):
            if step.caller is not None and step.caller not in names:
                raise ValueError(f"step {i}: unknown caller '{step.caller}'")
        return self


def load_scenario(path: Path) -> Scenario:
    """Read and validate a scenario file (raises pydantic.ValidationError)."""
    return Scenario.model_validate(json.loads(Path(path).read_text()))


def participant_address(name: str) -> Address:
    """Deterministic account address for a participant name."""
    return account_address(keypair_from_seed(name).public_key)


# =============================================================================
# Runner
# =============================================================================


@dataclass
class StepOutcome:
    """What happened for one step."""
    index: int
    step: Step
    error: Optional[str] = None
    deliveries: List[Delivery] = field(default_factory=list)

    @property
    def callback_errors(self) -> List[str]:
        return [str(d.error) for d in self.deliveries if d.error is not None]

    @property
    def unexpected(self) -> bool:
        failed = self.error is not None or bool(self.callback_errors)
        return failed != self.step.expect_error


@dataclass
class ScenarioResult:
    """Final host plus per-step outcomes."""
    host: LocalHost
    addresses: Dict[str, Address]
    sale_token: TokenContract
    bidding_token: TokenContract
    outcomes: List[StepOutcome] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not any(o.unexpected for o in self.outcomes)

    def name_of(self, address: Address) -> str:
        for name, addr in self.addresses.items():
            if addr == address:
                return name
        return address.short()

    def summary(self) -> dict:
        """JSON-friendly report keyed by participant name."""
        state = self.host.state
        return {
            "status": state.status.name,
            "highest_bidder": {
                "name": self.name_of(state.highest_bidder.bidder),
                "amount": state.highest_bidder.amount,
            },
            "claims": {
                self.name_of(address): claim.to_dict()
                for address, claim in sorted(state.claim_ledger)
            },
            "balances": {
                name: {
                    "sale": self.sale_token.balance_of(address),
                    "bidding": self.bidding_token.balance_of(address),
                }
                for name, address in self.addresses.items()
            },
            "escrow": {
                "sale": self.sale_token.balance_of(self.host.contract_address),
                "bidding": self.bidding_token.balance_of(self.host.contract_address),
            },
            "steps": [
                {
                    "index": o.index,
                    "action": o.step.action,
                    "caller": o.step.caller,
                    "error": o.error,
                    "callback_errors": o.callback_errors,
                    "unexpected": o.unexpected,
                }
                for o in self.outcomes
            ],
        }


def _run_step(result: ScenarioResult, step: Step) -> Optional[str]:
    host = result.host
    if step.action == "advance":
        host.advance_hours(step.hours)
        return None
    if step.action == "process":
        return None

    caller = result.addresses[step.caller]
    if step.action == "approve":
        token = result.sale_token if step.token == "sale" else result.bidding_token
        token.approve(caller, host.contract_address, step.amount)
        return None

    try:
        if step.action == "start":
            host.start(caller)
        elif step.action == "bid":
            host.bid(caller, step.amount)
        elif step.action == "claim":
            host.claim(caller)
        elif step.action == "execute":
            host.execute(caller)
        elif step.action == "cancel":
            host.cancel(caller)
    except AuctionError as e:
        return str(e)
    return None


def run_scenario(scenario: Scenario) -> ScenarioResult:
    """Deploy tokens and the auction on a fresh LocalHost and play every step."""
    host = LocalHost()
    sale_token = host.deploy_token(SALE_SYMBOL)
    bidding_token = host.deploy_token(BIDDING_SYMBOL)

    addresses = {p.name: participant_address(p.name) for p in scenario.participants}
    for p in scenario.participants:
        sale_token.mint(addresses[p.name], p.sale_balance)
        bidding_token.mint(addresses[p.name], p.bidding_balance)

    params = scenario.params
    host.deploy_auction(
        addresses[scenario.owner],
        token_amount_for_sale=params.token_amount_for_sale,
        token_for_sale=sale_token.address,
        token_for_bidding=bidding_token.address,
        reserve_price=params.reserve_price,
        min_increment=params.min_increment,
        auction_duration_hours=params.auction_duration_hours,
    )

    result = ScenarioResult(
        host=host,
        addresses=addresses,
        sale_token=sale_token,
        bidding_token=bidding_token,
    )

    for i, step in enumerate(scenario.steps):
        outcome = StepOutcome(index=i, step=step)
        outcome.error = _run_step(result, step)
        if scenario.auto_process or step.action == "process":
            outcome.deliveries = host.process_pending()
        result.outcomes.append(outcome)
        if outcome.unexpected:
            logger.warning(f"Step {i} ({step.action}) did not go as scripted")

    return result


def demo_scenario(config: Optional[EngineConfig] = None) -> Scenario:
    """
    Three bidders, one outbid refund, one too-small raise, settlement, claims.

    With default config: A bids 60 and leads, B's 63 is under 60 + 5 and is
    refunded, C's 70 takes the lead and refunds A. After the end time the
    owner receives 70 bidding tokens and C the 1000 sale tokens.
    """
    config = config or EngineConfig()
    sale = config.token_amount_for_sale
    hours = config.auction_duration_hours
    balance = config.demo_bidder_balance

    steps = [
        {"action": "approve", "caller": "owner", "token": "sale", "amount": sale},
        {"action": "start", "caller": "owner"},
    ]
    for name, amount in (("alice", 60), ("bob", 63), ("carol", 70)):
        steps.append({"action": "approve", "caller": name, "token": "bidding", "amount": amount})
        steps.append({"action": "bid", "caller": name, "amount": amount})
    steps += [
        {"action": "advance", "hours": hours},
        {"action": "execute", "caller": "bob"},
        {"action": "claim", "caller": "alice"},
        {"action": "claim", "caller": "bob"},
        {"action": "claim", "caller": "owner"},
        {"action": "claim", "caller": "carol"},
    ]

    return Scenario.model_validate({
        "owner": "owner",
        "params": {
            "token_amount_for_sale": sale,
            "reserve_price": config.reserve_price,
            "min_increment": config.min_increment,
            "auction_duration_hours": hours,
        },
        "participants": [
            {"name": "owner", "sale_balance": config.demo_owner_balance},
            {"name": "alice", "bidding_balance": balance},
            {"name": "bob", "bidding_balance": balance},
            {"name": "carol", "bidding_balance": balance},
        ],
        "steps": steps,
    })
