"""
Unit tests for scenario files and the scenario runner.
"""

import json

import pytest
from pydantic import ValidationError

from tokenauction.core.auction import AuctionStatus
from tokenauction.core.config import EngineConfig
from tokenauction.core.scenario import (
    Scenario,
    Step,
    demo_scenario,
    load_scenario,
    participant_address,
    run_scenario,
)


def base_scenario(**overrides):
    data = {
        "owner": "owner",
        "params": {
            "token_amount_for_sale": 100,
            "reserve_price": 10,
            "min_increment": 1,
            "auction_duration_hours": 1,
        },
        "participants": [
            {"name": "owner", "sale_balance": 100},
            {"name": "alice", "bidding_balance": 50},
        ],
        "steps": [],
    }
    data.update(overrides)
    return data


# =============================================================================
# Schema
# =============================================================================


class TestSchema:
    """Tests for pydantic validation of scenario files."""

    def test_minimal_scenario(self):
        scenario = Scenario.model_validate(base_scenario())
        assert scenario.auto_process
        assert scenario.steps == []

    def test_owner_must_be_participant(self):
        with pytest.raises(ValidationError, match="not a participant"):
            Scenario.model_validate(base_scenario(owner="mallory"))

    def test_duplicate_names_rejected(self):
        participants = [{"name": "owner"}, {"name": "owner"}]
        with pytest.raises(ValidationError, match="unique"):
            Scenario.model_validate(base_scenario(participants=participants))

    def test_unknown_caller_rejected(self):
        steps = [{"action": "bid", "caller": "mallory", "amount": 5}]
        with pytest.raises(ValidationError, match="unknown caller"):
            Scenario.model_validate(base_scenario(steps=steps))

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            Scenario.model_validate(base_scenario(currency="EUR"))

    def test_duration_bounds(self):
        data = base_scenario()
        data["params"]["auction_duration_hours"] = 0
        with pytest.raises(ValidationError):
            Scenario.model_validate(data)

    @pytest.mark.parametrize("step", [
        {"action": "bid", "caller": "alice"},
        {"action": "approve", "caller": "alice", "amount": 5},
        {"action": "advance"},
        {"action": "claim"},
        {"action": "refund", "caller": "alice"},
        {"action": "bid", "caller": "alice", "amount": -1},
        {"action": "advance", "hours": float("inf")},
        {"action": "advance", "hours": float("nan")},
    ])
    def test_invalid_steps(self, step):
        with pytest.raises(ValidationError):
            Step.model_validate(step)

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "scenario.json"
        path.write_text(json.dumps(base_scenario()))
        assert load_scenario(path).owner == "owner"


# =============================================================================
# Runner
# =============================================================================


class TestRunner:
    """Tests for run_scenario."""

    def test_participant_addresses_are_stable(self):
        assert participant_address("alice") == participant_address("alice")
        assert participant_address("alice") != participant_address("bob")

    def test_balances_are_minted(self):
        result = run_scenario(Scenario.model_validate(base_scenario()))
        assert result.sale_token.balance_of(result.addresses["owner"]) == 100
        assert result.bidding_token.balance_of(result.addresses["alice"]) == 50
        assert result.host.state.status == AuctionStatus.CREATION
        assert result.ok

    def test_expected_error_is_ok(self):
        steps = [{"action": "start", "caller": "alice", "expect_error": True}]
        result = run_scenario(Scenario.model_validate(base_scenario(steps=steps)))
        assert result.outcomes[0].error is not None
        assert result.ok

    def test_unexpected_error_is_reported(self):
        steps = [{"action": "execute", "caller": "alice"}]
        result = run_scenario(Scenario.model_validate(base_scenario(steps=steps)))
        assert "before auction end" in result.outcomes[0].error
        assert not result.ok
        assert result.summary()["steps"][0]["unexpected"]

    def test_denied_callback_counts_as_failure(self):
        """Start without approval fails in the callback."""
        steps = [{"action": "start", "caller": "owner"}]
        result = run_scenario(Scenario.model_validate(base_scenario(steps=steps)))
        assert result.outcomes[0].error is None
        assert result.outcomes[0].callback_errors
        assert not result.ok

    def test_manual_processing(self):
        """With auto_process off, groups wait for a process step."""
        steps = [
            {"action": "approve", "caller": "owner", "token": "sale", "amount": 100},
            {"action": "start", "caller": "owner"},
        ]
        scenario = Scenario.model_validate(base_scenario(steps=steps, auto_process=False))
        result = run_scenario(scenario)
        assert result.host.state.status == AuctionStatus.CREATION
        assert len(result.host.pending) == 1

        scenario.steps.append(Step(action="process"))
        result = run_scenario(scenario)
        assert result.host.state.status == AuctionStatus.BIDDING

    def test_demo_scenario(self):
        result = run_scenario(demo_scenario(EngineConfig()))
        summary = result.summary()

        assert result.ok
        assert summary["status"] == "ENDED"
        assert summary["highest_bidder"] == {"name": "carol", "amount": 70}
        assert summary["escrow"] == {"sale": 0, "bidding": 0}
        assert summary["balances"]["carol"] == {"sale": 1000, "bidding": 430}
        assert summary["balances"]["owner"] == {"sale": 0, "bidding": 70}
        assert summary["balances"]["alice"]["bidding"] == 500
        assert summary["balances"]["bob"]["bidding"] == 500


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
