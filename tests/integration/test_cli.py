"""
Integration Tests - command line interface.

Tests verify:
1. demo runs the scripted auction to completion
2. simulate replays scenario files and dumps state
3. inspect reads dumped state back
4. invalid input exits with status 2
"""

import json

import pytest
from click.testing import CliRunner

from tokenauction.cli.main import cli
from tokenauction.utils.logger import setup_logging

QUIET = {"TOKENAUCTION_LOG_LEVEL": "ERROR", "TOKENAUCTION_LOG_TO_FILE": "false"}


@pytest.fixture
def runner():
    yield CliRunner()
    # Handlers created inside the runner point at its captured streams
    setup_logging()


def scenario_data():
    return {
        "owner": "owner",
        "params": {
            "token_amount_for_sale": 500,
            "reserve_price": 20,
            "min_increment": 2,
            "auction_duration_hours": 3,
        },
        "participants": [
            {"name": "owner", "sale_balance": 500},
            {"name": "alice", "bidding_balance": 100},
            {"name": "bob", "bidding_balance": 100},
        ],
        "steps": [
            {"action": "approve", "caller": "owner", "token": "sale", "amount": 500},
            {"action": "start", "caller": "owner"},
            {"action": "approve", "caller": "alice", "token": "bidding", "amount": 30},
            {"action": "bid", "caller": "alice", "amount": 30},
            {"action": "approve", "caller": "bob", "token": "bidding", "amount": 31},
            {"action": "bid", "caller": "bob", "amount": 31},
            {"action": "execute", "caller": "bob", "expect_error": True},
            {"action": "advance", "hours": 3},
            {"action": "execute", "caller": "bob"},
        ],
    }


@pytest.fixture
def scenario_file(tmp_path):
    path = tmp_path / "scenario.json"
    path.write_text(json.dumps(scenario_data()))
    return path


class TestDemo:
    """Tests for the demo command."""

    def test_demo_text(self, runner):
        result = runner.invoke(cli, ["demo"], env=QUIET)
        assert result.exit_code == 0, result.output
        assert "Status: ENDED" in result.output
        assert "Highest bid: 70 by carol" in result.output
        assert "Demo complete" in result.output

    def test_demo_json(self, runner):
        result = runner.invoke(cli, ["demo", "--json"], env=QUIET)
        assert result.exit_code == 0, result.output
        summary = json.loads(result.output)
        assert summary["status"] == "ENDED"
        assert summary["escrow"] == {"sale": 0, "bidding": 0}
        assert summary["balances"]["carol"]["sale"] == 1000

    def test_demo_uses_environment(self, runner):
        """A reserve above every bid leaves the owner with the sale tokens."""
        env = dict(QUIET, TOKENAUCTION_RESERVE_PRICE="100")
        result = runner.invoke(cli, ["demo", "--json"], env=env)
        summary = json.loads(result.output)
        assert summary["highest_bidder"] == {"name": "owner", "amount": 0}
        assert summary["balances"]["owner"]["sale"] == 1000


class TestSimulate:
    """Tests for the simulate and inspect commands."""

    def test_simulate_and_inspect(self, runner, scenario_file, tmp_path):
        state_file = tmp_path / "state.json"
        result = runner.invoke(
            cli, ["simulate", str(scenario_file), "--dump-state", str(state_file)], env=QUIET
        )
        assert result.exit_code == 0, result.output
        assert "Highest bid: 30 by alice" in result.output
        assert "rejected" in result.output

        dumped = json.loads(state_file.read_text())
        assert dumped["status"] == "ENDED"

        result = runner.invoke(cli, ["inspect", str(state_file)], env=QUIET)
        assert result.exit_code == 0, result.output
        assert "Status: ENDED" in result.output
        assert "Highest bid: 30" in result.output

    def test_simulate_json(self, runner, scenario_file):
        result = runner.invoke(cli, ["simulate", str(scenario_file), "--json"], env=QUIET)
        summary = json.loads(result.output)
        assert summary["claims"]["bob"] == {"tokens_for_bidding": 31, "tokens_for_sale": 0}
        assert summary["claims"]["alice"] == {"tokens_for_bidding": 0, "tokens_for_sale": 500}

    def test_unscripted_failure_exits_1(self, runner, tmp_path):
        data = scenario_data()
        data["steps"][6]["expect_error"] = False
        path = tmp_path / "bad_run.json"
        path.write_text(json.dumps(data))
        result = runner.invoke(cli, ["simulate", str(path)], env=QUIET)
        assert result.exit_code == 1

    def test_invalid_scenario_exits_2(self, runner, tmp_path):
        data = scenario_data()
        data["owner"] = "mallory"
        path = tmp_path / "invalid.json"
        path.write_text(json.dumps(data))
        result = runner.invoke(cli, ["simulate", str(path)], env=QUIET)
        assert result.exit_code == 2
        assert "Invalid scenario" in result.output

    def test_malformed_json_exits_2(self, runner, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        result = runner.invoke(cli, ["simulate", str(path)], env=QUIET)
        assert result.exit_code == 2

    def test_infinite_advance_exits_2(self, runner, tmp_path):
        """JSON Infinity is parsed but rejected by the schema."""
        path = tmp_path / "forever.json"
        text = json.dumps(scenario_data()).replace('"hours": 3', '"hours": Infinity')
        path.write_text(text)
        result = runner.invoke(cli, ["simulate", str(path)], env=QUIET)
        assert result.exit_code == 2
        assert "Invalid scenario" in result.output

    def test_inspect_rejects_foreign_file(self, runner, tmp_path):
        path = tmp_path / "other.json"
        path.write_text(json.dumps({"hello": "world"}))
        result = runner.invoke(cli, ["inspect", str(path)], env=QUIET)
        assert result.exit_code == 2

    @pytest.mark.parametrize("mutate", [
        lambda state: [state],
        lambda state: dict(state, highest_bidder="alice"),
        lambda state: dict(state, contract_owner=42),
    ])
    def test_inspect_rejects_malformed_state(self, runner, scenario_file, tmp_path, mutate):
        """Wrongly shaped snapshots exit 2 instead of a traceback."""
        state_file = tmp_path / "state.json"
        runner.invoke(cli, ["simulate", str(scenario_file), "--dump-state", str(state_file)], env=QUIET)
        state = json.loads(state_file.read_text())
        state_file.write_text(json.dumps(mutate(state)))

        result = runner.invoke(cli, ["inspect", str(state_file)], env=QUIET)
        assert result.exit_code == 2
        assert "Not an auction state" in result.output

    def test_inspect_totals_beyond_u128(self, runner, scenario_file, tmp_path):
        """Outstanding totals may exceed u128 when every entry fits."""
        state_file = tmp_path / "state.json"
        runner.invoke(cli, ["simulate", str(scenario_file), "--dump-state", str(state_file)], env=QUIET)
        state = json.loads(state_file.read_text())
        for claim in state["claim_ledger"].values():
            claim["tokens_for_bidding"] = 2**128 - 1
        state_file.write_text(json.dumps(state))

        result = runner.invoke(cli, ["inspect", str(state_file)], env=QUIET)
        assert result.exit_code == 0, result.output
        assert "outstanding" in result.output


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
