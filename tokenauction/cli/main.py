"""
Token Auction CLI - run and inspect simulated auctions.

Main entry point for all CLI commands.
"""

import json
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from tokenauction.utils.logger import setup_logging, get_logger


def _echo_json(data: dict) -> None:
    click.echo(json.dumps(data, indent=2))


def _report(result) -> None:
    """Print a human-readable run summary."""
    summary = result.summary()
    click.echo(f"  Status: {summary['status']}")
    highest = summary["highest_bidder"]
    click.echo(f"  Highest bid: {highest['amount']} by {highest['name']}")
    click.echo("")
    click.echo("  Steps:")
    for step in summary["steps"]:
        mark = "✗" if step["unexpected"] else "✓"
        who = f" ({step['caller']})" if step["caller"] else ""
        line = f"    {mark} {step['index']:>2}. {step['action']}{who}"
        if step["error"]:
            line += f" - rejected: {step['error']}"
        for err in step["callback_errors"]:
            line += f" - callback aborted: {err}"
        click.echo(line)
    click.echo("")
    click.echo("  Balances (sale / bidding):")
    for name, bal in summary["balances"].items():
        click.echo(f"    {name:<10} {bal['sale']:>8} / {bal['bidding']:>8}")
    escrow = summary["escrow"]
    click.echo(f"    {'escrow':<10} {escrow['sale']:>8} / {escrow['bidding']:>8}")


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--env-file", default=None, type=click.Path(dir_okay=False), help="Path to a .env file")
@click.version_option(version="0.1.0")
@click.pass_context
def cli(ctx, debug, env_file):
    """Token auction engine - simulate two-token English auctions"""
    import logging
    from tokenauction.core.config import load_config

    config = load_config(env_file)
    level = logging.DEBUG if debug else config.logging_level
    setup_logging(level=level, log_dir=str(config.log_dir), log_to_file=config.log_to_file)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


# =============================================================================
# Demo Command
# =============================================================================


@cli.command("demo")
@click.option("--json", "as_json", is_flag=True, help="Print the summary as JSON")
@click.pass_context
def demo(ctx, as_json):
    """Run a three-bidder auction from start to final claims"""
    from tokenauction.core.scenario import demo_scenario, run_scenario

    result = run_scenario(demo_scenario(ctx.obj["config"]))

    if as_json:
        _echo_json(result.summary())
        return

    click.echo("=" * 60)
    click.echo("  TOKEN AUCTION - DEMO")
    click.echo("=" * 60)
    click.echo("")
    _report(result)
    click.echo("")
    click.echo("✅ Demo complete!" if result.ok else "❌ Demo diverged from script")
    if not result.ok:
        sys.exit(1)


# =============================================================================
# Simulate Command
# =============================================================================


@cli.command("simulate")
@click.argument("scenario_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--dump-state", default=None, type=click.Path(dir_okay=False), help="Write the final auction state as JSON")
@click.option("--json", "as_json", is_flag=True, help="Print the summary as JSON")
def simulate(scenario_file, dump_state, as_json):
    """Replay a JSON scenario file"""
    from tokenauction.core.scenario import load_scenario, run_scenario

    logger = get_logger("cli")

    try:
        scenario = load_scenario(Path(scenario_file))
    except ValidationError as e:
        click.echo(f"❌ Invalid scenario: {e.error_count()} error(s)")
        for err in e.errors():
            loc = ".".join(str(part) for part in err["loc"])
            click.echo(f"   {loc}: {err['msg']}")
        sys.exit(2)
    except json.JSONDecodeError as e:
        click.echo(f"❌ Scenario is not valid JSON: {e}")
        sys.exit(2)

    result = run_scenario(scenario)

    if dump_state:
        Path(dump_state).write_text(json.dumps(result.host.state.to_dict(), indent=2))
        logger.info(f"State written to {dump_state}")

    if as_json:
        _echo_json(result.summary())
    else:
        click.echo(f"Scenario: {scenario_file}")
        click.echo("-" * 40)
        _report(result)

    if not result.ok:
        sys.exit(1)


# =============================================================================
# Inspect Command
# =============================================================================


@cli.command("inspect")
@click.argument("state_file", type=click.Path(exists=True, dir_okay=False))
def inspect_state(state_file):
    """Show a saved auction state"""
    from tokenauction.core.auction import AuctionState

    try:
        state = AuctionState.from_dict(json.loads(Path(state_file).read_text()))
    except (KeyError, ValueError, TypeError, AttributeError) as e:
        click.echo(f"❌ Not an auction state: {e}")
        sys.exit(2)

    bidding_total, sale_total = state.claim_ledger.totals()
    click.echo("Auction State")
    click.echo("-" * 40)
    click.echo(f"  Owner: {state.contract_owner.to_hex()}")
    click.echo(f"  Status: {state.status.name}")
    click.echo(f"  Window: {state.start_time_millis} -> {state.end_time_millis} ms")
    click.echo(f"  For sale: {state.token_amount_for_sale} of {state.token_for_sale.to_hex()}")
    click.echo(f"  Reserve: {state.reserve_price}, increment: {state.min_increment}")
    click.echo(f"  Highest bid: {state.highest_bidder.amount} by {state.highest_bidder.bidder.to_hex()}")
    click.echo(f"  Claims: {len(state.claim_ledger)} entries, "
               f"{bidding_total} bidding / {sale_total} sale outstanding")
    for address, claim in sorted(state.claim_ledger):
        click.echo(f"    {address.to_hex()}: {claim.tokens_for_bidding} / {claim.tokens_for_sale}")


if __name__ == "__main__":
    cli()
