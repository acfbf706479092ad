# Simple CLI for Trade Pilot
import asyncio
import functools

import click

from app.main import running_application
from core.trading.models import Credentials, OrderType, TradeOrder
from core.utils.exceptions import ErrorCategory, TradePilotError

_HINTS = {
    ErrorCategory.CREDENTIALS: "check your username and password",
    ErrorCategory.RETRY_LATER: "try again later",
    ErrorCategory.LOGGED_OUT: "you are logged out; run `login`",
    ErrorCategory.REJECTED: "the service rejected the order",
    ErrorCategory.INVALID_INPUT: "fix the input and try again",
    ErrorCategory.FATAL: "unexpected failure",
}


def run_async(func):
    """Run an async command body, turning core errors into CLI errors."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return asyncio.run(func(*args, **kwargs))
        except TradePilotError as e:
            raise click.ClickException(f"{e.message} ({_HINTS[e.category]})") from e
    return wrapper


@click.group()
def cli():
    """Trade Pilot CLI"""
    pass


@cli.command()
@click.option("--username", prompt=True)
@click.option("--password", prompt=True, hide_input=True)
@run_async
async def login(username, password):
    """Log in and store the session token"""
    async with running_application() as orchestrator:
        session = await orchestrator.login(Credentials(username=username, password=password))
        click.echo(f"Logged in as {session.display_name}")


@cli.command()
@run_async
async def logout():
    """Log out and forget the stored token"""
    async with running_application() as orchestrator:
        if await orchestrator.logout():
            click.echo("Logged out")
        else:
            click.echo("Already logged out")


@cli.command()
@run_async
async def status():
    """Show the current session state"""
    async with running_application() as orchestrator:
        session = orchestrator.current_session
        if session is None:
            click.echo("logged_out")
        elif session.provisional:
            click.echo("logged_in (restored session)")
        else:
            click.echo(f"logged_in as {session.display_name}")


@cli.command(name="market-data")
@run_async
async def market_data():
    """Print the current market quotes"""
    async with running_application() as orchestrator:
        for quote in await orchestrator.fetch_market_data():
            click.echo(f"{quote.sequence_index}\t{quote.price}")


@cli.command()
@run_async
async def predict():
    """Fetch market data and run the model on it"""
    async with running_application() as orchestrator:
        forecast = await orchestrator.fetch_and_predict()
        click.echo(f"quotes: {len(forecast.quotes)}")
        click.echo("prediction: " + ", ".join(f"{v:.6g}" for v in forecast.prediction.values))


@cli.command()
@click.argument("symbol")
@click.argument("quantity", type=float)
@click.option("--order-type", type=click.Choice([t.value for t in OrderType]),
              default=OrderType.MARKET.value, show_default=True)
@run_async
async def trade(symbol, quantity, order_type):
    """Submit a single order (never retried)"""
    order = TradeOrder(symbol=symbol, quantity=quantity, order_type=OrderType(order_type))
    async with running_application() as orchestrator:
        result = await orchestrator.place_trade(order)
        click.echo(f"Order accepted (HTTP {result.status_code})")


if __name__ == "__main__":
    cli()
