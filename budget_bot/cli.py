"""CLI for the ``budget_bot`` package.

Environment variables (``BOT_TOKEN``, ``OPENAI_API_KEY`` and the ``ACTUAL_*``
settings) are loaded from a local ``.env`` using ``python-dotenv`` before any
command runs. Business logic lives in ``budget_bot.main`` and the wrapper
modules.
"""

from __future__ import annotations

import asyncio
import json
import sys
from typing import Annotated, Any

import typer
from dotenv import find_dotenv, load_dotenv

from .ai_service import OpenAIService
from .config import Settings
from .ledger import ActualBudgetClient
from .logging_setup import configure_logging, get_logger
from .mapping import build_name_map, to_submitted_transaction
from .models import TransactionInput

_logger = get_logger("budget_bot.cli")

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Telegram bot that turns messages and receipt photos into Actual Budget "
        "transactions using OpenAI. Loads settings from a local .env first."
    ),
)


def _load_reference_data(settings: Settings) -> tuple[list[Any], list[Any]]:
    """Fetch accounts and categories, exiting with status 1 on ledger errors."""

    with ActualBudgetClient(settings) as ledger:
        try:
            return ledger.get_accounts(), ledger.get_categories()
        except Exception as e:
            print(f"Error: failed to load ledger reference data: {e}", file=sys.stderr)
            raise typer.Exit(1) from e


@app.callback()
def _main(
    log_level: Annotated[
        str | None,
        typer.Option(help="Logging level (falls back to BUDGET_BOT_LOG_LEVEL, then INFO)."),
    ] = None,
) -> None:
    load_dotenv(find_dotenv(usecwd=True), override=False)
    configure_logging(log_level)


@app.command("run")
def run_cmd() -> None:
    """Start the bot and poll Telegram until SIGINT/SIGTERM."""

    from .main import TransactionBridge
    from .telegram_bot import TelegramBot

    settings = Settings.from_env()
    with ActualBudgetClient(settings) as ledger:
        bridge = TransactionBridge(
            settings,
            ledger=ledger,
            ai_service=OpenAIService(settings.openai_api_key, model=settings.openai_model),
            messenger=TelegramBot(settings.bot_token),
        )
        try:
            bridge.run()
        except Exception as e:
            _logger.exception("cli:run_failed")
            print(f"Error: bot stopped: {e}", file=sys.stderr)
            raise typer.Exit(1) from e


@app.command("parse")
def parse_cmd(
    text: Annotated[str, typer.Argument(help="Transaction description, e.g. 'Coffee $4.50'.")],
    image_url: Annotated[
        str, typer.Option("--image-url", help="Optional receipt image URL.")
    ] = "",
) -> None:
    """Dry run: print the transaction that would be submitted, without writing it."""

    settings = Settings.from_env()
    accounts, categories = _load_reference_data(settings)

    service = OpenAIService(settings.openai_api_key, model=settings.openai_model)
    candidate = asyncio.run(
        service.parse_transaction(
            TransactionInput(text=text, image_url=image_url),
            [str(a.name) for a in accounts],
            [str(c.name) for c in categories],
        )
    )
    if candidate is None:
        print("Error: could not understand the transaction details.", file=sys.stderr)
        raise typer.Exit(1)

    tx = to_submitted_transaction(
        candidate, build_name_map(accounts), build_name_map(categories)
    )
    typer.echo(json.dumps(tx.to_dict(), indent=2, ensure_ascii=False))


@app.command("references")
def references_cmd() -> None:
    """List ledger accounts and categories with their ids."""

    settings = Settings.from_env()
    accounts, categories = _load_reference_data(settings)

    typer.echo("Accounts:")
    for a in accounts:
        typer.echo(f"  {a.name}\t{a.id}")
    typer.echo("Categories:")
    for c in categories:
        typer.echo(f"  {c.name}\t{c.id}")


def main() -> None:  # pragma: no cover - console entry
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
