"""Orchestrator wiring the messaging, language-model and ledger wrappers.

Startup fetches accounts and categories once and keeps two name→id maps for
the process lifetime; a name added to the ledger later resolves only after a
restart. Each message is handled independently: extract input, ask the model,
map the candidate, write it to the ledger, reply.
"""

from __future__ import annotations

import json
import re
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Protocol, TypeAlias

from telegram import Update
from telegram.ext import ContextTypes

from .ai_service import AIService
from .config import Settings
from .logging_setup import get_logger
from .mapping import build_name_map, to_submitted_transaction
from .models import SubmittedTransaction, TransactionInput
from .telegram_bot import file_url

NOT_UNDERSTOOD_MESSAGE = "Sorry, I could not understand the transaction details."
SUCCESS_MESSAGE = "Transaction added successfully!"
FAILURE_MESSAGE = "Failed to add transaction. Please try again."

# Leading "/trx" or "/trx@SomeBot" token of a command message.
_COMMAND_PREFIX = re.compile(r"^/\w+(?:@\w+)?\s*")

Reply: TypeAlias = Callable[[str], Awaitable[Any]]

_logger = get_logger("budget_bot.main")


class Ledger(Protocol):
    def get_accounts(self) -> list[Any]: ...

    def get_categories(self) -> list[Any]: ...

    def add_transactions(
        self, account_id: str, transactions: Sequence[SubmittedTransaction]
    ) -> str: ...


class Messenger(Protocol):
    def command_transaction(self, handler: Any) -> None: ...

    def launch(self) -> None: ...


def format_transaction_echo(tx: SubmittedTransaction) -> str:
    return f"Transaction details: {json.dumps(tx.to_dict(), indent=2, ensure_ascii=False)}"


class TransactionBridge:
    """Per-message glue between the chat, the model and the ledger."""

    def __init__(
        self,
        settings: Settings,
        *,
        ledger: Ledger,
        ai_service: AIService,
        messenger: Messenger,
    ) -> None:
        self._settings = settings
        self._ledger = ledger
        self._ai_service = ai_service
        self._messenger = messenger
        self.account_names: list[str] = []
        self.category_names: list[str] = []
        self.account_ids: dict[str, str] = {}
        self.category_ids: dict[str, str] = {}

    def load_reference_data(self) -> None:
        """Fetch accounts and categories once; ledger errors propagate."""

        accounts = self._ledger.get_accounts()
        categories = self._ledger.get_categories()
        self.account_names = [str(a.name) for a in accounts]
        self.category_names = [str(c.name) for c in categories]
        self.account_ids = build_name_map(accounts)
        self.category_ids = build_name_map(categories)
        _logger.info(
            "bridge:reference_data accounts=%d categories=%d",
            len(self.account_ids),
            len(self.category_ids),
        )

    def start(self) -> None:
        self.load_reference_data()
        self._messenger.command_transaction(self.on_transaction)

    def run(self) -> None:
        self.start()
        self._messenger.launch()

    async def extract_input(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ) -> TransactionInput:
        """Build the model input from a photo (largest size + caption) or text."""

        message = update.effective_message
        if message is None:
            return TransactionInput()
        if message.photo:
            largest = message.photo[-1]
            tg_file = await context.bot.get_file(largest.file_id)
            return TransactionInput(
                text=message.caption or "",
                image_url=file_url(self._settings.bot_token, tg_file.file_path or ""),
            )
        return TransactionInput(text=_COMMAND_PREFIX.sub("", message.text or "", count=1))

    async def handle_input(self, input: TransactionInput, reply: Reply) -> None:
        candidate = await self._ai_service.parse_transaction(
            input, self.account_names, self.category_names
        )
        if candidate is None:
            await reply(NOT_UNDERSTOOD_MESSAGE)
            return

        tx = to_submitted_transaction(candidate, self.account_ids, self.category_ids)
        try:
            # actualpy is synchronous; the download, write and commit block the event loop.
            self._ledger.add_transactions(tx.account, [tx])
        except Exception:  # noqa: BLE001 - any ledger failure becomes the generic reply
            _logger.exception("bridge:add_failed account=%s date=%s", tx.account, tx.date)
            await reply(FAILURE_MESSAGE)
            return

        await reply(format_transaction_echo(tx))
        await reply(SUCCESS_MESSAGE)

    async def on_transaction(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        message = update.effective_message
        if message is None:
            return
        input = await self.extract_input(update, context)
        _logger.info(
            "bridge:message chat_id=%s has_image=%s",
            getattr(update.effective_chat, "id", None),
            bool(input.image_url),
        )
        await self.handle_input(input, message.reply_text)
