"""Messaging client wrapper around ``python-telegram-bot``.

The SDK owns the connection lifecycle. This wrapper only registers the
transaction handler (``/trx`` command and photo messages) and starts polling
with SIGINT/SIGTERM as stop signals.
"""

from __future__ import annotations

import signal
from collections.abc import Awaitable, Callable
from typing import Any, TypeAlias

from telegram import Bot, Update
from telegram.ext import Application, CommandHandler, ContextTypes, MessageHandler, filters

from .logging_setup import get_logger

TRANSACTION_COMMAND = "trx"
TELEGRAM_FILE_BASE_URL = "https://api.telegram.org/file/bot"

_NEW_MESSAGES = ~filters.UpdateType.EDITED

TransactionHandler: TypeAlias = Callable[[Update, ContextTypes.DEFAULT_TYPE], Awaitable[Any]]

_logger = get_logger("budget_bot.telegram_bot")


def file_url(bot_token: str, file_path: str) -> str:
    """Return a downloadable URL for a Telegram ``File.file_path``.

    Recent SDK versions already return an absolute URL, which is kept as is.
    """

    if file_path.startswith(("http://", "https://")):
        return file_path
    return f"{TELEGRAM_FILE_BASE_URL}{bot_token}/{file_path.lstrip('/')}"


async def _log_handler_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    _logger.error("telegram:handler_error", exc_info=context.error)


class TelegramBot:
    """Registration and lifecycle for the Telegram side of the bridge."""

    def __init__(self, bot_token: str, *, application: Application | None = None) -> None:
        self._application = application or Application.builder().token(bot_token).build()
        self._application.add_error_handler(_log_handler_error)

    def command_transaction(self, handler: TransactionHandler) -> None:
        """Invoke ``handler`` for new ``/trx`` commands and new photo messages.

        Edits are ignored: re-running the flow would write a second transaction.
        """

        self._application.add_handler(
            CommandHandler(TRANSACTION_COMMAND, handler, filters=_NEW_MESSAGES)
        )
        self._application.add_handler(MessageHandler(filters.PHOTO & _NEW_MESSAGES, handler))

    def current_bot(self) -> Bot:
        return self._application.bot

    def launch(self) -> None:
        """Poll for updates until SIGINT or SIGTERM stops the application."""

        _logger.info("telegram:launch command=/%s", TRANSACTION_COMMAND)
        self._application.run_polling(
            allowed_updates=Update.ALL_TYPES,
            stop_signals=(signal.SIGINT, signal.SIGTERM),
        )
        _logger.info("telegram:stopped")
