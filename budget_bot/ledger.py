"""Ledger client wrapper around the Actual Budget SDK (``actualpy``).

The wrapper owns a single server session. :meth:`ActualBudgetClient.init`
opens it (login plus budget download) inside an ``ExitStack`` so that
:meth:`ActualBudgetClient.close` releases it exactly once. Read and write
calls initialize lazily.

Amounts handed to :meth:`ActualBudgetClient.add_transactions` are integer
minor units; the SDK takes a ``Decimal`` in major units and stores cents
itself, so the conversion back happens here.
"""

from __future__ import annotations

import datetime as _dt
from collections.abc import Callable, Sequence
from contextlib import ExitStack
from decimal import Decimal
from typing import Any

from actual import Actual
from actual.queries import create_transaction, get_accounts, get_categories

from .config import Settings
from .logging_setup import get_logger
from .mapping import MINOR_UNITS_PER_MAJOR
from .models import SubmittedTransaction

OK = "ok"

_logger = get_logger("budget_bot.ledger")


class ActualBudgetClient:
    """Session holder for one Actual budget.

    Parameters
    ----------
    settings:
        Server URL, password, budget id and data directory.
    actual_factory:
        Callable building the SDK session object; defaults to
        :class:`actual.Actual`. Tests inject a fake here.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        actual_factory: Callable[..., Any] = Actual,
    ) -> None:
        self._settings = settings
        self._actual_factory = actual_factory
        self._stack = ExitStack()
        self._actual: Any | None = None

    @property
    def initialized(self) -> bool:
        return self._actual is not None

    def init(self) -> None:
        """Log in and download the budget; no-op once a session exists."""

        if self._actual is not None:
            return
        s = self._settings
        actual = self._actual_factory(
            base_url=s.actual_api_url,
            password=s.actual_api_token,
            file=s.actual_budget_id,
            encryption_password=s.actual_encryption_password or None,
            data_dir=s.actual_data_dir,
        )
        self._actual = self._stack.enter_context(actual)
        _logger.info("ledger:init_ok budget_id=%s", s.actual_budget_id)

    def close(self) -> None:
        self._stack.close()
        self._actual = None

    def __enter__(self) -> ActualBudgetClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _session(self) -> Any:
        self.init()
        assert self._actual is not None  # bound by init()
        return self._actual.session

    def get_accounts(self) -> list[Any]:
        try:
            return list(get_accounts(self._session()))
        except Exception as e:
            _logger.error("ledger:get_accounts_failed error=%s", e)
            raise

    def get_categories(self) -> list[Any]:
        try:
            return list(get_categories(self._session()))
        except Exception as e:
            _logger.error("ledger:get_categories_failed error=%s", e)
            raise

    def add_transactions(
        self, account_id: str, transactions: Sequence[SubmittedTransaction]
    ) -> str:
        """Create ``transactions`` under ``account_id`` and push them to the server.

        Known ids are resolved to SDK objects; anything else is handed to the
        SDK as a name, which it either resolves or rejects.
        """

        try:
            session = self._session()
            accounts = {str(a.id): a for a in get_accounts(session)}
            categories = {str(c.id): c for c in get_categories(session)}
            account = accounts.get(account_id, account_id)
            for tx in transactions:
                category: Any = None
                if tx.category:
                    category = categories.get(tx.category, tx.category)
                create_transaction(
                    session,
                    _dt.date.fromisoformat(tx.date),
                    account,
                    payee=tx.payee_name or "",
                    notes=tx.notes or "",
                    category=category,
                    amount=Decimal(tx.amount) / MINOR_UNITS_PER_MAJOR,
                )
            assert self._actual is not None
            self._actual.commit()
        except Exception as e:
            _logger.error(
                "ledger:add_transactions_failed account=%s count=%d error=%s",
                account_id,
                len(transactions),
                e,
            )
            raise
        _logger.info(
            "ledger:add_transactions_ok account=%s count=%d", account_id, len(transactions)
        )
        return OK
