from __future__ import annotations

import asyncio
import json

import pytest

from budget_bot.config import Settings
from budget_bot.main import (
    FAILURE_MESSAGE,
    NOT_UNDERSTOOD_MESSAGE,
    SUCCESS_MESSAGE,
    TransactionBridge,
)
from budget_bot.models import CandidateTransaction, TransactionInput
from tests.helpers.fakes import (
    FakeContext,
    FakeLedger,
    FakeMessage,
    FakeMessenger,
    FakePhotoSize,
    FakeTelegramBot,
    FakeUpdate,
    Ref,
    StaticAIService,
)

SETTINGS = Settings(bot_token="123:abc")
ACCOUNTS = [Ref("acc-checking", "Checking")]
CATEGORIES = [Ref("cat-food", "Food")]

COFFEE = CandidateTransaction(account="Checking", date="2025-02-01", amount=-4.5, category="Food")


def _bridge(
    result: CandidateTransaction | None = COFFEE, ledger: FakeLedger | None = None
) -> tuple[TransactionBridge, FakeLedger, StaticAIService, FakeMessenger]:
    ledger = ledger or FakeLedger(ACCOUNTS, CATEGORIES)
    ai = StaticAIService(result)
    messenger = FakeMessenger()
    bridge = TransactionBridge(SETTINGS, ledger=ledger, ai_service=ai, messenger=messenger)
    bridge.start()
    return bridge, ledger, ai, messenger


def _handle(bridge: TransactionBridge, input: TransactionInput) -> list[str]:
    replies: list[str] = []

    async def reply(text: str) -> None:
        replies.append(text)

    asyncio.run(bridge.handle_input(input, reply))
    return replies


def test_start_caches_reference_data_and_registers_handler():
    bridge, _ledger, _ai, messenger = _bridge()

    assert bridge.account_ids == {"Checking": "acc-checking"}
    assert bridge.category_ids == {"Food": "cat-food"}
    assert messenger.handlers == [bridge.on_transaction]
    assert not messenger.launched


def test_run_launches_messenger_after_start():
    ledger = FakeLedger(ACCOUNTS, CATEGORIES)
    messenger = FakeMessenger()
    bridge = TransactionBridge(
        SETTINGS, ledger=ledger, ai_service=StaticAIService(None), messenger=messenger
    )

    bridge.run()

    assert messenger.launched
    assert len(messenger.handlers) == 1


def test_startup_read_failure_propagates():
    ledger = FakeLedger(read_error=ConnectionError("ledger down"))
    messenger = FakeMessenger()
    bridge = TransactionBridge(
        SETTINGS, ledger=ledger, ai_service=StaticAIService(None), messenger=messenger
    )

    with pytest.raises(ConnectionError):
        bridge.run()
    assert messenger.handlers == []
    assert not messenger.launched


def test_coffee_scenario_submits_ids_and_minor_units():
    bridge, ledger, ai, _ = _bridge()

    replies = _handle(bridge, TransactionInput(text="Coffee $4.50 today"))

    (account_id, (tx,)), = ledger.added
    assert account_id == "acc-checking"
    assert tx.to_dict() == {
        "account": "acc-checking",
        "date": "2025-02-01",
        "amount": -450,
        "category": "cat-food",
    }
    assert ai.calls == [(TransactionInput(text="Coffee $4.50 today"), ["Checking"], ["Food"])]

    assert len(replies) == 2
    prefix = "Transaction details: "
    assert replies[0].startswith(prefix)
    assert json.loads(replies[0][len(prefix) :]) == tx.to_dict()
    assert replies[1] == SUCCESS_MESSAGE


def test_unmapped_names_are_submitted_as_is():
    candidate = CandidateTransaction(
        account="Wallet", date="2025-02-01", amount=20, category="Gifts"
    )
    bridge, ledger, _ai, _ = _bridge(candidate)

    _handle(bridge, TransactionInput(text="gift 20"))

    (account_id, (tx,)), = ledger.added
    assert account_id == "Wallet"
    assert tx.account == "Wallet"
    assert tx.category == "Gifts"
    assert tx.amount == 2000


def test_unparsed_message_gets_fixed_reply_and_no_ledger_call():
    bridge, ledger, _ai, _ = _bridge(result=None)

    replies = _handle(bridge, TransactionInput(text="hello?"))

    assert replies == [NOT_UNDERSTOOD_MESSAGE]
    assert ledger.added == []


def test_ledger_failure_gets_fixed_reply_and_does_not_escape():
    ledger = FakeLedger(ACCOUNTS, CATEGORIES, add_error=RuntimeError("sync failed"))
    bridge, _ledger, _ai, _ = _bridge(ledger=ledger)

    replies = _handle(bridge, TransactionInput(text="Coffee $4.50 today"))

    assert replies == [FAILURE_MESSAGE]


def test_reference_names_added_after_startup_do_not_resolve():
    bridge, ledger, _ai, _ = _bridge(
        CandidateTransaction(account="Brokerage", date="2025-02-01", amount=-1)
    )
    ledger.accounts.append(Ref("acc-new", "Brokerage"))

    _handle(bridge, TransactionInput(text="x"))

    assert ledger.added[0][0] == "Brokerage"


# ---- Telegram update handling --------------------------------------------------


def test_text_command_strips_command_token_and_replies():
    bridge, ledger, ai, _ = _bridge()
    message = FakeMessage(text="/trx@BudgetBot Coffee $4.50 today")
    context = FakeContext(bot=FakeTelegramBot("unused"))

    asyncio.run(bridge.on_transaction(FakeUpdate(message), context))

    assert ai.calls[0][0] == TransactionInput(text="Coffee $4.50 today")
    assert message.replies[-1] == SUCCESS_MESSAGE
    assert len(ledger.added) == 1


def test_photo_uses_largest_size_and_caption():
    bridge, _ledger, ai, _ = _bridge()
    message = FakeMessage(
        caption="team lunch",
        photo=(FakePhotoSize("small"), FakePhotoSize("medium"), FakePhotoSize("large")),
    )
    tg_bot = FakeTelegramBot("photos/file_9.jpg")

    asyncio.run(bridge.on_transaction(FakeUpdate(message), FakeContext(bot=tg_bot)))

    assert tg_bot.requested == ["large"]
    assert ai.calls[0][0] == TransactionInput(
        text="team lunch",
        image_url="https://api.telegram.org/file/bot123:abc/photos/file_9.jpg",
    )


def test_photo_without_caption_has_empty_text():
    bridge, _ledger, ai, _ = _bridge(result=None)
    message = FakeMessage(photo=(FakePhotoSize("only"),))
    tg_bot = FakeTelegramBot("https://api.telegram.org/file/bot123:abc/p.jpg")

    asyncio.run(bridge.on_transaction(FakeUpdate(message), FakeContext(bot=tg_bot)))

    assert ai.calls[0][0].text == ""
    assert ai.calls[0][0].image_url == "https://api.telegram.org/file/bot123:abc/p.jpg"
    assert message.replies == [NOT_UNDERSTOOD_MESSAGE]


def test_update_without_message_is_ignored():
    bridge, ledger, ai, _ = _bridge()

    asyncio.run(bridge.on_transaction(FakeUpdate(None), FakeContext(bot=FakeTelegramBot(""))))

    assert ai.calls == []
    assert ledger.added == []
