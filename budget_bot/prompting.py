"""Prompt construction for transaction extraction.

This module builds:
- The system instructions, including the sign convention.
- The user text embedding the allowed account/category vocabularies, the
  default date and the caller's text.
- The strict ``response_format`` (JSON Schema) object for the OpenAI
  Responses API.
"""

from __future__ import annotations

import datetime as _dt
from collections.abc import Sequence

from openai.types.responses.response_format_text_json_schema_config_param import (
    ResponseFormatTextJSONSchemaConfigParam,
)


def build_system_instructions() -> str:
    return (
        "You are an assistant that turns a short description or a receipt photo into a "
        "single bookkeeping transaction. Pick the account and category only from the "
        "provided lists. Use a negative amount for an expense and a positive amount for "
        "income. Output JSON only that conforms to the specified schema."
    )


def build_user_content(
    text: str,
    account_names: Sequence[str],
    category_names: Sequence[str],
    *,
    today: _dt.date,
) -> str:
    """Build the user message text.

    The default date is ``today`` in ISO form; the model is told to use it
    when the input does not name a date.
    """

    return (
        "Parse the following transaction info into a valid transaction. "
        f"Default date is today {today.isoformat()}. "
        f"Available accounts: {', '.join(account_names)}. "
        f"Available categories: {', '.join(category_names)}. "
        "Use negative amount for expense and positive for income. "
        f"Input: {text}"
    )


def build_response_format() -> ResponseFormatTextJSONSchemaConfigParam:
    """Return the strict JSON Schema response_format for one transaction.

    ``account``, ``date`` and ``amount`` are mandatory; the optional fields are
    declared nullable because strict mode requires every property to be listed
    in ``required``.
    """

    return {
        "type": "json_schema",
        "name": "transaction",
        "schema": {
            "type": "object",
            "properties": {
                "account": {"type": "string"},
                "date": {"type": "string", "description": "ISO date YYYY-MM-DD"},
                "amount": {"type": "number"},
                "payee_name": {"type": ["string", "null"]},
                "category": {"type": ["string", "null"]},
                "notes": {"type": ["string", "null"]},
            },
            "required": ["account", "date", "amount", "payee_name", "category", "notes"],
            "additionalProperties": False,
        },
        "strict": True,
    }
