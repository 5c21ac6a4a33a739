"""Data models for ``budget_bot``.

- :class:`TransactionInput` is what the orchestrator extracts from a chat
  message.
- :class:`CandidateTransaction` is the model's extraction, validated with
  pydantic but not yet checked against the ledger's id space.
- :class:`SubmittedTransaction` is the ledger-ready form: ids instead of names
  and amounts in minor units.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field, field_validator


@dataclass(frozen=True, slots=True)
class TransactionInput:
    """Text and/or image reference taken from one incoming message.

    Empty strings mean "absent"; a photo without a caption has ``text=""``.
    """

    text: str = ""
    image_url: str = ""


class ReferenceItem(Protocol):
    """Shape shared by ledger accounts and categories."""

    id: str
    name: str


class CandidateTransaction(BaseModel):
    """A transaction as extracted by the language model.

    ``amount`` is signed and in major currency units: negative for expenses,
    positive for income. ``account`` and ``category`` normally hold names from
    the vocabularies given to the model.
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    account: str
    date: str
    amount: float = Field(allow_inf_nan=False)
    payee_name: str | None = None
    category: str | None = None
    notes: str | None = None

    @field_validator("account")
    @classmethod
    def _account_non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("account must be non-empty")
        return v

    @field_validator("amount")
    @classmethod
    def _amount_fits_minor_units(cls, v: float) -> float:
        if not math.isfinite(v * 100):
            raise ValueError("amount is too large to express in minor units")
        return v

    @field_validator("payee_name", "category", "notes")
    @classmethod
    def _blank_to_none(cls, v: str | None) -> str | None:
        return v or None


@dataclass(frozen=True, slots=True)
class SubmittedTransaction:
    """A candidate rewritten for the ledger.

    ``amount`` is an integer in minor units (major units × 100). ``account``
    and ``category`` hold ledger ids when the names resolved, otherwise the
    original names unchanged.
    """

    account: str
    date: str
    amount: int
    payee_name: str | None = None
    category: str | None = None
    notes: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON echo shape, omitting unset optional fields."""

        return {k: v for k, v in asdict(self).items() if v is not None}
