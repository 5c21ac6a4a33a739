"""Name→id resolution and minor-unit rescaling.

Pure functions only: no ledger access, no logging. The orchestrator builds the
lookup tables once at startup and applies :func:`to_submitted_transaction` per
message.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from .models import CandidateTransaction, ReferenceItem, SubmittedTransaction

MINOR_UNITS_PER_MAJOR = 100


def build_name_map(items: Iterable[ReferenceItem]) -> dict[str, str]:
    """Return ``{name: id}`` for ledger accounts or categories.

    Later entries win when two items share a name.
    """

    return {str(item.name): str(item.id) for item in items}


def to_minor_units(amount: float) -> int:
    return round(amount * MINOR_UNITS_PER_MAJOR)


def to_submitted_transaction(
    candidate: CandidateTransaction,
    account_ids: Mapping[str, str],
    category_ids: Mapping[str, str],
) -> SubmittedTransaction:
    """Rewrite a candidate into the ledger's id space and minor units.

    Names missing from the lookup tables pass through unchanged; a missing
    category stays ``None``.
    """

    category = candidate.category
    if category:
        category = category_ids.get(category, category)

    return SubmittedTransaction(
        account=account_ids.get(candidate.account, candidate.account),
        date=candidate.date,
        amount=to_minor_units(candidate.amount),
        payee_name=candidate.payee_name,
        category=category,
        notes=candidate.notes,
    )
