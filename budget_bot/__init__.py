"""Public interface for the ``budget_bot`` package.

Re-exports the wrappers, the orchestrator and the data models. There is no
runtime logic here; importing the package does not read the environment or
create any client.
"""

from .ai_service import AIService, OpenAIService
from .config import Settings
from .ledger import ActualBudgetClient
from .main import TransactionBridge
from .mapping import build_name_map, to_submitted_transaction
from .models import CandidateTransaction, SubmittedTransaction, TransactionInput
from .telegram_bot import TelegramBot

__all__ = [
    # Orchestration
    "TransactionBridge",
    "build_name_map",
    "to_submitted_transaction",
    # Wrappers
    "AIService",
    "OpenAIService",
    "ActualBudgetClient",
    "TelegramBot",
    # Models / settings
    "Settings",
    "TransactionInput",
    "CandidateTransaction",
    "SubmittedTransaction",
]
