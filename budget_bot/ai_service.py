"""Language-model wrapper: free text and/or a receipt photo in, candidate
transaction out.

Public API:
    - :class:`AIService` (protocol)
    - :class:`OpenAIService` (production variant, OpenAI Responses API)

``OpenAIService.parse_transaction`` never raises. Any failure (network, image
fetch, non-JSON output, schema mismatch) is logged and reported as ``None``
so the orchestrator can answer the user with a friendly message.
"""

from __future__ import annotations

import base64
import datetime as _dt
import json
from collections.abc import Mapping, Sequence
from typing import Any, Protocol

import httpx
from openai import AsyncOpenAI
from openai.types.responses import ResponseTextConfigParam
from pydantic import ValidationError

from . import prompting
from .config import DEFAULT_OPENAI_MODEL
from .logging_setup import get_logger
from .models import CandidateTransaction, TransactionInput

_DEFAULT_IMAGE_MIME = "image/jpeg"

_logger = get_logger("budget_bot.ai_service")


class AIService(Protocol):
    async def parse_transaction(
        self,
        input: TransactionInput,
        account_names: Sequence[str],
        category_names: Sequence[str],
    ) -> CandidateTransaction | None: ...


def _today() -> _dt.date:
    return _dt.date.today()


def _extract_response_text(resp: Any) -> str:
    """Locate the text output of a Responses SDK result.

    Prefer ``resp.output_text``; fall back to ``resp.output[0].content[0].text``.
    Raise ``ValueError`` if no text can be found.
    """

    text: str | None = getattr(resp, "output_text", None)
    if not text:
        try:
            first = resp.output[0] if getattr(resp, "output", None) else None
            content = getattr(first, "content", None)
            if content:
                txt_obj = getattr(content[0], "text", None)
                if isinstance(txt_obj, str):
                    text = txt_obj
                else:
                    # Some SDKs expose text as an object with a ``value`` string.
                    maybe_val = getattr(txt_obj, "value", None)
                    if isinstance(maybe_val, str):
                        text = maybe_val
        except (AttributeError, IndexError, TypeError):
            text = None
    if not text or not isinstance(text, str):
        raise ValueError("Unexpected Responses API shape; unable to locate text output")
    return text


def _decode_transaction_payload(text: str) -> Mapping[str, Any]:
    """Decode model text into a single transaction mapping.

    A JSON array is accepted and its first element used.
    """

    try:
        decoded = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError("Model output was not valid JSON") from e
    if isinstance(decoded, list):
        decoded = decoded[0] if decoded else None
    if not isinstance(decoded, Mapping):
        raise ValueError("Model output was not a JSON object")
    return decoded


def _normalize_date(value: Any, today: _dt.date) -> str:
    """Return ``value`` as ``YYYY-MM-DD``, or ``today`` when it does not parse."""

    if isinstance(value, str) and value.strip():
        raw = value.strip()
        for parse in (_dt.date.fromisoformat, lambda s: _dt.datetime.fromisoformat(s).date()):
            try:
                return parse(raw).isoformat()
            except ValueError:
                continue
    return today.isoformat()


class OpenAIService:
    """Production :class:`AIService` backed by ``AsyncOpenAI``.

    Parameters
    ----------
    api_key:
        OpenAI API key. The client is created on first use, so an empty key
        only fails (softly) when a message is parsed.
    model:
        Responses API model name; must accept image input.
    client:
        Optional pre-built client with a ``responses.create`` coroutine.
    http_transport:
        Optional ``httpx`` transport for the image download.
    """

    def __init__(
        self,
        api_key: str,
        *,
        model: str = DEFAULT_OPENAI_MODEL,
        client: Any | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._client = client
        self._http_transport = http_transport

    def _get_client(self) -> Any:
        if self._client is None:
            # Empty key falls back to OPENAI_API_KEY; with neither, the SDK raises.
            self._client = AsyncOpenAI(api_key=self._api_key or None)
        return self._client

    async def _fetch_image_part(self, image_url: str) -> dict[str, Any]:
        async with httpx.AsyncClient(transport=self._http_transport) as http:
            resp = await http.get(image_url)
            resp.raise_for_status()
        mime = resp.headers.get("content-type", "").split(";")[0].strip()
        if not mime.startswith("image/"):
            mime = _DEFAULT_IMAGE_MIME
        data = base64.b64encode(resp.content).decode("ascii")
        return {"type": "input_image", "image_url": f"data:{mime};base64,{data}", "detail": "auto"}

    async def parse_transaction(
        self,
        input: TransactionInput,
        account_names: Sequence[str],
        category_names: Sequence[str],
    ) -> CandidateTransaction | None:
        today = _today()
        try:
            content: list[dict[str, Any]] = [
                {
                    "type": "input_text",
                    "text": prompting.build_user_content(
                        input.text, account_names, category_names, today=today
                    ),
                }
            ]
            if input.image_url:
                content.append(await self._fetch_image_part(input.image_url))

            text_cfg: ResponseTextConfigParam = {"format": prompting.build_response_format()}
            resp = await self._get_client().responses.create(
                model=self._model,
                instructions=prompting.build_system_instructions(),
                input=[{"role": "user", "content": content}],
                text=text_cfg,
            )
            raw = _extract_response_text(resp)
            _logger.debug("parse_transaction:raw_response text=%s", raw)

            payload = dict(_decode_transaction_payload(raw))
            payload["date"] = _normalize_date(payload.get("date"), today)
            candidate = CandidateTransaction.model_validate(payload)
        except (ValueError, ValidationError) as e:
            _logger.warning("parse_transaction:invalid_response error=%s", e)
            return None
        except Exception as e:  # noqa: BLE001 - network/SDK failures become "not understood"
            _logger.error(
                "parse_transaction:failed has_image=%s error=%s",
                bool(input.image_url),
                e.__class__.__name__,
            )
            return None

        _logger.info(
            "parse_transaction:ok account=%s category=%s has_image=%s",
            candidate.account,
            candidate.category,
            bool(input.image_url),
        )
        return candidate
