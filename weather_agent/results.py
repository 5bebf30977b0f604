"""Result envelopes returned by the weather tools.

Every tool invocation produces exactly one envelope:

    {
        "ok": bool,
        "source": {"url": ..., "path": ...},
        "request": {"tool": ..., ...params},
        "upstream": {
            "status": int | None,
            "payment_response_header": str | None,
            "x_payment_response_header": str | None,
            "data": Any,
        },
    }
"""

import json
import logging
from typing import Any, Mapping, Optional

import httpx

from .errors import SerializationError

logger = logging.getLogger(__name__)

PAYMENT_RESPONSE_HEADER = "payment-response"
X_PAYMENT_RESPONSE_HEADER = "x-payment-response"

FALLBACK_TEXT = json.dumps({"error": "Failed to serialize response"}, indent=2)


def get_header_value(headers: Optional[Mapping[str, Any]], key: str) -> Optional[str]:
    """Case-insensitive header lookup.

    List values (as some HTTP stacks return for repeated headers) yield their
    first element. Anything that is not a string yields None.
    """
    if not headers:
        return None
    wanted = key.lower()
    for name, value in headers.items():
        if not isinstance(name, str) or name.lower() != wanted:
            continue
        if isinstance(value, (list, tuple)):
            value = value[0] if value else None
        return value if isinstance(value, str) else None
    return None


def _reject_constant(token: str) -> Any:
    raise ValueError(f"non-standard JSON token {token}")


def read_response_data(response: httpx.Response) -> Any:
    """Return the parsed JSON body, or the raw text if the body is not strict JSON.

    NaN and Infinity are not JSON, so bodies containing them are kept as text.
    """
    try:
        return response.json(parse_constant=_reject_constant)
    except ValueError:
        return response.text


def _envelope(
    ok: bool,
    base_url: str,
    path: str,
    request: dict[str, Any],
    status: Optional[int],
    headers: Optional[Mapping[str, Any]],
    data: Any,
) -> dict[str, Any]:
    return {
        "ok": ok,
        "source": {"url": base_url, "path": path},
        "request": dict(request),
        "upstream": {
            "status": status,
            "payment_response_header": get_header_value(headers, PAYMENT_RESPONSE_HEADER),
            "x_payment_response_header": get_header_value(headers, X_PAYMENT_RESPONSE_HEADER),
            "data": data,
        },
    }


def build_success_result(
    base_url: str,
    path: str,
    request: dict[str, Any],
    response: httpx.Response,
) -> dict[str, Any]:
    """Build the envelope for a response the upstream actually returned."""
    return _envelope(
        ok=True,
        base_url=base_url,
        path=path,
        request=request,
        status=response.status_code or 200,
        headers=response.headers,
        data=read_response_data(response),
    )


def build_failure_result(
    base_url: str,
    path: str,
    request: dict[str, Any],
    error: BaseException,
) -> dict[str, Any]:
    """
    Build the envelope for a failed invocation.

    If the error carries an upstream response, its status, receipt headers
    and body are reported. Otherwise status and headers are null and data
    holds the error message.
    """
    response = getattr(error, "response", None)
    if isinstance(response, httpx.Response):
        return _envelope(
            ok=False,
            base_url=base_url,
            path=path,
            request=request,
            status=response.status_code,
            headers=response.headers,
            data=read_response_data(response),
        )

    return _envelope(
        ok=False,
        base_url=base_url,
        path=path,
        request=request,
        status=None,
        headers=None,
        data={"message": str(error) or type(error).__name__},
    )


def serialize_result(envelope: Any) -> str:
    """Render an envelope as indented JSON.

    Raises:
        SerializationError: If the envelope is not JSON-serializable
    """
    try:
        return json.dumps(envelope, indent=2, ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError, RecursionError) as e:
        raise SerializationError(f"Failed to serialize response: {e}") from e


def to_text(envelope: Any) -> str:
    """Render an envelope as text. Never raises."""
    try:
        return serialize_result(envelope)
    except SerializationError as e:
        logger.warning(e.message)
        return FALLBACK_TEXT
