"""Response decoding -- maps :class:`httpx.Response` to models or errors.

Key Vault reports failures as a JSON body of the form
``{"error": {"code": "SecretNotFound", "message": "..."}}``.
:func:`raise_for_service_error` turns any status of 400 or above into a
:class:`~vaultclient.exceptions.ServiceError` carrying that code and
message, and :func:`decode_model` validates a successful body against a
Pydantic wire model.

Validation messages are built without the offending input, since the input
may be a secret bundle whose ``value`` must not end up in an exception.
"""

from __future__ import annotations

from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from vaultclient.exceptions import DecodeError, SecretNotFoundError, ServiceError

M = TypeVar("M", bound=BaseModel)


def raise_for_service_error(response: httpx.Response) -> None:
    """Raise a :class:`ServiceError` for error HTTP status codes.

    Args:
        response: The response to inspect.

    Raises:
        SecretNotFoundError: On 404.
        ServiceError: On any other status of 400 or above.
    """
    status = response.status_code
    if status < 400:
        return

    code, message = _service_error_detail(response)
    if status == 404:
        raise SecretNotFoundError(status, message, code)
    raise ServiceError(status, message, code)


def decode_model(response: httpx.Response, model: type[M]) -> M:
    """Check *response* for service errors, then validate its body as *model*.

    Raises:
        ServiceError: If the response carries an error status.
        DecodeError: If the body is not JSON or does not match *model*.
    """
    raise_for_service_error(response)
    try:
        return model.model_validate_json(response.text)
    except ValidationError as exc:
        raise DecodeError(
            f"Unexpected {model.__name__} response: {describe_validation_error(exc)}"
        ) from None


def describe_validation_error(exc: ValidationError) -> str:
    """Summarise a validation error as ``loc: msg`` pairs, without input values."""
    parts = []
    for err in exc.errors(include_input=False, include_url=False):
        loc = ".".join(str(p) for p in err.get("loc", ())) or "<body>"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)


def _service_error_detail(response: httpx.Response) -> tuple[str | None, str]:
    """Extract ``(code, message)`` from a Key Vault error body."""
    try:
        body: Any = response.json()
    except ValueError:
        return None, response.text[:200] if response.text else ""

    if isinstance(body, dict):
        detail = body.get("error")
        if isinstance(detail, dict):
            return detail.get("code"), str(detail.get("message") or "")
        if isinstance(detail, str):
            return None, detail
        return None, str(body.get("message") or "")
    return None, str(body)
