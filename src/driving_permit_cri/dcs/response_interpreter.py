"""Classifies raw DCS exchanges into verification outcomes."""

from __future__ import annotations

import logging
from typing import Protocol

from pydantic import ValidationError

from driving_permit_cri.dcs.jose import JoseFramingError
from driving_permit_cri.models import (
    ClientError,
    DcsResponse,
    RawResponse,
    ServerError,
    StatusClass,
    Success,
    TransportFailure,
    VerificationOutcome,
)

logger = logging.getLogger(__name__)


class ResponseUnwrapper(Protocol):
    def unwrap(self, token: str) -> bytes: ...


class VerificationResponseInterpreter:
    """Stateless mapping from a :class:`RawResponse` to a :class:`VerificationOutcome`.

    The interpreter never decides whether to retry; it only classifies.
    """

    def __init__(self, unwrapper: ResponseUnwrapper) -> None:
        self._unwrapper = unwrapper

    def interpret(self, raw: RawResponse) -> VerificationOutcome:
        if raw.exception is not None:
            exc = raw.exception
            return TransportFailure(
                cause=str(exc) or type(exc).__name__,
                exception_type=type(exc).__name__,
            )

        status = raw.status_code
        if status is None:
            return ClientError(StatusClass.UNHANDLED, "DCS exchange produced no status code")
        if 200 <= status < 300:
            return self._interpret_success(raw)
        if 300 <= status < 400:
            return ClientError(
                StatusClass.REDIRECTION, f"DCS responded with HTTP {status}", status_code=status
            )
        if 400 <= status < 500:
            return ClientError(
                StatusClass.CLIENT, f"DCS responded with HTTP {status}", status_code=status
            )
        if 500 <= status < 600:
            return ServerError(f"DCS responded with HTTP {status}", status_code=status)
        return ClientError(
            StatusClass.UNHANDLED, f"DCS responded with HTTP {status}", status_code=status
        )

    def _interpret_success(self, raw: RawResponse) -> VerificationOutcome:
        status = raw.status_code
        if not raw.body:
            return ClientError(StatusClass.INTEGRITY, "DCS response body was empty", status_code=status)

        try:
            decoded = self._unwrapper.unwrap(raw.body)
        except JoseFramingError as exc:
            logger.warning("DCS response failed integrity checks: %s", exc)
            return ClientError(StatusClass.INTEGRITY, str(exc), status_code=status)

        try:
            details = DcsResponse.model_validate_json(decoded)
        except ValidationError as exc:
            msg = f"Failed to parse DCS response: {exc.error_count()} validation error(s)"
            return ClientError(StatusClass.INTEGRITY, msg, status_code=status)

        if details.error:
            message = "; ".join(details.error_message) or "DCS returned an error response"
            return ClientError(StatusClass.REJECTED, message, status_code=status)

        return Success(match_result=details.valid_document, details=details, status_code=status)


__all__ = ["ResponseUnwrapper", "VerificationResponseInterpreter"]
