"""Document Checking Service (DCS) exchange: framing, requests, responses and retries."""

from .jose import DcsJoseFraming, JoseFramingError, load_jwk_from_pem
from .request_builder import JOSE_CONTENT_TYPE, DcsPayload, VerificationRequestBuilder
from .response_interpreter import VerificationResponseInterpreter
from .retry import AttemptState, RetryController, RetryState
from .transport import HttpxVerificationTransport, VerificationTransport

__all__ = [
    "AttemptState",
    "DcsJoseFraming",
    "DcsPayload",
    "HttpxVerificationTransport",
    "JOSE_CONTENT_TYPE",
    "JoseFramingError",
    "RetryController",
    "RetryState",
    "VerificationRequestBuilder",
    "VerificationResponseInterpreter",
    "VerificationTransport",
    "load_jwk_from_pem",
]
