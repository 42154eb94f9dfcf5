"""Result types shared by the completion client, retry policy and queue."""

import dataclasses
from enum import Enum
from typing import AsyncIterator, Optional

from models import ErrorType
from errors import RelayError


class FailureKind(str, Enum):
    RATE_LIMITED = "rate_limited"
    AUTH_FAILURE = "auth_failure"
    NETWORK_FAILURE = "network_failure"
    UPSTREAM_ERROR = "upstream_error"


# kind -> (error type, HTTP status, user-facing message)
_FAILURE_RESPONSES = {
    FailureKind.RATE_LIMITED: (
        ErrorType.RATE_LIMIT, 429,
        "The AI provider is rate limiting requests. Try again later.",
    ),
    FailureKind.AUTH_FAILURE: (
        ErrorType.AUTHENTICATION, 401,
        "Invalid API key. Check GROQ_API_KEY in the .env file.",
    ),
    FailureKind.NETWORK_FAILURE: (
        ErrorType.NETWORK, 502,
        "Could not reach the AI provider.",
    ),
    FailureKind.UPSTREAM_ERROR: (
        ErrorType.API_ERROR, 500,
        "Failed to get a response from the AI",
    ),
}


@dataclasses.dataclass(frozen=True)
class CompletionFailure:
    kind: FailureKind
    message: str
    status_code: Optional[int] = None
    cause: Optional[BaseException] = None


@dataclasses.dataclass
class AttemptResult:
    """Outcome of one attempt to open a completion stream: a stream or a failure."""

    stream: Optional[AsyncIterator[str]] = None
    failure: Optional[CompletionFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, stream: AsyncIterator[str]) -> "AttemptResult":
        return cls(stream=stream)

    @classmethod
    def failed(cls, failure: CompletionFailure) -> "AttemptResult":
        return cls(failure=failure)


class CompletionError(RelayError):
    """Terminal completion failure handed back to the submitter."""

    def __init__(self, failure: CompletionFailure, attempts: int = 1):
        self.failure = failure
        self.attempts = attempts
        self.error_type, status_code, message = _FAILURE_RESPONSES[failure.kind]
        super().__init__(message, status_code=status_code, details=failure.message)

    @property
    def kind(self) -> FailureKind:
        return self.failure.kind
