"""Custom exception hierarchy for Where2Play.

All application exceptions inherit from :class:`Where2PlayError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "setlistfm", "musicbrainz", "eventparking") caused
the failure.

    Where2PlayError  (base -- catch-all for any Where2Play error)
    +-- ConfigurationError       (missing credential / invalid settings)
    +-- ProviderError            (non-success or malformed upstream response)
        +-- RateLimitError       (429 after retries were exhausted)

``asyncio.CancelledError`` is outside this tree: it derives
from ``BaseException`` and is never caught by ``except Where2PlayError``.
"""


class Where2PlayError(Exception):
    """Base exception for all Where2Play errors.

    The ``__str__`` method prefixes the provider name in brackets for
    structured log output, e.g. ``[setlistfm] Artist search failed``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------

class ConfigurationError(Where2PlayError):
    """Raised when a required credential or setting is missing.

    Fatal to the call path that needs it, never to the process.  The API
    layer turns it into a descriptive 503 response.
    """

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# External service / provider errors
# ---------------------------------------------------------------------------

class ProviderError(Where2PlayError):
    """Raised when an upstream API answers with a failure or an unusable body.

    Attributes
    ----------
    status_code:
        HTTP status of the failing response, or ``None`` for a malformed
        payload that arrived with a success status.
    retryable:
        ``True`` when the failure was transient (429 / 5xx) and retries were
        exhausted.  Callers use this to decide whether a negative result may
        be cached.
    """

    def __init__(
        self,
        message: str = "External provider request failed",
        provider_name: str | None = None,
        status_code: int | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._status_code = status_code
        self._retryable = retryable

    @property
    def status_code(self) -> int | None:
        return self._status_code

    @property
    def retryable(self) -> bool:
        return self._retryable


class RateLimitError(ProviderError):
    """Raised when a provider keeps answering 429 after every retry."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        provider_name: str | None = None,
        status_code: int | None = 429,
    ) -> None:
        super().__init__(
            message=message,
            provider_name=provider_name,
            status_code=status_code,
            retryable=True,
        )

