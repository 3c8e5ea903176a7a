"""Per-provider throttled HTTP fetcher with bounded retry/backoff.

Every outbound call to setlist.fm and MusicBrainz goes through one
:class:`RateLimitedFetcher`.  Each provider has its own gate (an
``asyncio.Lock`` plus a "last request" timestamp), so callers queue behind
each other and consecutive requests to the same provider start at least
``min_interval`` seconds apart, whichever user request triggered them.

Retries (429, and any 5xx) go back through the gate, so a retry never
jumps the queue.  The backoff honours ``Retry-After`` when the upstream
sends one (seconds or an HTTP date) and otherwise grows with the attempt
number.  When retries run out the last failing response is returned rather
than raised; providers decide what a failure means.

The fetcher is an ordinary object built once in ``main._build_all`` and
injected into the providers.  Tests build their own with a fake clock.
"""

from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Awaitable, Callable, Iterable, Mapping

import httpx
import structlog

from where2play.config.settings import Settings
from where2play.utils.errors import ConfigurationError
from where2play.utils.logging import get_logger

_MAX_ATTEMPTS = 3

_logger = get_logger(__name__)


@dataclass(frozen=True)
class ProviderPolicy:
    """Throttle and retry policy for one upstream API."""

    name: str
    base_url: str
    min_interval: float  # seconds between request starts
    headers: Mapping[str, str] = field(default_factory=dict)
    max_attempts: int = _MAX_ATTEMPTS
    timeout: float = 30.0

    def url_for(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"


@dataclass(frozen=True)
class FetchResult:
    """Status, body and headers of the final response for one fetch."""

    status_code: int
    body: str
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        """Decode the body as JSON.  Raises ``ValueError`` on malformed input."""
        return json.loads(self.body)


class _ProviderGate:
    """Mutual-exclusion gate and last-request marker for one provider."""

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.last_request: float | None = None


def is_retryable_status(status_code: int) -> bool:
    """429 and every 5xx are transient; any other status is final."""
    return status_code == 429 or status_code >= 500


def parse_retry_after(value: str | None, now: datetime | None = None) -> float | None:
    """Return the ``Retry-After`` delay in seconds, or ``None`` if unusable.

    Accepts delta-seconds (``"2"``) or an HTTP date; a date in the past
    yields ``None`` so the caller falls back to its default backoff.
    """
    if not value:
        return None
    value = value.strip()
    if value.isdigit():
        return float(int(value))
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    delta = (when - (now or datetime.now(timezone.utc))).total_seconds()
    return delta if delta > 0 else None


def default_policies(settings: Settings) -> list[ProviderPolicy]:
    """Build the setlist.fm and MusicBrainz policies from *settings*."""
    common = {
        "User-Agent": settings.api_user_agent,
        "Accept": "application/json",
    }
    setlist_headers = dict(common)
    if settings.setlistfm_api_key:
        setlist_headers["x-api-key"] = settings.setlistfm_api_key
    return [
        ProviderPolicy(
            name="setlistfm",
            base_url=settings.setlistfm_base_url,
            min_interval=settings.setlistfm_min_interval_ms / 1000.0,
            headers=setlist_headers,
            max_attempts=settings.http_max_attempts,
            timeout=settings.http_timeout,
        ),
        ProviderPolicy(
            name="musicbrainz",
            base_url=settings.musicbrainz_base_url,
            min_interval=settings.musicbrainz_min_interval_ms / 1000.0,
            headers=common,
            max_attempts=settings.http_max_attempts,
            timeout=settings.http_timeout,
        ),
    ]


class RateLimitedFetcher:
    """Throttled GET client shared by every provider adapter.

    Parameters
    ----------
    http_client:
        Injected ``httpx.AsyncClient`` for testability and connection pooling.
    policies:
        One :class:`ProviderPolicy` per upstream API.
    clock:
        Monotonic clock in seconds.  Tests inject a fake.
    sleep:
        Coroutine used for throttle and backoff waits.  Tests inject a fake
        that advances the fake clock.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        policies: Iterable[ProviderPolicy] = (),
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._http = http_client
        self._clock = clock
        self._sleep = sleep
        self._policies: dict[str, ProviderPolicy] = {}
        self._gates: dict[str, _ProviderGate] = {}
        for policy in policies:
            self.register(policy)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, policy: ProviderPolicy) -> None:
        """Add or replace the policy for ``policy.name``."""
        self._policies[policy.name] = policy
        self._gates.setdefault(policy.name, _ProviderGate())

    def policy(self, provider: str) -> ProviderPolicy:
        try:
            return self._policies[provider]
        except KeyError:
            raise ConfigurationError(
                message=f"No fetch policy registered for '{provider}'",
                provider_name=provider,
            ) from None

    def reset(self) -> None:
        """Forget every provider's last-request marker."""
        for gate in self._gates.values():
            gate.last_request = None

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _throttle(self, policy: ProviderPolicy) -> None:
        """Wait until *policy*'s interval has passed, then stamp the marker.

        The wait happens while holding the provider's lock, so concurrent
        callers are released one interval apart.
        """
        gate = self._gates[policy.name]
        async with gate.lock:
            if gate.last_request is not None:
                elapsed = self._clock() - gate.last_request
                if elapsed < policy.min_interval:
                    await self._sleep(policy.min_interval - elapsed)
            gate.last_request = self._clock()

    def _backoff(self, policy: ProviderPolicy, attempt: int, retry_after: str | None) -> float:
        hinted = parse_retry_after(retry_after)
        if hinted is not None:
            return hinted
        return attempt * policy.min_interval

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def fetch(
        self,
        provider: str,
        path: str,
        params: Mapping[str, Any] | None = None,
    ) -> FetchResult:
        """GET *path* from *provider*, throttled and retried.

        Returns
        -------
        FetchResult
            The first non-retryable response, or the last failing one once
            ``max_attempts`` is reached.  A transport failure on the final
            attempt comes back as a synthetic 503.
        """
        with structlog.contextvars.bound_contextvars(provider=provider):
            policy = self.policy(provider)
            url = policy.url_for(path)
            attempts = max(1, policy.max_attempts)
            result: FetchResult | None = None

            for attempt in range(1, attempts + 1):
                await self._throttle(policy)
                try:
                    response = await self._http.get(
                        url,
                        params=dict(params) if params else None,
                        headers=dict(policy.headers),
                        timeout=policy.timeout,
                    )
                except httpx.HTTPError as exc:
                    _logger.warning(
                        "upstream_request_failed",
                        url=url,
                        attempt=attempt,
                        error=str(exc),
                    )
                    result = FetchResult(
                        status_code=503,
                        body=json.dumps({"error": f"{type(exc).__name__}: {exc}"}),
                    )
                    retry_after = None
                else:
                    result = FetchResult(
                        status_code=response.status_code,
                        body=response.text,
                        headers=dict(response.headers),
                    )
                    if not is_retryable_status(response.status_code):
                        return result
                    retry_after = response.headers.get("Retry-After")

                if attempt >= attempts:
                    break

                backoff = self._backoff(policy, attempt, retry_after)
                _logger.warning(
                    "rate_limit_backoff" if result.status_code == 429 else "upstream_retry",
                    status=result.status_code,
                    attempt=attempt,
                    backoff_s=round(backoff, 3),
                )
                await self._sleep(backoff)

            assert result is not None
            _logger.warning(
                "upstream_retries_exhausted",
                url=url,
                status=result.status_code,
                attempts=attempts,
            )
            return result
