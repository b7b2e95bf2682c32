"""
Ordered provider fallback.

Every external provider is a strategy object exposing an ``attempt``-style
coroutine that returns one of three outcomes:

- ``Found(value)``: the provider answered, stop here
- ``NoMatch(reason)``: the provider worked but had nothing, try the next one
- ``Failure(reason)``: the provider broke, try the next one

Providers may also simply raise; the chain converts exceptions (and
timeouts) into ``Failure`` so one provider can never abort the chain.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, List, Optional, Sequence, TypeVar, Union

import httpx

from pickup_geo.core.exceptions import ProviderError, ProviderTimeoutError
from pickup_geo.schemas.health import ServiceHealth
from pickup_geo.utils.concurrency import run_cancellable

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Found(Generic[T]):
    value: T


@dataclass(frozen=True)
class NoMatch:
    reason: str = "no match"


@dataclass(frozen=True)
class Failure:
    reason: str
    error: Optional[BaseException] = None


AttemptOutcome = Union[Found[T], NoMatch, Failure]


@dataclass(frozen=True)
class ChainAttempt:
    provider: str
    outcome: Any


@dataclass
class ChainResult(Generic[T]):
    """What a chain run produced, plus every attempt for diagnostics."""

    value: Optional[T] = None
    provider: Optional[Any] = None
    attempts: List[ChainAttempt] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.provider is not None

    def failed_with(self, error_type: type) -> bool:
        return any(
            isinstance(a.outcome, Failure) and isinstance(a.outcome.error, error_type)
            for a in self.attempts
        )


class HttpProvider:
    """
    Base class for providers backed by an HTTP API.

    Subclasses set ``name`` and ``base_url`` and use ``_get_client`` for
    requests.
    """

    name = "provider"

    def __init__(self, base_url: str, timeout: float = 5.0):
        self._base_url = base_url
        self._timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None

    def _default_headers(self) -> dict:
        return {"Accept": "application/json"}

    def _get_client(self) -> httpx.AsyncClient:
        """
        Get or create the HTTP client for this provider.
        """
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                headers=self._default_headers(),
            )
        return self._client

    def is_configured(self) -> bool:
        return True

    async def health_check(self) -> ServiceHealth:
        """
        Report whether the provider can be used at all.

        Only configuration is checked; live probing would spend API quota.
        """
        if not self.is_configured():
            return ServiceHealth(healthy=False, message=f"{self.name} is not configured")
        return ServiceHealth(healthy=True, message=f"{self.name} is configured")

    async def close(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name})"


class ProviderChain:
    """Runs providers in order until one of them returns ``Found``."""

    def __init__(self, label: str, timeout: float):
        self.label = label
        self.timeout = timeout

    async def run(
        self,
        providers: Sequence[Any],
        payload: Any,
        method_name: str = "attempt",
        cancel_event: Optional[asyncio.Event] = None,
        accept: Optional[Callable[[Any], Optional[str]]] = None,
    ) -> ChainResult:
        """
        Try ``providers`` in order with ``payload``.

        ``accept`` may veto a found value by returning a rejection reason; the
        value is then recorded as a no-match and the next provider is tried.
        """
        result: ChainResult = ChainResult()

        for provider in providers:
            provider_name = getattr(provider, "name", provider.__class__.__name__)
            method = getattr(provider, method_name, None)
            if not callable(method):
                continue

            is_configured = getattr(provider, "is_configured", None)
            if callable(is_configured) and not is_configured():
                outcome: Any = NoMatch("not configured")
            else:
                outcome = await self._attempt(provider_name, method, payload, cancel_event)

            result.attempts.append(ChainAttempt(provider=provider_name, outcome=outcome))

            if isinstance(outcome, Found) and accept is not None:
                rejection = accept(outcome.value)
                if rejection:
                    outcome = NoMatch(rejection)
                    result.attempts[-1] = ChainAttempt(provider=provider_name, outcome=outcome)

            if isinstance(outcome, Found):
                logger.info("%s resolved by %s", self.label, provider_name)
                result.value = outcome.value
                result.provider = provider
                return result

            if isinstance(outcome, NoMatch):
                logger.info("%s: %s had no match (%s)", self.label, provider_name, outcome.reason)

        logger.warning(
            "%s: all providers exhausted (%s)",
            self.label,
            ", ".join(f"{a.provider}={type(a.outcome).__name__}" for a in result.attempts),
        )
        return result

    async def _attempt(self, provider_name, method, payload, cancel_event) -> Any:
        try:
            outcome = await run_cancellable(method(payload), cancel_event, self.timeout)
        except ProviderTimeoutError as e:
            logger.warning("%s: %s timed out after %ss", self.label, provider_name, self.timeout)
            return Failure("timeout", e)
        except ProviderError as e:
            logger.warning("%s: %s failed: %s", self.label, provider_name, str(e))
            return Failure(str(e), e)
        except httpx.HTTPError as e:
            logger.warning("%s: network error from %s: %s", self.label, provider_name, str(e))
            return Failure(f"network error: {str(e)}", e)
        except (KeyError, ValueError, TypeError, IndexError) as e:
            logger.warning("%s: invalid response data from %s: %s", self.label, provider_name, str(e))
            return Failure(f"invalid response data: {str(e)}", e)
        except Exception as e:  # pylint: disable=broad-except
            logger.exception("%s: unexpected error in %s", self.label, provider_name)
            return Failure(f"unexpected error: {str(e)}", e)

        if outcome is None:
            return NoMatch()
        if not isinstance(outcome, (Found, NoMatch, Failure)):
            return Found(outcome)
        return outcome
