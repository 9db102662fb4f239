"""
DevCamper API — MapQuest Geocoder
==================================

What:  Concrete Geocoder calling the MapQuest geocoding REST API over httpx.
Why:   Bootcamps are stored with coordinates so the radius search can work;
       the address the publisher types is replaced by the geocoded location.
How:   One GET per lookup, wrapped in tenacity retries (transport errors and
       5xx only) and a circuit breaker shared by all requests.
Who:   Singleton `geocoder_service`, used by BootcampService and /health.

Resilience Strategy:
    1. Tenacity retry with exponential backoff + jitter for transient failures
    2. Circuit breaker so a MapQuest outage fails fast instead of stalling
       every bootcamp create for (timeout × attempts)
    3. 4xx answers (bad key, bad request) are not retried

MapQuest response shape (the parts we read):
    {"results": [{"locations": [{
        "latLng": {"lat": 42.35, "lng": -71.06},
        "street": "233 Bay State Rd", "adminArea5": "Boston",
        "adminArea3": "MA", "postalCode": "02215", "adminArea1": "US"
    }]}]}
"""

import logging
import time
import uuid
from typing import Any, Dict, Optional

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from devcamper.config import settings
from devcamper.exceptions import CircuitBreakerOpenError, GeocoderError, ValidationError
from devcamper.services.geocoder_base import GeoLocation, Geocoder

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker Implementation
# ══════════════════════════════════════════════════════════════════════════

class CircuitBreaker:
    """
    Circuit breaker guarding the geocoding provider.

    State Machine:
        CLOSED (normal operation)
            → On failure: increment failure_count
            → When failure_count >= threshold: transition to OPEN

        OPEN (rejecting all requests)
            → All calls raise CircuitBreakerOpenError immediately
            → After recovery_timeout seconds: transition to HALF_OPEN

        HALF_OPEN (testing recovery)
            → Allow ONE request through
            → On success: transition to CLOSED (reset failure_count)
            → On failure: transition back to OPEN (reset timer)

    Thread Safety:
        Plain counters; uvicorn async workers share a single process. With
        several worker processes each one keeps its own breaker.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time: Optional[float] = None

    def can_execute(self) -> bool:
        """
        Returns True if the call may proceed.

        Raises:
            CircuitBreakerOpenError if OPEN and the recovery timeout hasn't elapsed.
        """
        if self.state == self.CLOSED:
            return True

        if self.state == self.OPEN:
            elapsed = time.time() - (self.last_failure_time or 0)
            if elapsed >= self.recovery_timeout:
                logger.info("Circuit breaker transitioning to HALF_OPEN after %.1fs", elapsed)
                self.state = self.HALF_OPEN
                return True
            remaining = int(self.recovery_timeout - elapsed)
            raise CircuitBreakerOpenError(recovery_time=remaining)

        return True

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("Circuit breaker transitioning to CLOSED (service recovered)")
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time = None

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.time()

        if self.state == self.HALF_OPEN:
            logger.warning("Circuit breaker returning to OPEN (test request failed)")
            self.state = self.OPEN
        elif self.failure_count >= self.failure_threshold:
            logger.warning(
                "Circuit breaker OPENING after %d consecutive failures",
                self.failure_count,
            )
            self.state = self.OPEN


def _is_transient(exc: BaseException) -> bool:
    """Network errors and 5xx answers are worth another attempt; 4xx are not."""
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return False


# ══════════════════════════════════════════════════════════════════════════
# MapQuest Geocoder
# ══════════════════════════════════════════════════════════════════════════

class GeocoderService(Geocoder):
    """
    MapQuest implementation of the Geocoder interface.

    Error Handling Chain:
        HTTP call fails → tenacity retries transient errors
        → All retries fail → record circuit breaker failure → GeocoderError
        → Threshold reached → future calls rejected instantly
        → Recovery timeout → one test call (HALF_OPEN)
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        """
        Args:
            client: Injected AsyncClient (tests pass one built on a
                    MockTransport). When omitted a client is created lazily
                    and closed by `aclose()` at shutdown.
        """
        self._client = client
        self.circuit_breaker = CircuitBreaker(
            failure_threshold=settings.cb_failure_threshold,
            recovery_timeout=settings.cb_recovery_timeout,
        )
        logger.info(
            "GeocoderService initialized with url=%s, circuit_breaker(threshold=%d, recovery=%ds)",
            settings.geocoder_url,
            settings.cb_failure_threshold,
            settings.cb_recovery_timeout,
        )

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=settings.geocoder_timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def geocode(self, address: str) -> GeoLocation:
        """
        Resolve `address` to a GeoLocation.

        Flow:
            1. Check circuit breaker → may raise CircuitBreakerOpenError
            2. Call MapQuest with retry logic
            3. Record success/failure in circuit breaker
            4. Pick the first location; none → ValidationError (400)
        """
        lookup_id = str(uuid.uuid4())[:8]

        self.circuit_breaker.can_execute()

        if not settings.geocoder_api_key:
            raise GeocoderError(
                message="Geocoding is not configured on this server",
                context={"lookup_id": lookup_id},
            )

        logger.info("[%s] Geocoding address (%d chars)", lookup_id, len(address))

        try:
            payload = await self._request(address, lookup_id)
        except (httpx.HTTPError, ValueError) as e:
            self.circuit_breaker.record_failure()
            logger.error("[%s] Geocoder failed after retries: %s", lookup_id, str(e))
            raise GeocoderError(
                message="Geocoding failed after multiple attempts. Please try again later.",
                retry_after=self.circuit_breaker.recovery_timeout,
                context={"lookup_id": lookup_id, "attempts": settings.retry_max_attempts},
            )

        self.circuit_breaker.record_success()
        return self._parse_location(payload, address)

    @retry(
        retry=retry_if_exception(_is_transient),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=settings.retry_jitter,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _request(self, address: str, lookup_id: str) -> Dict[str, Any]:
        """
        Single MapQuest round trip. Decorated separately so the circuit
        breaker check in geocode() is not retried.
        """
        start_time = time.time()
        response = await self.client.get(
            settings.geocoder_url,
            params={"key": settings.geocoder_api_key, "location": address},
        )
        duration_ms = (time.time() - start_time) * 1000
        logger.debug(
            "[%s] MapQuest answered %d in %.0fms",
            lookup_id,
            response.status_code,
            duration_ms,
        )
        response.raise_for_status()
        return response.json()

    @staticmethod
    def _parse_location(payload: Dict[str, Any], address: str) -> GeoLocation:
        try:
            loc = payload["results"][0]["locations"][0]
            lat_lng = loc["latLng"]
        except (KeyError, IndexError, TypeError):
            raise ValidationError(
                message=f"Could not geocode address '{address}'",
                field="address",
            )

        street = loc.get("street") or None
        city = loc.get("adminArea5") or None
        state = loc.get("adminArea3") or None
        zipcode = loc.get("postalCode") or None
        country = loc.get("adminArea1") or None

        # "233 Bay State Rd, Boston, MA 02215, US"
        region = " ".join(p for p in (state, zipcode) if p)
        formatted = ", ".join(p for p in (street, city, region, country) if p)

        return GeoLocation(
            latitude=float(lat_lng["lat"]),
            longitude=float(lat_lng["lng"]),
            formatted_address=formatted or address,
            street=street,
            city=city,
            state=state,
            zipcode=zipcode,
            country=country,
        )

    async def health_check(self) -> bool:
        """
        Configured and not tripped. No network call: MapQuest lookups count
        against the account quota.
        """
        return bool(settings.geocoder_api_key) and self.circuit_breaker.state != CircuitBreaker.OPEN


# ── Singleton Instance ────────────────────────────────────────────────────
# The circuit breaker state must be shared across all requests.
geocoder_service = GeocoderService()
