"""Booking list loading with bounded retry, owned by one view.

A BookingFeed is created when a view opens and closed when it goes away.
Closing wakes any pending backoff wait and stops further attempts, and a
closed feed never writes to its state again.
"""

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from zoneinfo import ZoneInfo

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    stop_when_event_set,
    wait_incrementing,
)

from src.nurse_visits.catalog import MESSAGES
from src.nurse_visits.errors import FetchTimeoutError, NetworkError, NurseVisitError
from src.nurse_visits.logging import get_logger
from src.nurse_visits.models import VisitRecord
from src.nurse_visits.normalize import DEFAULT_TIMEZONE, normalize_records

log = get_logger(__name__)

BookingSource = Callable[[], list[dict]]


class FeedClosed(Exception):
    """Raised inside an attempt when the owning view has gone away."""


@dataclass
class FeedState:
    records: list[VisitRecord] = field(default_factory=list)
    error: str = ""
    loading: bool = False
    attempts: int = 0


def describe_failure(exc: BaseException) -> str:
    """Inline message for a failed attempt."""
    if isinstance(exc, FetchTimeoutError):
        return MESSAGES["fetch_timeout"]
    if isinstance(exc, NetworkError):
        return MESSAGES["fetch_offline"]
    if isinstance(exc, NurseVisitError) and exc.message:
        return exc.message
    return MESSAGES["fetch_failed"]


class BookingFeed:
    """Loads and normalizes the booking list for a history or dashboard view."""

    def __init__(
        self,
        source: BookingSource,
        *,
        max_retries: int = 3,
        retry_delay: float = 2.0,
        timezone: ZoneInfo = DEFAULT_TIMEZONE,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        """Initialize BookingFeed.

        Args:
            source: Callable returning the raw booking list (e.g.
                ProxyClient.get_bookings); raises NurseVisitError on failure.
            max_retries: Total number of attempts before giving up.
            retry_delay: Base delay; the wait after attempt n is n * retry_delay.
            timezone: Zone used when parsing visit dates.
            sleep: Wait function; defaults to an interruptible wait on close().
        """
        self.source = source
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timezone = timezone
        self.state = FeedState()
        self._closed = threading.Event()
        self._sleep = sleep or self._wait

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def close(self) -> None:
        """Dispose of the feed; an in-flight retry loop stops at its next step."""
        self._closed.set()

    def __enter__(self) -> "BookingFeed":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _wait(self, seconds: float) -> None:
        self._closed.wait(seconds)

    def _attempt(self) -> list[dict]:
        if self.closed:
            raise FeedClosed()
        self.state.attempts += 1
        try:
            return self.source()
        except NurseVisitError as e:
            if not self.closed:
                self.state.error = describe_failure(e)
            raise

    def _log_retry(self, retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        log.warning(
            "fetch_attempt_failed",
            attempt=retry_state.attempt_number,
            max_attempts=self.max_retries,
            wait_seconds=retry_state.next_action.sleep if retry_state.next_action else None,
            error=str(exc),
            type=type(exc).__name__,
        )

    def load(self) -> FeedState:
        """Fetch the booking list, retrying failed attempts with backoff.

        Returns:
            The feed state. On success ``records`` holds the normalized list
            and ``error`` is empty; after the last failed attempt ``error``
            asks the user to refresh and ``records`` keeps its previous value.
        """
        if self.closed:
            return self.state

        self.state.loading = True
        self.state.error = ""
        self.state.attempts = 0

        retrying = Retrying(
            stop=stop_after_attempt(self.max_retries) | stop_when_event_set(self._closed),
            wait=wait_incrementing(start=self.retry_delay, increment=self.retry_delay),
            retry=retry_if_exception_type(NurseVisitError),
            sleep=self._sleep,
            before_sleep=self._log_retry,
            reraise=True,
        )

        try:
            raw = retrying(self._attempt)
        except FeedClosed:
            log.info("fetch_cancelled", attempts=self.state.attempts)
            return self.state
        except NurseVisitError as e:
            if self.closed:
                log.info("fetch_cancelled", attempts=self.state.attempts)
                return self.state
            log.error("fetch_gave_up", attempts=self.state.attempts, error=str(e))
            self.state.error = MESSAGES["fetch_exhausted"]
            self.state.loading = False
            return self.state

        if self.closed:
            return self.state

        self.state.records = normalize_records(raw, self.timezone)
        self.state.error = ""
        self.state.loading = False
        log.info("bookings_loaded", count=len(self.state.records), attempts=self.state.attempts)
        return self.state
