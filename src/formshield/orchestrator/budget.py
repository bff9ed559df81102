"""Spend tracking against per-request and rolling-window limits."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import logging
import threading
import time

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_S = 24 * 60 * 60
DEFAULT_COST_PER_CALL_USD = 0.001


@dataclass
class RequestSpend:
    """Spend ledger for a single evaluation."""

    spend: float = 0.0


@dataclass(frozen=True)
class BudgetStats:
    rolling_spend: float
    request_count: int
    window_start: float


class BudgetGate:
    """Admits or denies remote classification attempts.

    The rolling window resets lazily: the first check or spend that observes
    the window has elapsed zeroes the rolling counters and moves the window
    start to now. All counter access happens under one lock, so concurrent
    evaluations can neither lose spend nor reset a window twice.

    Per-request spend lives in a ``RequestSpend`` owned by the evaluation
    (see ``open_request``), never on the gate, so overlapping evaluations do
    not see each other's spend.
    """

    def __init__(
        self,
        *,
        window_s: float = DEFAULT_WINDOW_S,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._window_s = float(window_s)
        self._clock = clock
        self._lock = threading.Lock()
        self._rolling_spend = 0.0
        self._request_count = 0
        self._window_start = clock()

    def _roll_window_locked(self) -> None:
        now = self._clock()
        if now - self._window_start > self._window_s:
            logger.info(
                "Budget window rolled over: spend=%.4f requests=%d",
                self._rolling_spend,
                self._request_count,
            )
            self._rolling_spend = 0.0
            self._request_count = 0
            self._window_start = now

    def _affordable_locked(
        self,
        request: RequestSpend | None,
        per_request_limit: float | None,
        rolling_limit: float | None,
    ) -> bool:
        self._roll_window_locked()
        request_spend = request.spend if request is not None else 0.0
        if per_request_limit is not None and request_spend >= per_request_limit:
            return False
        if rolling_limit is not None and self._rolling_spend >= rolling_limit:
            return False
        return True

    def _spend_locked(self, amount: float, request: RequestSpend | None) -> None:
        self._rolling_spend += amount
        self._request_count += 1
        if request is not None:
            request.spend += amount

    def open_request(self) -> RequestSpend:
        """Fresh zero-spend ledger for one evaluation."""
        return RequestSpend()

    def can_afford(
        self,
        per_request_limit: float | None = None,
        rolling_limit: float | None = None,
        *,
        request: RequestSpend | None = None,
    ) -> bool:
        with self._lock:
            return self._affordable_locked(request, per_request_limit, rolling_limit)

    def record_spend(
        self,
        amount: float = DEFAULT_COST_PER_CALL_USD,
        *,
        request: RequestSpend | None = None,
    ) -> None:
        with self._lock:
            self._roll_window_locked()
            self._spend_locked(amount, request)

    def try_reserve(
        self,
        amount: float = DEFAULT_COST_PER_CALL_USD,
        per_request_limit: float | None = None,
        rolling_limit: float | None = None,
        *,
        request: RequestSpend | None = None,
    ) -> bool:
        """Check both limits and record ``amount`` in one step.

        Returns False without spending when a limit is already met.
        """
        with self._lock:
            if not self._affordable_locked(request, per_request_limit, rolling_limit):
                return False
            self._spend_locked(amount, request)
            return True

    def reset(self) -> None:
        with self._lock:
            self._rolling_spend = 0.0
            self._request_count = 0
            self._window_start = self._clock()

    def stats(self) -> BudgetStats:
        with self._lock:
            self._roll_window_locked()
            return BudgetStats(
                rolling_spend=self._rolling_spend,
                request_count=self._request_count,
                window_start=self._window_start,
            )
