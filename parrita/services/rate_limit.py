import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from parrita.config import RATE_LIMIT_MAX_REQUESTS, RATE_LIMIT_WINDOW_MINUTES
from parrita.models import RateLimit


logger = logging.getLogger(__name__)


@dataclass
class RateLimitDecision:
    allowed: bool
    remaining: int


class RateLimiter:
    """
    Fixed-window request counter, one row per chat session.

    Each transition is a single conditional UPDATE so two requests for
    the same session cannot both read a stale count and slip past the
    cap. Storage failures let the request through.
    """

    def __init__(
        self,
        db,
        window_minutes: int = RATE_LIMIT_WINDOW_MINUTES,
        max_requests: int = RATE_LIMIT_MAX_REQUESTS,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.db = db
        self.window = timedelta(minutes=window_minutes)
        self.max_requests = max_requests
        self.clock = clock

    def check(self, session_id: str) -> RateLimitDecision:

        try:
            return self._check(session_id)

        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Rate limit check failed for %s, allowing: %s", session_id, e)
            return RateLimitDecision(allowed=True, remaining=self.max_requests)

    def _check(self, session_id: str, retry: bool = True) -> RateLimitDecision:

        now = self.clock()
        cutoff = now - self.window

        # ---------- SAME WINDOW, UNDER CAP ----------
        result = self.db.execute(
            update(RateLimit)
            .where(
                RateLimit.session_id == session_id,
                RateLimit.window_start > cutoff,
                RateLimit.request_count < self.max_requests,
            )
            .values(request_count=RateLimit.request_count + 1)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount:
            count = self.db.scalar(
                select(RateLimit.request_count)
                .where(RateLimit.session_id == session_id)
            )
            self.db.commit()
            return RateLimitDecision(
                allowed=True,
                remaining=max(self.max_requests - count, 0)
            )

        # ---------- WINDOW ELAPSED ----------
        result = self.db.execute(
            update(RateLimit)
            .where(
                RateLimit.session_id == session_id,
                RateLimit.window_start <= cutoff,
            )
            .values(request_count=1, window_start=now)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount:
            self.db.commit()
            return RateLimitDecision(allowed=True, remaining=self.max_requests - 1)

        # ---------- AT CAP ----------
        existing = self.db.execute(
            select(RateLimit.request_count, RateLimit.window_start)
            .where(RateLimit.session_id == session_id)
        ).first()

        if existing is not None:
            self.db.commit()

            if existing.window_start > cutoff and existing.request_count >= self.max_requests:
                logger.info("Rate limit exceeded for session: %s", session_id)
                return RateLimitDecision(allowed=False, remaining=0)

            # Another request moved the window between the two updates
            if retry:
                return self._check(session_id, retry=False)

            logger.warning("Rate limit window for %s kept moving, allowing", session_id)
            return RateLimitDecision(
                allowed=True,
                remaining=max(self.max_requests - existing.request_count, 0)
            )

        # ---------- FIRST REQUEST ----------
        try:
            self.db.add(
                RateLimit(
                    session_id=session_id,
                    request_count=1,
                    window_start=now
                )
            )
            self.db.commit()

        except IntegrityError:
            # Another request created the row first
            self.db.rollback()
            if not retry:
                raise
            return self._check(session_id, retry=False)

        return RateLimitDecision(allowed=True, remaining=self.max_requests - 1)
