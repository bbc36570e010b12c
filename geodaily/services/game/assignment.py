from datetime import datetime, timedelta
from typing import Optional, Tuple

from flask import current_app
from sqlalchemy.exc import IntegrityError, OperationalError

from geodaily import db
from geodaily.errors import NoRiddleAvailable, TransientStorageFailure
from geodaily.models import Riddle, UserRiddle, utcnow


def period_bounds(now: datetime) -> Tuple[datetime, datetime]:
    """Start and end of the UTC day containing ``now``."""
    start = datetime(now.year, now.month, now.day)
    return start, start + timedelta(days=1)


def find_pending(user_id: int) -> Optional[UserRiddle]:
    return UserRiddle.query.filter(
        UserRiddle.user_id == user_id,
        UserRiddle.answered_at.is_(None),
    ).first()


def find_answered_in_period(user_id: int, now: datetime) -> Optional[UserRiddle]:
    start, end = period_bounds(now)
    return (
        UserRiddle.query.filter(
            UserRiddle.user_id == user_id,
            UserRiddle.answered_at >= start,
            UserRiddle.answered_at < end,
        )
        .order_by(UserRiddle.answered_at.desc())
        .first()
    )


def select_daily_riddle(now: datetime) -> Riddle:
    """Pick the riddle for the day of ``now``: riddles rotate by id, one per day."""
    count = Riddle.query.count()
    if not count:
        raise NoRiddleAvailable('No riddle is configured')
    offset = now.date().toordinal() % count
    riddle = Riddle.query.order_by(Riddle.id).offset(offset).first()
    if riddle is None:
        # catalog shrank between the count and the fetch
        raise NoRiddleAvailable('No riddle is configured')
    return riddle


def get_or_create_daily(user_id: int, now: Optional[datetime] = None) -> Tuple[UserRiddle, bool]:
    """Return the user's current assignment, creating today's if there is none.

    A pending assignment is always returned as-is, so the user sees the same
    riddle until they answer it. Once the day's riddle is answered, that answered
    assignment is returned instead of issuing another. Returns
    ``(assignment, is_new)``.
    """
    now = now or utcnow()

    pending = find_pending(user_id)
    if pending is not None:
        return pending, False

    answered = find_answered_in_period(user_id, now)
    if answered is not None:
        return answered, False

    riddle = select_daily_riddle(now)
    assignment = UserRiddle(user_id=user_id, riddle_id=riddle.id, assigned_at=now)
    db.session.add(assignment)
    try:
        db.session.commit()
    except IntegrityError:
        # Another request created the pending row first; hand back that one,
        # or the row itself if it was answered before we could re-read it
        db.session.rollback()
        winner = find_pending(user_id) or find_answered_in_period(user_id, now)
        if winner is None:
            raise
        current_app.logger.info(f"[assign-race] user={user_id} resolved to assignment={winner.id}")
        return winner, False
    except OperationalError as exc:
        db.session.rollback()
        current_app.logger.warning(f"[assign] user={user_id} storage failure: {exc}")
        raise TransientStorageFailure("Could not issue today's riddle, try again") from exc

    current_app.logger.info(f"[assign] user={user_id} riddle={riddle.id} assignment={assignment.id}")
    return assignment, True
