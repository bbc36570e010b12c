import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import OperationalError

from geodaily import db
from geodaily.errors import (
    AlreadyAnswered,
    NoActiveRiddle,
    TransientStorageFailure,
    ValidationError,
)
from geodaily.models import Riddle, UserRiddle, utcnow
from .assignment import find_answered_in_period, find_pending
from .geo import distance
from .scoring import score


@dataclass(frozen=True)
class SubmissionResult:
    assignment_id: int
    riddle_id: int
    points: int
    distance_meters: float
    time_seconds: int

    def to_dict(self):
        return {
            'points': self.points,
            'distance_meters': self.distance_meters,
            'time_seconds': self.time_seconds,
        }


def coerce_coordinate(value, name: str, limit: float) -> float:
    """Validate a latitude/longitude value coming off the wire."""
    if value is None:
        raise ValidationError(f'{name} is required')
    if isinstance(value, bool):
        raise ValidationError(f'{name} must be a number')
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{name} must be a number')
    if not math.isfinite(number):
        raise ValidationError(f'{name} must be a finite number')
    if number < -limit or number > limit:
        raise ValidationError(f'{name} must be between {-limit:g} and {limit:g}')
    return number


def elapsed_seconds(assigned_at: datetime, now: datetime) -> int:
    return max(0, int((now - assigned_at).total_seconds()))


def _submit_once(user_id: int, latitude: float, longitude: float, now: datetime) -> SubmissionResult:
    assignment = find_pending(user_id)
    if assignment is None:
        if find_answered_in_period(user_id, now) is not None:
            raise AlreadyAnswered("Today's riddle has already been answered")
        raise NoActiveRiddle('No active riddle for this user')

    riddle = db.session.get(Riddle, assignment.riddle_id)
    location = riddle.location
    time_seconds = elapsed_seconds(assignment.assigned_at, now)
    distance_meters = distance(latitude, longitude, location.latitude, location.longitude)
    points = score(
        int(current_app.config.get('BASE_POINTS', 100)),
        distance_meters,
        time_seconds,
        riddle.max_distance_meters,
    )

    # Compare-and-swap: only a still-pending row is finalized, all fields at once
    stmt = (
        update(UserRiddle)
        .where(UserRiddle.id == assignment.id, UserRiddle.answered_at.is_(None))
        .values(
            answered_at=now,
            submitted_latitude=latitude,
            submitted_longitude=longitude,
            distance_meters=distance_meters,
            time_seconds=time_seconds,
            points=points,
        )
        .execution_options(synchronize_session=False)
    )
    try:
        result = db.session.execute(stmt)
        if result.rowcount != 1:
            db.session.rollback()
            current_app.logger.info(f"[answer-race] user={user_id} assignment={assignment.id} lost")
            raise AlreadyAnswered('This riddle has already been answered')
        db.session.commit()
    except OperationalError as exc:
        db.session.rollback()
        raise TransientStorageFailure('Could not record the answer, try again') from exc

    current_app.logger.info(
        f"[answer] user={user_id} assignment={assignment.id} riddle={riddle.id} "
        f"distance={distance_meters:.1f}m time={time_seconds}s points={points}"
    )
    return SubmissionResult(
        assignment_id=assignment.id,
        riddle_id=riddle.id,
        points=points,
        distance_meters=distance_meters,
        time_seconds=time_seconds,
    )


def submit_answer(user_id: int, latitude, longitude, now: Optional[datetime] = None) -> SubmissionResult:
    """Score a guess against the user's pending assignment and finalize it.

    Raises ValidationError for bad coordinates, NoActiveRiddle when the user has
    nothing to answer and AlreadyAnswered when the assignment was finalized
    already (including by a concurrent request). Transient storage failures are
    retried from the precondition check before being surfaced.
    """
    latitude = coerce_coordinate(latitude, 'latitude', 90)
    longitude = coerce_coordinate(longitude, 'longitude', 180)

    attempts = max(1, int(current_app.config.get('SUBMIT_RETRY_ATTEMPTS', 3)))
    for attempt in range(1, attempts + 1):
        try:
            return _submit_once(user_id, latitude, longitude, now or utcnow())
        except TransientStorageFailure:
            current_app.logger.warning(f"[answer-retry] user={user_id} attempt={attempt}/{attempts}")
            if attempt == attempts:
                raise
