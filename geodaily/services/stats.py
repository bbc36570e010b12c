"""Read-only reporting over answered assignments."""

from sqlalchemy import func

from geodaily import db
from geodaily.models import Location, Riddle, User, UserRiddle


def _avg(value):
    return float(value) if value is not None else None


def riddle_stats():
    rows = (
        db.session.query(
            Riddle.id,
            Riddle.description,
            Location.id,
            Location.short_description,
            Location.latitude,
            Location.longitude,
            Location.image_url,
            func.count(UserRiddle.id),
            func.avg(UserRiddle.points),
            func.avg(UserRiddle.distance_meters),
            func.avg(UserRiddle.time_seconds),
        )
        .join(UserRiddle, UserRiddle.riddle_id == Riddle.id)
        .join(Location, Location.id == Riddle.location_id)
        .filter(UserRiddle.answered_at.isnot(None))
        .group_by(
            Riddle.id,
            Riddle.description,
            Location.id,
            Location.short_description,
            Location.latitude,
            Location.longitude,
            Location.image_url,
        )
        .order_by(Riddle.id)
        .all()
    )
    return [
        {
            'riddle_id': riddle_id,
            'description': description,
            'location_id': location_id,
            'short_description': short_description,
            'latitude': latitude,
            'longitude': longitude,
            'image_url': image_url,
            'times_answered': times_answered,
            'avg_score': _avg(avg_score),
            'avg_distance_meters': _avg(avg_distance),
            'avg_time_seconds': _avg(avg_time),
        }
        for (riddle_id, description, location_id, short_description, latitude, longitude,
             image_url, times_answered, avg_score, avg_distance, avg_time) in rows
    ]


def user_stats():
    rows = (
        db.session.query(
            User.id,
            User.username,
            func.count(UserRiddle.id),
            func.sum(UserRiddle.points),
            func.avg(UserRiddle.points),
        )
        .join(UserRiddle, UserRiddle.user_id == User.id)
        .filter(UserRiddle.answered_at.isnot(None))
        .group_by(User.id, User.username)
        .order_by(func.sum(UserRiddle.points).desc(), User.id)
        .all()
    )
    return [
        {
            'user_id': user_id,
            'username': username,
            'riddles_answered': answered,
            'total_score': int(total or 0),
            'average_score': _avg(average),
        }
        for user_id, username, answered, total, average in rows
    ]


def all_submissions():
    rows = (
        db.session.query(UserRiddle, User.username)
        .join(User, User.id == UserRiddle.user_id)
        .filter(UserRiddle.answered_at.isnot(None))
        .order_by(UserRiddle.answered_at, UserRiddle.id)
        .all()
    )
    return [
        {
            'assignment_id': ur.id,
            'user_id': ur.user_id,
            'username': username,
            'riddle_id': ur.riddle_id,
            'submitted_latitude': ur.submitted_latitude,
            'submitted_longitude': ur.submitted_longitude,
            'distance_meters': ur.distance_meters,
            'time_seconds': ur.time_seconds,
            'score': ur.points,
            'answered_at': ur.answered_at.isoformat(),
        }
        for ur, username in rows
    ]


def my_stats(user_id: int):
    """Summary of one player's answered riddles."""
    answered, total, average, best, avg_distance, avg_time = (
        db.session.query(
            func.count(UserRiddle.id),
            func.sum(UserRiddle.points),
            func.avg(UserRiddle.points),
            func.max(UserRiddle.points),
            func.avg(UserRiddle.distance_meters),
            func.avg(UserRiddle.time_seconds),
        )
        .filter(UserRiddle.user_id == user_id, UserRiddle.answered_at.isnot(None))
        .one()
    )
    return {
        'riddles_answered': answered,
        'total_score': int(total or 0),
        'average_score': _avg(average),
        'best_score': best,
        'avg_distance_meters': _avg(avg_distance),
        'avg_time_seconds': _avg(avg_time),
    }
