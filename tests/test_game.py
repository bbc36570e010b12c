from datetime import datetime, timedelta

import pytest
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, OperationalError

from geodaily import db
from geodaily.errors import (
    AlreadyAnswered,
    NoActiveRiddle,
    NoRiddleAvailable,
    TransientStorageFailure,
    ValidationError,
)
from geodaily.models import UserRiddle
from geodaily.services.game import get_or_create_daily, submit_answer
from geodaily.services.game import submission as submission_module
from conftest import TARGET_LAT, TARGET_LON

pytestmark = pytest.mark.usefixtures('app_ctx')

NOON = datetime(2025, 12, 14, 12, 0, 0)


def test_get_or_create_daily_creates_pending_assignment(make_user, make_riddle):
    user_id = make_user('alice')
    riddle_id = make_riddle()

    assignment, is_new = get_or_create_daily(user_id, now=NOON)

    assert is_new is True
    assert assignment.user_id == user_id
    assert assignment.riddle_id == riddle_id
    assert assignment.assigned_at == NOON
    assert assignment.answered_at is None
    assert UserRiddle.query.filter_by(user_id=user_id).count() == 1


def test_get_or_create_daily_returns_existing_pending(make_user, make_riddle):
    user_id = make_user('alice')
    make_riddle()
    first, _ = get_or_create_daily(user_id, now=NOON)

    second, is_new = get_or_create_daily(user_id, now=NOON + timedelta(hours=1))

    assert is_new is False
    assert second.id == first.id
    assert second.assigned_at == NOON


def test_pending_assignment_carries_over_to_next_day(make_user, make_riddle):
    user_id = make_user('alice')
    make_riddle()
    make_riddle(description='Second riddle')
    first, _ = get_or_create_daily(user_id, now=NOON)

    again, is_new = get_or_create_daily(user_id, now=NOON + timedelta(days=1))

    assert is_new is False
    assert again.id == first.id


def test_storage_failure_while_assigning_is_transient(make_user, make_riddle, monkeypatch):
    user_id = make_user('alice')
    make_riddle()

    def broken_commit():
        raise OperationalError('INSERT INTO user_riddle', {}, Exception('database is locked'))

    monkeypatch.setattr(db.session, 'commit', broken_commit)

    with pytest.raises(TransientStorageFailure):
        get_or_create_daily(user_id, now=NOON)

    monkeypatch.undo()
    assert UserRiddle.query.filter_by(user_id=user_id).count() == 0


def test_assign_race_lost_to_an_already_answered_row(make_user, make_riddle, monkeypatch):
    user_id = make_user('alice')
    riddle_id = make_riddle()
    real_commit = db.session.commit

    def racing_commit():
        # A concurrent request creates and answers the row before this insert lands
        db.session.rollback()
        db.session.add(UserRiddle(
            user_id=user_id, riddle_id=riddle_id, assigned_at=NOON,
            answered_at=NOON + timedelta(seconds=30), submitted_latitude=TARGET_LAT,
            submitted_longitude=TARGET_LON, distance_meters=0.0, time_seconds=30, points=67,
        ))
        real_commit()
        raise IntegrityError('INSERT INTO user_riddle', {}, Exception('UNIQUE constraint failed'))

    monkeypatch.setattr(db.session, 'commit', racing_commit)

    assignment, is_new = get_or_create_daily(user_id, now=NOON + timedelta(minutes=1))

    assert is_new is False
    assert assignment.is_answered
    assert assignment.points == 67
    monkeypatch.undo()
    assert UserRiddle.query.filter_by(user_id=user_id).count() == 1


def test_no_riddle_available(make_user):
    user_id = make_user('alice')
    with pytest.raises(NoRiddleAvailable):
        get_or_create_daily(user_id, now=NOON)


def test_selection_rotates_by_day_and_is_deterministic(make_user, make_riddle):
    riddles = [make_riddle(description=f'Riddle {i}') for i in range(3)]
    alice_id = make_user('alice')
    bob_id = make_user('bob')

    a, _ = get_or_create_daily(alice_id, now=NOON)
    b, _ = get_or_create_daily(bob_id, now=NOON + timedelta(hours=3))
    assert a.riddle_id == b.riddle_id

    expected = riddles[NOON.date().toordinal() % 3]
    assert a.riddle_id == expected

    submit_answer(alice_id, TARGET_LAT, TARGET_LON, now=NOON + timedelta(minutes=1))
    tomorrow, is_new = get_or_create_daily(alice_id, now=NOON + timedelta(days=1))
    assert is_new is True
    assert tomorrow.riddle_id == riddles[(NOON.date().toordinal() + 1) % 3]


def test_answered_riddle_is_returned_for_rest_of_day(make_user, make_riddle):
    user_id = make_user('alice')
    make_riddle()
    assignment, _ = get_or_create_daily(user_id, now=NOON)
    submit_answer(user_id, TARGET_LAT, TARGET_LON, now=NOON + timedelta(seconds=5))

    again, is_new = get_or_create_daily(user_id, now=NOON + timedelta(hours=2))

    assert is_new is False
    assert again.id == assignment.id
    assert again.is_answered
    assert UserRiddle.query.filter_by(user_id=user_id).count() == 1


def test_submit_without_assignment_is_no_active_riddle(make_user, make_riddle):
    user_id = make_user('alice')
    make_riddle()
    with pytest.raises(NoActiveRiddle):
        submit_answer(user_id, TARGET_LAT, TARGET_LON, now=NOON)


def test_submit_at_target_immediately_scores_full(make_user, make_riddle):
    user_id = make_user('alice')
    make_riddle()
    assignment, _ = get_or_create_daily(user_id, now=NOON)

    result = submit_answer(user_id, TARGET_LAT, TARGET_LON, now=NOON)

    assert result.points == 100
    assert result.distance_meters == 0.0
    assert result.time_seconds == 0

    stored = db.session.get(UserRiddle, assignment.id)
    assert stored.answered_at == NOON
    assert stored.submitted_latitude == TARGET_LAT
    assert stored.submitted_longitude == TARGET_LON
    assert stored.points == 100
    assert stored.distance_meters == 0.0
    assert stored.time_seconds == 0


def test_submit_computes_elapsed_time_and_distance(make_user, make_riddle):
    user_id = make_user('alice')
    make_riddle(max_distance_meters=1000)
    get_or_create_daily(user_id, now=NOON)

    result = submit_answer(user_id, TARGET_LAT + 0.001, TARGET_LON + 0.001, now=NOON + timedelta(seconds=60, milliseconds=900))

    assert result.time_seconds == 60
    assert 100 < result.distance_meters < 200
    # distance factor ~0.87, time factor 0.5
    assert 40 <= result.points <= 45


def test_submit_far_away_scores_zero(make_user, make_riddle):
    user_id = make_user('alice')
    make_riddle(max_distance_meters=1000)
    get_or_create_daily(user_id, now=NOON)

    result = submit_answer(user_id, 52.2297, 21.0122, now=NOON)

    assert result.points == 0
    assert result.distance_meters > 1000


def test_clock_skew_clamps_time_to_zero(make_user, make_riddle):
    user_id = make_user('alice')
    make_riddle()
    get_or_create_daily(user_id, now=NOON)

    result = submit_answer(user_id, TARGET_LAT, TARGET_LON, now=NOON - timedelta(seconds=30))

    assert result.time_seconds == 0
    assert result.points == 100


def test_second_submit_is_already_answered_and_result_is_kept(make_user, make_riddle):
    user_id = make_user('alice')
    make_riddle()
    assignment, _ = get_or_create_daily(user_id, now=NOON)
    first = submit_answer(user_id, TARGET_LAT, TARGET_LON, now=NOON + timedelta(seconds=10))

    with pytest.raises(AlreadyAnswered):
        submit_answer(user_id, 0.0, 0.0, now=NOON + timedelta(seconds=20))

    stored = db.session.get(UserRiddle, assignment.id)
    assert stored.points == first.points
    assert stored.distance_meters == first.distance_meters
    assert stored.time_seconds == first.time_seconds
    assert stored.submitted_latitude == TARGET_LAT


def test_answer_from_previous_day_means_no_active_riddle(make_user, make_riddle):
    user_id = make_user('alice')
    make_riddle()
    get_or_create_daily(user_id, now=NOON)
    submit_answer(user_id, TARGET_LAT, TARGET_LON, now=NOON)

    with pytest.raises(NoActiveRiddle):
        submit_answer(user_id, TARGET_LAT, TARGET_LON, now=NOON + timedelta(days=1))


@pytest.mark.parametrize('lat, lon', [
    (None, 16.9),
    (52.4, None),
    (91, 16.9),
    (-90.5, 16.9),
    (52.4, 180.01),
    ('north', 16.9),
    (True, 16.9),
    (float('nan'), 16.9),
    (52.4, float('inf')),
])
def test_invalid_coordinates_are_rejected(make_user, make_riddle, lat, lon):
    user_id = make_user('alice')
    make_riddle()
    assignment, _ = get_or_create_daily(user_id, now=NOON)

    with pytest.raises(ValidationError):
        submit_answer(user_id, lat, lon, now=NOON)

    assert db.session.get(UserRiddle, assignment.id).answered_at is None


def test_lost_race_is_already_answered(make_user, make_riddle, monkeypatch):
    user_id = make_user('alice')
    make_riddle()
    assignment, _ = get_or_create_daily(user_id, now=NOON)

    # Another worker finalizes the row after this one has read it as pending
    stale = assignment
    db.session.execute(
        update(UserRiddle)
        .where(UserRiddle.id == assignment.id)
        .values(answered_at=NOON, submitted_latitude=1.0, submitted_longitude=1.0,
                distance_meters=5.0, time_seconds=1, points=99)
        .execution_options(synchronize_session=False)
    )
    db.session.commit()
    monkeypatch.setattr(submission_module, 'find_pending', lambda user_id: stale)

    with pytest.raises(AlreadyAnswered):
        submit_answer(user_id, TARGET_LAT, TARGET_LON, now=NOON)

    stored = db.session.get(UserRiddle, assignment.id)
    assert stored.points == 99
    assert stored.distance_meters == 5.0


def test_transient_failure_is_retried(make_user, make_riddle, monkeypatch):
    user_id = make_user('alice')
    make_riddle()
    assignment, _ = get_or_create_daily(user_id, now=NOON)

    real_execute = db.session.execute
    calls = {'n': 0}

    def flaky_execute(statement, *args, **kwargs):
        calls['n'] += 1
        if calls['n'] == 1:
            raise OperationalError('UPDATE user_riddle', {}, Exception('database is locked'))
        return real_execute(statement, *args, **kwargs)

    monkeypatch.setattr(db.session, 'execute', flaky_execute)

    result = submit_answer(user_id, TARGET_LAT, TARGET_LON, now=NOON)

    assert calls['n'] == 2
    assert result.points == 100
    assert db.session.get(UserRiddle, assignment.id).points == 100


def test_persistent_storage_failure_leaves_assignment_pending(make_user, make_riddle, monkeypatch):
    user_id = make_user('alice')
    make_riddle()
    assignment, _ = get_or_create_daily(user_id, now=NOON)

    def broken_execute(statement, *args, **kwargs):
        raise OperationalError('UPDATE user_riddle', {}, Exception('database is locked'))

    monkeypatch.setattr(db.session, 'execute', broken_execute)

    with pytest.raises(TransientStorageFailure):
        submit_answer(user_id, TARGET_LAT, TARGET_LON, now=NOON)

    monkeypatch.undo()
    stored = db.session.get(UserRiddle, assignment.id)
    assert stored.answered_at is None
    assert stored.points is None
    assert stored.distance_meters is None
    assert stored.time_seconds is None
