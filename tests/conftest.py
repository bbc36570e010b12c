import os
from contextlib import nullcontext

import pytest
from flask import has_app_context

from geodaily import create_app, db, socketio
from geodaily.models import Location, Riddle, User


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_ENABLED = False
    BCRYPT_LOG_ROUNDS = 4
    BASE_POINTS = 100
    SUBMIT_RETRY_ATTEMPTS = 3
    DEFAULT_TIME_LIMIT_SEC = 300
    DEFAULT_MAX_DISTANCE_M = 1000


# Poznań, Old Market Square
TARGET_LAT = 52.4064
TARGET_LON = 16.9252
RIDDLE_TEXT = 'Goats butt heads above this square at noon.'
IMAGE_URL = 'https://example.com/test-image.jpg'


def _context(application):
    # Reuse the caller's app context when a test already holds one
    return nullcontext() if has_app_context() else application.app_context()


@pytest.fixture()
def flask_app():
    # Requests get their own app context (and so their own Flask-Login user);
    # service-level tests opt into a long-lived one via ``app_ctx``.
    application = create_app(TestConfig)
    with application.app_context():
        import geodaily.models  # noqa: F401
        db.create_all()
    yield application
    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def app_ctx(flask_app):
    with flask_app.app_context():
        yield flask_app
        db.session.remove()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def make_user(flask_app):
    """Create a user and return its id."""
    def _make(username, role='user', password='password'):
        with _context(flask_app):
            user = User(username=username, role=role)
            user.set_password(password)
            db.session.add(user)
            db.session.commit()
            return user.id
    return _make


@pytest.fixture()
def login(flask_app, make_user):
    """Create a user and return ``(test_client, user_id)`` holding their session."""
    def _login(username, role='user'):
        user_id = make_user(username, role=role)
        test_client = flask_app.test_client()
        res = test_client.post('/login', json={'username': username, 'password': 'password'})
        assert res.status_code == 200
        return test_client, user_id
    return _login


@pytest.fixture()
def make_riddle(flask_app):
    """Create a location plus a riddle pointing at it and return the riddle id."""
    def _make(lat=TARGET_LAT, lon=TARGET_LON, max_distance_meters=1000, time_limit_seconds=300,
              description=RIDDLE_TEXT):
        with _context(flask_app):
            location = Location(
                latitude=lat,
                longitude=lon,
                image_url=IMAGE_URL,
                short_description='Test Game Location',
            )
            db.session.add(location)
            db.session.commit()
            riddle = Riddle(
                description=description,
                difficulty=2,
                location_id=location.id,
                time_limit_seconds=time_limit_seconds,
                max_distance_meters=max_distance_meters,
            )
            db.session.add(riddle)
            db.session.commit()
            return riddle.id
    return _make


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(flask_app, namespace='/ws')
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass
