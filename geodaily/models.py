from geodaily import db, bcrypt
from flask_login import UserMixin
from datetime import datetime, timezone
import enum


def utcnow():
    """Naive UTC timestamp, matching what SQLite and PostgreSQL hand back."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value):
    return value.isoformat() if value else None


class Difficulty(enum.IntEnum):
    EASY = 1
    MEDIUM = 2
    HARD = 3


ROLE_USER = 'user'
ROLE_ADMIN = 'admin'
ROLES = (ROLE_USER, ROLE_ADMIN)


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(db.String(16), nullable=False, default=ROLE_USER)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    @property
    def is_admin(self):
        return self.role == ROLE_ADMIN

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'role': self.role,
        }


class Location(db.Model):
    __tablename__ = 'location'
    id = db.Column(db.Integer, primary_key=True)
    latitude = db.Column(db.Float, nullable=False)
    longitude = db.Column(db.Float, nullable=False)
    image_url = db.Column(db.String(512), nullable=False)
    short_description = db.Column(db.String(200), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    riddles = db.relationship('Riddle', back_populates='location', lazy='dynamic')

    def to_dict(self):
        return {
            'id': self.id,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'image_url': self.image_url,
            'short_description': self.short_description,
        }


class Riddle(db.Model):
    __tablename__ = 'riddle'
    id = db.Column(db.Integer, primary_key=True)
    description = db.Column(db.Text, nullable=False)
    difficulty = db.Column(db.Integer, nullable=False, default=int(Difficulty.MEDIUM))
    location_id = db.Column(db.Integer, db.ForeignKey('location.id'), nullable=False, index=True)
    time_limit_seconds = db.Column(db.Integer, nullable=False, default=300)
    max_distance_meters = db.Column(db.Integer, nullable=False, default=1000)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    location = db.relationship('Location', back_populates='riddles')
    assignments = db.relationship('UserRiddle', back_populates='riddle', lazy='dynamic')

    def to_dict(self):
        return {
            'id': self.id,
            'description': self.description,
            'difficulty': int(self.difficulty),
            'difficulty_name': Difficulty(self.difficulty).name.lower(),
            'location_id': self.location_id,
            'latitude': self.location.latitude if self.location else None,
            'longitude': self.location.longitude if self.location else None,
            'image_url': self.location.image_url if self.location else None,
            'time_limit_seconds': self.time_limit_seconds,
            'max_distance_meters': self.max_distance_meters,
        }


class UserRiddle(db.Model):
    """One user's attempt at one riddle. Pending while answered_at is NULL."""
    __tablename__ = 'user_riddle'
    __table_args__ = (
        # At most one pending assignment per user, enforced by storage
        db.Index(
            'uq_user_riddle_pending',
            'user_id',
            unique=True,
            sqlite_where=db.text('answered_at IS NULL'),
            postgresql_where=db.text('answered_at IS NULL'),
        ),
    )
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    riddle_id = db.Column(db.Integer, db.ForeignKey('riddle.id'), nullable=False, index=True)
    assigned_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    answered_at = db.Column(db.DateTime, nullable=True)
    submitted_latitude = db.Column(db.Float, nullable=True)
    submitted_longitude = db.Column(db.Float, nullable=True)
    distance_meters = db.Column(db.Float, nullable=True)
    time_seconds = db.Column(db.Integer, nullable=True)
    points = db.Column(db.Integer, nullable=True)

    user = db.relationship('User')
    riddle = db.relationship('Riddle', back_populates='assignments')

    @property
    def is_answered(self):
        return self.answered_at is not None

    def to_daily_dict(self):
        riddle = self.riddle
        payload = {
            'assignment_id': self.id,
            'riddle_id': riddle.id,
            'description': riddle.description,
            'image_url': riddle.location.image_url,
            'difficulty': int(riddle.difficulty),
            'time_limit_seconds': riddle.time_limit_seconds,
            'max_distance_meters': riddle.max_distance_meters,
            'is_answered': self.is_answered,
            'assigned_at': _iso(self.assigned_at),
        }
        if self.is_answered:
            payload['answered_at'] = _iso(self.answered_at)
            payload['points'] = self.points
            payload['distance_meters'] = self.distance_meters
            payload['time_seconds'] = self.time_seconds
        return payload
