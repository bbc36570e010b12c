"""Admin lifecycle for locations and riddles.

Input dicts come straight from request JSON; every field is validated here so
the routes stay thin. A riddle's location must exist when the riddle is created
or re-pointed, checked explicitly rather than left to the foreign key.
"""

from flask import current_app

from geodaily import db
from geodaily.errors import Conflict, NotFound, ValidationError
from geodaily.models import Difficulty, Location, Riddle, UserRiddle
from geodaily.services.game.submission import coerce_coordinate

MAX_SHORT_DESCRIPTION = 200
MAX_RIDDLE_DESCRIPTION = 500
TIME_LIMIT_RANGE = (1, 86400)
MAX_DISTANCE_RANGE = (1, 50000)


def _whole_number(value, name):
    if isinstance(value, bool):
        raise ValidationError(f'{name} must be an integer')
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f'{name} must be an integer')
    if number != value and not isinstance(value, str):
        # whole numbers only
        raise ValidationError(f'{name} must be an integer')
    return number


def _int_in_range(value, name, bounds):
    low, high = bounds
    number = _whole_number(value, name)
    if not low <= number <= high:
        raise ValidationError(f'{name} must be between {low} and {high}')
    return number


def _image_url(value):
    if not isinstance(value, str) or not value.strip():
        raise ValidationError('image_url is required')
    value = value.strip()
    if not (value.startswith(('http://', 'https://')) or value.startswith('/')):
        raise ValidationError('image_url must be an http(s) URL or an absolute path')
    if len(value) > 512:
        raise ValidationError('image_url is too long')
    return value


def _short_description(value):
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError('short_description must be a string')
    if len(value) > MAX_SHORT_DESCRIPTION:
        raise ValidationError(f'short_description must be at most {MAX_SHORT_DESCRIPTION} characters')
    return value


def _difficulty(value):
    if isinstance(value, str) and value.upper() in Difficulty.__members__:
        return int(Difficulty[value.upper()])
    try:
        return int(Difficulty(_whole_number(value, 'difficulty')))
    except (ValidationError, ValueError):
        raise ValidationError('difficulty must be 1 (Easy), 2 (Medium) or 3 (Hard)')


def _riddle_description(value):
    if not isinstance(value, str) or not value.strip():
        raise ValidationError('description is required')
    if len(value) > MAX_RIDDLE_DESCRIPTION:
        raise ValidationError(f'description must be at most {MAX_RIDDLE_DESCRIPTION} characters')
    return value


# ---- Locations ----

def list_locations():
    return Location.query.order_by(Location.id).all()


def get_location(location_id: int) -> Location:
    location = db.session.get(Location, location_id)
    if location is None:
        raise NotFound(f'Location {location_id} not found')
    return location


def create_location(data: dict) -> Location:
    location = Location(
        latitude=coerce_coordinate(data.get('latitude'), 'latitude', 90),
        longitude=coerce_coordinate(data.get('longitude'), 'longitude', 180),
        image_url=_image_url(data.get('image_url')),
        short_description=_short_description(data.get('short_description')),
    )
    db.session.add(location)
    db.session.commit()
    current_app.logger.info(f"[location-create] location={location.id}")
    return location


def update_location(location_id: int, data: dict) -> Location:
    location = get_location(location_id)
    location.latitude = coerce_coordinate(data.get('latitude'), 'latitude', 90)
    location.longitude = coerce_coordinate(data.get('longitude'), 'longitude', 180)
    if 'image_url' in data:
        location.image_url = _image_url(data.get('image_url'))
    if 'short_description' in data:
        location.short_description = _short_description(data.get('short_description'))
    db.session.add(location)
    db.session.commit()
    current_app.logger.info(f"[location-update] location={location.id}")
    return location


def delete_location(location_id: int) -> None:
    location = get_location(location_id)
    if location.riddles.count():
        raise Conflict(f'Location {location_id} is used by a riddle')
    db.session.delete(location)
    db.session.commit()
    current_app.logger.info(f"[location-delete] location={location_id}")


# ---- Riddles ----

def list_riddles():
    return Riddle.query.order_by(Riddle.id).all()


def get_riddle(riddle_id: int) -> Riddle:
    riddle = db.session.get(Riddle, riddle_id)
    if riddle is None:
        raise NotFound(f'Riddle {riddle_id} not found')
    return riddle


def _existing_location_id(value) -> int:
    if value is None:
        raise ValidationError('location_id is required')
    location_id = _whole_number(value, 'location_id')
    if db.session.get(Location, location_id) is None:
        raise ValidationError('Invalid location: location not found')
    return location_id


def _riddle_fields(data: dict) -> dict:
    cfg = current_app.config
    return {
        'description': _riddle_description(data.get('description')),
        'difficulty': _difficulty(data.get('difficulty', int(Difficulty.MEDIUM))),
        'location_id': _existing_location_id(data.get('location_id')),
        'time_limit_seconds': _int_in_range(
            data.get('time_limit_seconds', cfg.get('DEFAULT_TIME_LIMIT_SEC', 300)),
            'time_limit_seconds', TIME_LIMIT_RANGE),
        'max_distance_meters': _int_in_range(
            data.get('max_distance_meters', cfg.get('DEFAULT_MAX_DISTANCE_M', 1000)),
            'max_distance_meters', MAX_DISTANCE_RANGE),
    }


def create_riddle(data: dict) -> Riddle:
    riddle = Riddle(**_riddle_fields(data))
    db.session.add(riddle)
    db.session.commit()
    current_app.logger.info(f"[riddle-create] riddle={riddle.id} location={riddle.location_id}")
    return riddle


def update_riddle(riddle_id: int, data: dict) -> Riddle:
    riddle = get_riddle(riddle_id)
    for field, value in _riddle_fields(data).items():
        setattr(riddle, field, value)
    db.session.add(riddle)
    db.session.commit()
    current_app.logger.info(f"[riddle-update] riddle={riddle.id} location={riddle.location_id}")
    return riddle


def delete_riddle(riddle_id: int) -> None:
    riddle = get_riddle(riddle_id)
    if UserRiddle.query.filter_by(riddle_id=riddle.id).count():
        raise Conflict(f'Riddle {riddle_id} has been assigned to players')
    db.session.delete(riddle)
    db.session.commit()
    current_app.logger.info(f"[riddle-delete] riddle={riddle_id}")
