from flask_socketio import join_room, leave_room, emit
from flask_login import current_user
from geodaily import socketio

ADMIN_ROOM = 'admin'


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_join_admin(data=None):
    # Only admins may watch the live answer feed
    if not current_user.is_authenticated or not current_user.is_admin:
        emit('error', {'message': 'Admin session required'})
        return
    join_room(ADMIN_ROOM)
    emit('joined', {'room': ADMIN_ROOM})


def handle_leave_admin(data=None):
    leave_room(ADMIN_ROOM)
    emit('left', {'room': ADMIN_ROOM})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on namespace '/ws'."""
    socketio.on_event('connect', handle_connect, namespace='/ws')
    socketio.on_event('join_admin', handle_join_admin, namespace='/ws')
    socketio.on_event('leave_admin', handle_leave_admin, namespace='/ws')
    socketio.on_event('ping', handle_ping, namespace='/ws')
