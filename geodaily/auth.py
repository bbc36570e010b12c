from functools import wraps

from flask import jsonify
from flask_login import current_user, login_required


def admin_required(view):
    """login_required plus a role check; anonymous -> 401, non-admin -> 403."""
    @wraps(view)
    @login_required
    def wrapper(*args, **kwargs):
        if not current_user.is_admin:
            return jsonify({'error': 'Forbidden', 'message': 'Admin role required'}), 403
        return view(*args, **kwargs)
    return wrapper
