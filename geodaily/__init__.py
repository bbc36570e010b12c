from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from geodaily.errors import register_error_handlers
    register_error_handlers(flask_app)

    from geodaily.main import main
    flask_app.register_blueprint(main)

    from geodaily.api.game import game
    flask_app.register_blueprint(game, url_prefix='/api/game')

    from geodaily.api.users import users
    flask_app.register_blueprint(users, url_prefix='/api/users')

    from geodaily.api.catalog import catalog
    flask_app.register_blueprint(catalog, url_prefix='/api')

    from geodaily.api.admin import admin
    flask_app.register_blueprint(admin, url_prefix='/api/admin')

    from geodaily.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    from geodaily.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Unauthorized', 'message': 'Login required'}), 401

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database with an admin and two players."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            seed = [('admin', 'admin'), ('player1', 'user'), ('player2', 'user')]
            for username, role in seed:
                user = User(username=username, role=role)
                user.set_password('password')
                db.session.add(user)

            db.session.commit()
            print('Database has been reset and seeded!')

    @click.command('seed-demo')
    def seed_demo_command():
        """Adds a sample location and riddle so the daily endpoint has something to serve."""
        from geodaily.services import catalog as catalog_service
        with flask_app.app_context():
            location = catalog_service.create_location({
                'latitude': 52.4064,
                'longitude': 16.9252,
                'image_url': 'https://example.com/images/old-market-square.jpg',
                'short_description': 'Old Market Square',
            })
            riddle = catalog_service.create_riddle({
                'description': 'Goats butt heads above this square every day at noon.',
                'difficulty': 1,
                'location_id': location.id,
            })
            print(f'Seeded location {location.id} and riddle {riddle.id}')

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(seed_demo_command)

    return flask_app
