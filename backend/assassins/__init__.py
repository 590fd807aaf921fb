from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)


def create_app(config_class=Config, scheduler=None):
    """Build the Flask app and its single game room.

    ``scheduler`` drives the round clock and intermission timers; it
    defaults to Socket.IO background tasks. Tests pass a manual one.
    """
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from assassins.main import main
    flask_app.register_blueprint(main)

    from assassins.api.room import room_api
    flask_app.register_blueprint(room_api, url_prefix='/api/room')

    from assassins.services.games.room import RoomController
    from assassins.services.games.scheduler import SocketIOScheduler
    from assassins.socketio_events import (
        ConnectionRegistry, make_emitter, register_socketio_handlers, served_namespaces,
    )

    testing = flask_app.config.get('TESTING', False)
    connections = ConnectionRegistry()
    if scheduler is None:
        scheduler = SocketIOScheduler(socketio, logger=flask_app.logger)
    flask_app.extensions['connections'] = connections
    flask_app.extensions['room'] = RoomController(
        emit=make_emitter(connections, served_namespaces(testing)),
        scheduler=scheduler,
        config=flask_app.config,
        logger=flask_app.logger,
    )

    # Register Socket.IO event handlers on the freshly initialized server
    register_socketio_handlers(testing=testing)

    return flask_app
