from flask import Blueprint, current_app, jsonify


room_api = Blueprint('room', __name__)


@room_api.route('/state', methods=['GET'])
def get_room_state():
    """Return the lobby/round state plus timer durations for countdowns."""
    room = current_app.extensions['room']
    cfg = current_app.config
    payload = room.snapshot()
    payload['durations'] = {
        'round': int(cfg.get('ROUND_DURATION_SEC', 45)),
        'intermission': int(cfg.get('INTERMISSION_SEC', 5)),
    }
    payload['win_score'] = int(cfg.get('WIN_SCORE', 5))
    payload['min_players'] = int(cfg.get('MIN_PLAYERS', 2))
    return jsonify(payload)
