from flask import Blueprint, jsonify, request, current_app
from opquiz.errors import RoomError, ValidationError
from opquiz.services.room.controller import RoomController


room = Blueprint('room', __name__)


def _room() -> RoomController:
    return current_app.extensions['quiz_room']


def _body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _text(data: dict, key: str, required_message=None):
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(required_message or f'{key} must be a string')
    return value


@room.before_request
def mark_room_active():
    _room().touch()


@room.errorhandler(RoomError)
def handle_room_error(exc):
    current_app.logger.info(f"[rejected] {request.method} {request.path} -> {exc.status_code} {exc.message}")
    return jsonify(exc.to_dict()), exc.status_code


@room.route('/join', methods=['POST'])
def join_room():
    data = _body()
    name = _text(data, 'name', 'Name is required') or ''
    password = _text(data, 'password', 'Invalid room password')
    return jsonify(_room().join(name, password))


@room.route('/state', methods=['GET'])
def get_room_state():
    player_id = request.args.get('playerId') or None
    return jsonify(_room().get_state(player_id))


@room.route('/next-round', methods=['POST'])
def next_round():
    data = _body()
    player_id = _text(data, 'playerId') or ''
    result = _room().next_round(player_id, data.get('roundDurationSeconds'))
    current_app.logger.info(f"[next_round] round={result['roundNumber']} started by player={player_id}")
    return jsonify(result)


@room.route('/answer', methods=['POST'])
def answer():
    data = _body()
    player_id = _text(data, 'playerId') or ''
    answer_title = _text(data, 'answerTitle', 'Answer title is required') or ''
    return jsonify(_room().answer(player_id, answer_title))


@room.route('/reset-scores', methods=['POST'])
def reset_scores():
    data = _body()
    player_id = _text(data, 'playerId') or ''
    scoreboard = _room().reset_scores(player_id)
    return jsonify({'ok': True, 'scoreboard': scoreboard})


@room.route('/leave', methods=['POST'])
def leave_room():
    data = _body()
    player_id = _text(data, 'playerId') or ''
    _room().leave(player_id)
    return jsonify({'ok': True})
