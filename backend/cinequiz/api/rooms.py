from flask import Blueprint, jsonify, request, current_app
from cinequiz import db, bcrypt
from cinequiz.errors import RoomError
from cinequiz.models import MultiplayerRoom, RoomParticipant, User, GAME_MODES, CATEGORIES
import random


rooms = Blueprint('rooms', __name__)


def _int_in_range(value, default, low, high):
    if value is None:
        return default
    if isinstance(value, bool):
        raise ValueError
    value = int(value)
    if not low <= value <= high:
        raise ValueError
    return value


@rooms.route('', methods=['POST'])
def create_room():
    """
    Creates a multiplayer room. The host joins it over the socket like everyone else.
    """
    data = request.get_json(silent=True) or {}
    name = (data.get('name') or '').strip()
    host_id = data.get('hostId')
    if not all([name, host_id]):
        return jsonify({'error': 'Room name and hostId are required'}), 400

    mode = data.get('gameMode') or 'multiplayer'
    if mode not in GAME_MODES:
        return jsonify({'error': f'Unknown game mode: {mode}'}), 400
    category = data.get('category') or None
    if category is not None and category not in CATEGORIES:
        return jsonify({'error': f'Unknown category: {category}'}), 400
    try:
        max_players = _int_in_range(data.get('maxPlayers'), 8, 1, 50)
        time_per_question = _int_in_range(data.get('timePerQuestion'), 30, 5, 300)
    except (TypeError, ValueError):
        return jsonify({'error': 'maxPlayers must be 1-50 and timePerQuestion 5-300'}), 400

    host = User.query.filter_by(id=str(host_id)).first()
    if not host:
        return jsonify({'error': 'User not found'}), 404

    is_private = bool(data.get('isPrivate'))
    password = data.get('password') or None
    if password is not None and not isinstance(password, str):
        return jsonify({'error': 'password must be a string'}), 400
    room = MultiplayerRoom(
        name=name,
        host_id=host.id,
        max_players=max_players,
        current_players=0,
        game_mode=mode,
        category=category,
        time_per_question=time_per_question,
        is_private=is_private,
        password_hash=bcrypt.generate_password_hash(password).decode('utf-8') if password else None,
    )
    db.session.add(room)
    db.session.commit()
    current_app.logger.info(f"[room-create] room={room.id} host={host.id} private={is_private}")
    return jsonify(room.to_dict()), 201


@rooms.route('', methods=['GET'])
def list_rooms():
    include_private = request.args.get('includePrivate') == 'true'
    query = MultiplayerRoom.query.filter_by(is_active=True, is_started=False)
    if not include_private:
        query = query.filter_by(is_private=False)
    found = query.order_by(MultiplayerRoom.created_at.desc()).all()
    return jsonify([room.to_dict() for room in found])


@rooms.route('/<string:room_id>', methods=['GET'])
def get_room(room_id):
    room = MultiplayerRoom.query.filter_by(id=room_id).first_or_404()
    return jsonify(room.to_dict())


@rooms.route('/<string:room_id>/participants', methods=['GET'])
def get_room_participants(room_id):
    MultiplayerRoom.query.filter_by(id=room_id).first_or_404()
    participants = (
        RoomParticipant.query.filter_by(room_id=room_id)
        .order_by(RoomParticipant.joined_at.asc())
        .all()
    )
    return jsonify([p.to_dict() for p in participants])


@rooms.route('/quick-match', methods=['POST'])
def quick_match():
    """
    Finds an open public room for the mode and category, or creates one with the caller as host.
    """
    data = request.get_json(silent=True) or {}
    user_id = data.get('userId')
    mode = data.get('gameMode') or 'multiplayer'
    category = data.get('category') or None
    if not user_id:
        return jsonify({'error': 'userId is required'}), 400
    if mode not in GAME_MODES or (category is not None and category not in CATEGORIES):
        return jsonify({'error': 'Unknown game mode or category'}), 400
    user = User.query.filter_by(id=str(user_id)).first()
    if not user:
        return jsonify({'error': 'User not found'}), 404

    room = (
        MultiplayerRoom.query.filter_by(
            game_mode=mode, category=category, is_active=True, is_started=False, is_private=False
        )
        .filter(MultiplayerRoom.current_players < MultiplayerRoom.max_players)
        .order_by(MultiplayerRoom.created_at.asc())
        .first()
    )
    if room is None:
        room = MultiplayerRoom(
            name=f'Quick game #{random.randint(0, 999)}',
            host_id=user.id,
            game_mode=mode,
            category=category,
            is_private=False,
            max_players=int(current_app.config.get('QUICK_MATCH_MAX_PLAYERS', 4)),
            current_players=0,
        )
        db.session.add(room)
        db.session.commit()
        current_app.logger.info(f"[quick-match] created room={room.id} host={user.id}")
    return jsonify({'room': room.to_dict()})


_STATUS_BY_CODE = {
    'not_found': 404,
    'forbidden': 403,
    'invalid_state': 409,
    'store_unavailable': 503,
}


def _coordinator():
    return current_app.extensions['room_coordinator']


def _room_error(exc):
    return jsonify({'error': exc.message, 'code': exc.code}), _STATUS_BY_CODE.get(exc.code, 400)


@rooms.route('/<string:room_id>/join', methods=['POST'])
def join_room(room_id):
    """
    Joins a room without a socket. Counts and the room broadcast go through the
    coordinator; the player receives events once a socket joins the same room.
    """
    data = request.get_json(silent=True) or {}
    user_id = data.get('userId')
    password = data.get('password') or None
    if not user_id:
        return jsonify({'error': 'userId is required'}), 400
    if password is not None and not isinstance(password, str):
        return jsonify({'error': 'password must be a string'}), 400
    user = User.query.filter_by(id=str(user_id)).first()
    if not user:
        return jsonify({'error': 'User not found'}), 404

    try:
        participants = _coordinator().enroll(room_id, user.id, password=password)
    except RoomError as exc:
        current_app.logger.info(f"[http-join] room={room_id} user={user.id} rejected code={exc.code}")
        return _room_error(exc)
    participant = next((p for p in participants if p['userId'] == user.id), None)
    return jsonify(participant)


@rooms.route('/<string:room_id>/leave', methods=['POST'])
def leave_room(room_id):
    data = request.get_json(silent=True) or {}
    user_id = data.get('userId')
    if not user_id:
        return jsonify({'error': 'userId is required'}), 400
    MultiplayerRoom.query.filter_by(id=room_id).first_or_404()

    try:
        removed = _coordinator().leave(room_id, str(user_id))
    except RoomError as exc:
        current_app.logger.info(f"[http-leave] room={room_id} user={user_id} failed code={exc.code}")
        return _room_error(exc)
    return jsonify({'success': True, 'removed': removed})
