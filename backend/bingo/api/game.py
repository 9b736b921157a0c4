from flask import Blueprint, jsonify, request, current_app
from sqlalchemy.exc import SQLAlchemyError
from bingo import db
from bingo.models import Card, Player, Round
from bingo.services.games.errors import BingoError, NotFound, PersistenceFailure
from bingo.services.games.lifecycle import end_round, get_room, start_game, start_next_round
from bingo.services.games.marks import update_card_marks
from bingo.services.games.scheduler import draw_tick


game = Blueprint('game', __name__)


@game.errorhandler(BingoError)
def handle_bingo_error(exc):
    return jsonify(exc.to_dict()), exc.status_code


@game.errorhandler(SQLAlchemyError)
def handle_store_error(exc):
    db.session.rollback()
    current_app.logger.error(f"[store-fail] {request.path}: {exc}")
    err = PersistenceFailure('Store operation failed, retry the request')
    return jsonify(err.to_dict()), err.status_code


@game.route('/rooms/<string:room_code>/start', methods=['POST'])
def start(room_code):
    rnd = start_game(room_code)
    return jsonify({'round': rnd.to_dict()})


@game.route('/rooms/<string:room_code>/next-round', methods=['POST'])
def next_round(room_code):
    data = request.get_json(silent=True) or {}
    return jsonify(start_next_round(room_code, force=bool(data.get('force'))))


@game.route('/rooms/<string:room_code>/end-round', methods=['POST'])
def end_current_round(room_code):
    return jsonify(end_round(room_code))


@game.route('/rooms/<string:room_code>/state', methods=['GET'])
def get_room_state(room_code):
    room = get_room(room_code)
    payload = room.to_dict()
    current = room.current_round
    payload['current_round'] = current.to_dict() if current else None
    return jsonify(payload)


@game.route('/rooms/<string:room_code>/players/<int:player_id>/cards', methods=['GET'])
def get_player_cards(room_code, player_id):
    room = get_room(room_code)
    player = Player.query.filter_by(id=player_id, room_id=room.id).first()
    if not player:
        raise NotFound('player', player_id)
    current = room.current_round
    if current is None:
        return jsonify([])
    cards = Card.query.filter_by(player_id=player.id, round_id=current.id).order_by(Card.card_number).all()
    return jsonify([c.to_dict() for c in cards])


@game.route('/rounds/<int:round_id>/tick', methods=['POST'])
def tick(round_id):
    if db.session.get(Round, round_id) is None:
        raise NotFound('round', round_id)
    result = draw_tick(round_id)
    return jsonify(result._asdict())


@game.route('/cards/<int:card_id>/marks', methods=['POST'])
def mark_card(card_id):
    data = request.get_json(silent=True) or {}
    return jsonify(update_card_marks(card_id, data.get('marked_positions')))
