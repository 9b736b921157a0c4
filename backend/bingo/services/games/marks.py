from typing import Sequence

from flask import current_app

from bingo import db
from bingo.models import Card, Player
from .cards import FREE
from .errors import InvalidMarks, NotFound
from .realtime import broadcast
from .scoring import check_patterns, score_patterns
from .store import transactional


def validate_marks(card: Card, marked: Sequence[bool]) -> list:
    """Return the normalised mark vector for ``card`` or raise InvalidMarks.

    Every marked cell must be FREE or hold a number already drawn in the
    card's round. FREE cells are always reported as marked.
    """
    if not isinstance(marked, (list, tuple)) or len(marked) != 25:
        raise InvalidMarks('marked_positions must be a list of 25 booleans')
    if not all(isinstance(m, bool) for m in marked):
        raise InvalidMarks('marked_positions must contain only booleans')

    numbers = card.numbers
    drawn = set(card.round.drawn_numbers)
    undrawn = [
        pos for pos, (number, is_marked) in enumerate(zip(numbers, marked))
        if is_marked and number != FREE and number not in drawn
    ]
    if undrawn:
        raise InvalidMarks('Marked numbers have not been drawn yet', positions=undrawn)
    return [True if number == FREE else is_marked for number, is_marked in zip(numbers, marked)]


def recompute_total_score(player_id) -> int:
    """Rebuild a seat's total from its cards instead of incrementing it."""
    total = db.session.query(db.func.coalesce(db.func.sum(Card.points_earned), 0)).filter(
        Card.player_id == player_id
    ).scalar()
    player = db.session.get(Player, player_id)
    player.total_score = int(total)
    db.session.add(player)
    return player.total_score


@transactional
def _apply_marks(card_id, marked):
    card = db.session.get(Card, card_id)
    if card is None:
        raise NotFound('card', card_id)
    marks = validate_marks(card, marked)
    patterns = check_patterns(marks)
    points = score_patterns(patterns)

    card.marked_positions = marks
    card.points_earned = points
    card.is_winner = patterns.bingo
    db.session.add(card)
    db.session.flush()
    total = recompute_total_score(card.player_id)
    current_app.logger.info(
        f"[marks] card={card.id} player={card.player_id} lines={patterns.lines} points={points} total={total}"
    )
    return card, patterns, points, total


def update_card_marks(card_id, marked: Sequence[bool]) -> dict:
    """Score a card's requested marks, persist them and refresh the seat total.

    Replaying the same request leaves the same stored values.
    """
    card, patterns, points, total = _apply_marks(card_id, marked)
    player = card.player
    room_code = player.room.room_code
    broadcast(room_code, 'card_update', card.to_dict())
    broadcast(room_code, 'score_update', {'player_id': player.id, 'total_score': total})
    return {
        'points': points,
        'patterns': patterns.to_dict(),
        'totalScore': total,
        'isWinner': patterns.bingo,
    }
