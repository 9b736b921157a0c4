import time
from typing import List, Optional

from flask import current_app

from bingo import db
from bingo.models import Card, Player, Room, Round
from .cards import card_hash, generate_card, generate_draw_sequence
from .errors import InvalidState, NotFound
from .realtime import broadcast
from .scheduler import INITIAL_DELAY_SEC, complete_round, schedule_draw_tick
from .store import transactional


def get_room(room_code: str) -> Room:
    room = Room.query.filter_by(room_code=(room_code or '').upper()).first()
    if not room:
        raise NotFound('room', room_code)
    return room


def _seated_players(room: Room) -> List[Player]:
    return Player.query.filter_by(room_id=room.id).order_by(Player.id).all()


def _reset_room(room: Room, players: List[Player]) -> None:
    """Delete every round and card of the room so a start begins from scratch."""
    round_ids = [r.id for r in Round.query.filter_by(room_id=room.id).all()]
    player_ids = [p.id for p in players]
    if round_ids:
        Card.query.filter(Card.round_id.in_(round_ids)).delete(synchronize_session=False)
    if player_ids:
        Card.query.filter(Card.player_id.in_(player_ids)).delete(synchronize_session=False)
    Round.query.filter_by(room_id=room.id).delete(synchronize_session=False)
    # Scores are sums over cards; with no cards left they are all zero
    for p in players:
        p.total_score = 0
        db.session.add(p)
    db.session.flush()


def _create_round(room: Room, round_number: int, now: float) -> Round:
    rnd = Round(
        room_id=room.id,
        round_number=round_number,
        current_draw_index=0,
        status='active',
        start_time=now,
    )
    rnd.draw_sequence = generate_draw_sequence()
    db.session.add(rnd)
    db.session.flush()  # cards are seeded from the round id
    return rnd


def _issue_cards(room: Room, rnd: Round, players: List[Player]) -> int:
    issued = 0
    for player in players:
        for card_number in range(1, room.cards_per_player + 1):
            numbers = generate_card(room.id, rnd.id, player.id, card_number, room.free_center)
            db.session.add(Card(
                player_id=player.id,
                round_id=rnd.id,
                card_number=card_number,
                numbers=numbers,
                marked_positions=[False] * 25,
                is_winner=False,
                points_earned=0,
                card_hash=card_hash(numbers),
            ))
            issued += 1
    return issued


def _check_seats(room: Room, players: List[Player]) -> None:
    min_players = int(current_app.config.get('MIN_PLAYERS', 2))
    if len(players) < min_players:
        raise InvalidState(f'At least {min_players} players are required to start')
    if len(players) > room.max_players:
        raise InvalidState(f'Room allows at most {room.max_players} players')


@transactional
def _start_game(room_code: str, now: float):
    room = get_room(room_code)
    if room.status == 'finished':
        raise InvalidState('Game is already finished')
    if room.status == 'in_progress':
        # A live round is never reset, even if seats changed since it was dealt
        existing = room.current_round
        if room.current_round_number == 1 and existing is not None:
            current_app.logger.info(f"[start-dup] room={room.room_code} round={existing.id}")
            return existing, False
        raise InvalidState('Game is already in progress')
    players = _seated_players(room)
    _check_seats(room, players)

    _reset_room(room, players)
    room.status = 'in_progress'
    room.current_round_number = 1
    room.round_start_time = now
    db.session.add(room)
    rnd = _create_round(room, 1, now)
    issued = _issue_cards(room, rnd, players)
    current_app.logger.info(
        f"[round-start] room={room.room_code} round=1 id={rnd.id} players={len(players)} cards={issued}"
    )
    return rnd, True


def start_game(room_code: str, now: Optional[float] = None) -> Round:
    """Reset the room, open round 1, deal every seat its cards and start drawing."""
    now = time.time() if now is None else now
    rnd, created = _start_game(room_code, now)
    if created:
        room = rnd.room
        broadcast(room.room_code, 'room_update', room.to_dict())
        broadcast(room.room_code, 'round_update', rnd.to_dict())
        schedule_draw_tick(current_app._get_current_object(), rnd.id, INITIAL_DELAY_SEC)
    return rnd


@transactional
def _start_next_round(room_code: str, force: bool, now: float):
    room = get_room(room_code)
    if room.status == 'finished':
        return room, None, None
    if room.status != 'in_progress':
        raise InvalidState('Game has not been started')

    forced_id = None
    current = room.current_round
    if current is not None and current.status == 'active':
        if not force:
            raise InvalidState(f'Round {current.round_number} is still active')
        Round.query.filter(Round.id == current.id, Round.status == 'active').update(
            {'status': 'completed', 'end_time': now}, synchronize_session=False
        )
        forced_id = current.id
        current_app.logger.info(f"[round-force-complete] room={room.room_code} round={current.round_number}")

    next_number = (room.current_round_number or 0) + 1
    if next_number > room.rounds_total:
        room.status = 'finished'
        db.session.add(room)
        current_app.logger.info(f"[game-finish] room={room.room_code} rounds={room.rounds_total}")
        return room, None, forced_id

    players = _seated_players(room)
    room.current_round_number = next_number
    room.round_start_time = now
    db.session.add(room)
    rnd = _create_round(room, next_number, now)
    issued = _issue_cards(room, rnd, players)
    current_app.logger.info(
        f"[round-start] room={room.room_code} round={next_number} id={rnd.id} players={len(players)} cards={issued}"
    )
    return room, rnd, forced_id


def final_standings(room: Room) -> List[dict]:
    """Seats ranked by total score; ties share a placement."""
    ranked = sorted(_seated_players(room), key=lambda p: (-p.total_score, p.id))
    standings = []
    placement = 0
    previous = None
    for position, player in enumerate(ranked, start=1):
        if player.total_score != previous:
            placement = position
            previous = player.total_score
        entry = player.to_dict()
        entry['placement'] = placement
        standings.append(entry)
    return standings


def start_next_round(room_code: str, force: bool = False, now: Optional[float] = None) -> dict:
    """Open the next round, or finish the game once every round has been played.

    Returns ``{'round': ...}`` or ``{'gameComplete': True, 'standings': [...]}``.
    """
    now = time.time() if now is None else now
    room, rnd, forced_id = _start_next_round(room_code, force, now)
    if forced_id is not None:
        forced = db.session.get(Round, forced_id)
        broadcast(room.room_code, 'round_update', forced.to_dict())
    if rnd is None:
        broadcast(room.room_code, 'room_update', room.to_dict())
        return {'gameComplete': True, 'standings': final_standings(room)}
    broadcast(room.room_code, 'room_update', room.to_dict())
    broadcast(room.room_code, 'round_update', rnd.to_dict())
    schedule_draw_tick(current_app._get_current_object(), rnd.id, INITIAL_DELAY_SEC)
    return {'round': rnd.to_dict()}


@transactional
def _finish_after_last_round(room_id) -> bool:
    updated = Room.query.filter(
        Room.id == room_id,
        Room.status == 'in_progress',
        Room.current_round_number >= Room.rounds_total,
    ).update({'status': 'finished'}, synchronize_session=False)
    return updated == 1


def end_round(room_code: str, now: Optional[float] = None) -> dict:
    """Force-complete the room's current round ahead of its ceiling.

    Ending the last round also finishes the game.
    """
    room = get_room(room_code)
    current = room.current_round
    if current is None:
        raise InvalidState('Room has no round to end')
    completed = complete_round(current.id, now=now)
    db.session.refresh(current)
    result = {'round': current.to_dict(), 'completed': completed}
    if _finish_after_last_round(room.id):
        db.session.refresh(room)
        current_app.logger.info(f"[game-finish] room={room.room_code} rounds={room.rounds_total}")
        broadcast(room.room_code, 'room_update', room.to_dict())
    if room.status == 'finished':
        result['gameComplete'] = True
        result['standings'] = final_standings(room)
    return result
