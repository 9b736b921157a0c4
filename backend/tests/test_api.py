from bingo import db
from bingo.models import Card, Round
from bingo.services.games.scheduler import INITIAL_DELAY_SEC


def _start(client, code='ROOM1'):
    res = client.post(f'/api/rooms/{code}/start')
    assert res.status_code == 200
    return res.get_json()['round']


def _rewind(round_id, seconds=INITIAL_DELAY_SEC):
    """Move a round's start back so its next draw slot is due."""
    round_row = db.session.get(Round, round_id)
    round_row.start_time -= seconds
    db.session.commit()


def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert client.get('/health').get_json() == {'status': 'ok'}


def test_start_game_and_state(client, make_room):
    make_room(players=2, cards_per_player=2)
    rnd = _start(client)
    assert rnd['round_number'] == 1
    assert rnd['drawn_numbers'] == []
    # The undrawn part of the sequence is never exposed
    assert 'draw_sequence' not in rnd

    state = client.get('/api/rooms/room1/state').get_json()
    assert state['status'] == 'in_progress'
    assert state['current_round_number'] == 1
    assert state['current_round']['id'] == rnd['id']
    assert len(state['players']) == 2


def test_start_twice_returns_same_round(client, make_room):
    make_room(players=2, cards_per_player=1)
    first = _start(client)
    second = _start(client)
    assert first['id'] == second['id']
    assert Card.query.filter_by(round_id=first['id']).count() == 2


def test_start_errors_are_structured(client, make_room):
    res = client.post('/api/rooms/NOPE/start')
    assert res.status_code == 404
    assert res.get_json() == {'error': 'Room NOPE not found', 'code': 'not_found', 'retryable': False}

    make_room(players=1)
    res = client.post('/api/rooms/ROOM1/start')
    assert res.status_code == 409
    body = res.get_json()
    assert body['code'] == 'invalid_state'
    assert body['retryable'] is False


def test_player_cards(client, make_room):
    room = make_room(players=2, cards_per_player=3)
    rnd = _start(client)
    player_id = room.players[0].id
    cards = client.get(f'/api/rooms/ROOM1/players/{player_id}/cards').get_json()
    assert [c['card_number'] for c in cards] == [1, 2, 3]
    assert all(c['round_id'] == rnd['id'] for c in cards)
    assert all(len(c['card_hash']) == 64 for c in cards)

    res = client.get('/api/rooms/ROOM1/players/9999/cards')
    assert res.status_code == 404


def test_tick_endpoint_draws(client, make_room):
    make_room()
    rnd = _start(client)
    assert client.post(f"/api/rounds/{rnd['id']}/tick").get_json()['action'] == 'pending'
    _rewind(rnd['id'])
    res = client.post(f"/api/rounds/{rnd['id']}/tick")
    assert res.status_code == 200
    body = res.get_json()
    assert body['action'] == 'drawn'
    assert body['draw_index'] == 1
    state = client.get('/api/rooms/ROOM1/state').get_json()
    assert state['current_round']['drawn_numbers'] == [body['number']]
    assert state['current_round']['current_number'] == body['number']

    assert client.post('/api/rounds/9999/tick').status_code == 404


def test_next_round_flow(client, make_room):
    make_room(rounds_total=2)
    first = _start(client)

    res = client.post('/api/rooms/ROOM1/next-round')
    assert res.status_code == 409

    res = client.post('/api/rooms/ROOM1/end-round')
    assert res.get_json()['completed'] is True
    res = client.post('/api/rooms/ROOM1/next-round')
    assert res.status_code == 200
    second = res.get_json()['round']
    assert second['round_number'] == 2
    assert db.session.get(Round, first['id']).status == 'completed'

    res = client.post('/api/rooms/ROOM1/next-round', json={'force': True})
    body = res.get_json()
    assert body['gameComplete'] is True
    assert client.get('/api/rooms/ROOM1/state').get_json()['status'] == 'finished'


def test_mark_card_endpoint(client, make_room):
    make_room()
    rnd = _start(client)
    card = Card.query.filter_by(round_id=rnd['id']).first()
    round_row = db.session.get(Round, rnd['id'])
    sequence = round_row.draw_sequence
    corners = [card.numbers[pos] for pos in (0, 4, 20, 24)]
    round_row.draw_sequence = corners + [n for n in sequence if n not in corners]
    round_row.current_draw_index = 4
    db.session.commit()

    marks = [pos in (0, 4, 20, 24) for pos in range(25)]
    res = client.post(f'/api/cards/{card.id}/marks', json={'marked_positions': marks})
    assert res.status_code == 200
    body = res.get_json()
    assert body == {
        'points': 1,
        'patterns': {'lines': 0, 'bingo': False, 'corners': True, 'middleCross': False},
        'totalScore': 1,
        'isWinner': False,
    }


def test_mark_card_rejects_undrawn(client, make_room):
    make_room()
    rnd = _start(client)
    card = Card.query.filter_by(round_id=rnd['id']).first()
    res = client.post(f'/api/cards/{card.id}/marks', json={'marked_positions': [True] * 25})
    assert res.status_code == 400
    body = res.get_json()
    assert body['code'] == 'invalid_marks'
    assert body['retryable'] is False
    assert 12 not in body['positions']
    assert len(body['positions']) == 24

    res = client.post('/api/cards/9999/marks', json={'marked_positions': [False] * 25})
    assert res.status_code == 404
