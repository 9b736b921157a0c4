from bingo import db
from bingo.models import Round
from bingo.services.games.scheduler import INITIAL_DELAY_SEC


def test_socket_connect_and_join(sio_client):
    # Ensure we are connected to /ws
    if not sio_client.is_connected('/ws'):
        sio_client.connect(namespace='/ws')
    assert sio_client.is_connected('/ws')

    # Flush any initial events
    try:
        sio_client.get_received('/ws')
    except Exception:
        pass

    sio_client.emit('join_room', {'room_code': 'abcde'}, namespace='/ws')
    received = sio_client.get_received('/ws')
    joined = [pkt for pkt in received if pkt['name'] == 'joined']
    assert joined and joined[0]['args'][0] == {'room': 'room:ABCDE'}


def test_join_requires_room_code(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('join_room', {}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert any(pkt['name'] == 'error' for pkt in received)


def test_subscribers_receive_round_updates(sio_client, client, make_room):
    make_room()
    sio_client.emit('join_room', {'room_code': 'ROOM1'}, namespace='/ws')
    sio_client.get_received('/ws')  # flush

    rnd = client.post('/api/rooms/ROOM1/start').get_json()['round']
    events = sio_client.get_received('/ws')
    names = [e['name'] for e in events]
    assert 'room_update' in names
    assert 'round_update' in names

    round_row = db.session.get(Round, rnd['id'])
    round_row.start_time -= INITIAL_DELAY_SEC
    db.session.commit()
    tick = client.post(f"/api/rounds/{rnd['id']}/tick").get_json()
    updates = [e for e in sio_client.get_received('/ws') if e['name'] == 'round_update']
    assert updates[-1]['args'][0]['current_number'] == tick['number']


def test_leave_room_stops_updates(sio_client, client, make_room):
    make_room()
    sio_client.emit('join_room', {'room_code': 'ROOM1'}, namespace='/ws')
    sio_client.emit('leave_room', {'room_code': 'ROOM1'}, namespace='/ws')
    sio_client.get_received('/ws')

    client.post('/api/rooms/ROOM1/start')
    assert not any(e['name'] == 'round_update' for e in sio_client.get_received('/ws'))
