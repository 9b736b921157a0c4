from bingo import socketio


def room_channel(room_code: str) -> str:
    return f"room:{room_code.upper()}"


def broadcast(room_code: str, event: str, payload: dict) -> None:
    """Push a committed change to every client subscribed to the room."""
    socketio.emit(event, payload, to=room_channel(room_code), namespace='/ws')
