import os

from bingo import create_app, socketio

app = create_app()

if __name__ == '__main__':
    # Use SocketIO server so the draw ticker's background tasks and
    # websocket pushes share one process in dev
    socketio.run(app, port=int(os.environ.get('PORT', '5000')), debug=True)
