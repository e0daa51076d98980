import os

from deathgame import create_app, socketio

app = create_app()

if __name__ == '__main__':
    # Use the SocketIO server so websocket transport works in dev
    socketio.run(app, host='0.0.0.0', port=int(os.environ.get('PORT', '3001')), debug=True)
