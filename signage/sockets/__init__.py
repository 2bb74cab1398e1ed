from .player_events import register_player_events

def register_sockets(socketio):
    register_player_events(socketio)
