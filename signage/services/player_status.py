from flask import current_app

from signage.services.player_service import count_players


def get_checkin_context():
    return current_app.extensions["checkin_context"]


def get_player_stats():
    total, connected = count_players()
    return {
        "total": total,
        "connected": connected,
        "active": get_checkin_context().active_count(),
    }
