import logging

from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from signage.models import Player

logger = logging.getLogger(__name__)


def find_player_by_serial(serial):
    return Player.query.filter_by(cpu_serial_number=serial).first()


def save_player(player):
    """Add and commit a player. The session is rolled back before re-raising."""
    try:
        db.session.add(player)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
    return player


def list_players(page=0, per_page=10, installation=None):
    query = Player.query
    if installation:
        query = query.filter_by(installation=installation)
    total = query.count()
    players = query.order_by(Player.name).limit(per_page).offset(per_page * page).all()
    return players, total


def delete_player(player_id):
    player = db.session.get(Player, player_id)
    if not player:
        return None
    try:
        db.session.delete(player)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
    logger.info("Deleted player %s (%s)", player.id, player.cpu_serial_number)
    return player


def mark_disconnected(socket_id):
    """Flag the player that owns ``socket_id`` as no longer connected."""
    if not socket_id:
        return None
    player = Player.query.filter_by(socket=socket_id).first()
    if not player:
        return None
    player.is_connected = False
    save_player(player)
    return player


def count_players():
    total = Player.query.count()
    connected = Player.query.filter_by(is_connected=True).count()
    return total, connected
