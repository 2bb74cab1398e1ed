import logging

from flask import Blueprint, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from signage.services.player_service import delete_player, find_player_by_serial, list_players
from signage.services.player_status import get_player_stats

logger = logging.getLogger(__name__)

player_bp = Blueprint("players", __name__)


def _int_arg(name, default):
    try:
        return max(0, int(request.args.get(name, default)))
    except (TypeError, ValueError):
        return default


@player_bp.route("", methods=["GET"])
def get_players():
    page = _int_arg("page", 0)
    per_page = _int_arg("perPage", 10) or 10
    installation = request.args.get("installation") or None

    players, total = list_players(page=page, per_page=per_page, installation=installation)
    return jsonify({
        "players": [p.to_record() for p in players],
        "pagination": {
            "page": page,
            "perPage": per_page,
            "total": total,
            "pages": -(-total // per_page),
        },
    })


@player_bp.route("/stats", methods=["GET"])
def player_stats():
    return jsonify(get_player_stats())


@player_bp.route("/<serial>", methods=["GET"])
def get_player(serial):
    player = find_player_by_serial(serial)
    if not player:
        return jsonify({"status": "error", "msg": "Player not found"}), 404
    return jsonify(player.to_record())


@player_bp.route("/<int:player_id>", methods=["DELETE"])
def remove_player(player_id):
    try:
        player = delete_player(player_id)
    except SQLAlchemyError as e:
        logger.error("Error deleting player %s: %s", player_id, e)
        return jsonify({"status": "error", "msg": "Error deleting player"}), 500
    if not player:
        return jsonify({"status": "error", "msg": "Player not found"}), 404
    return jsonify({"status": "ok", "id": player_id})
