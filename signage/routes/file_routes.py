import os

from flask import Blueprint, current_app, jsonify, request, send_from_directory

from signage.services.media_service import (
    MediaPathError,
    check_filename,
    file_details,
    list_media_files,
)

file_bp = Blueprint("file", __name__)

@file_bp.route("/api/files")
def get_files():
    installation = request.args.get("installation") or None
    return jsonify({"files": list_media_files(installation)})

@file_bp.route("/api/files/<path:filename>")
def get_file(filename):
    installation = request.args.get("installation") or None
    try:
        details = file_details(filename, installation)
    except MediaPathError as e:
        return jsonify({"status": "error", "msg": str(e)}), 400
    if not details:
        return jsonify({"status": "error", "msg": f"Unable to read file details: {filename}"}), 404
    return jsonify(details)

@file_bp.route("/media/<path:filename>")
def serve_media(filename):
    # Security: prevent directory traversal
    try:
        check_filename(filename)
    except MediaPathError:
        return "Invalid filename", 400

    media_dir = current_app.config["MEDIA_DIR"]
    if not os.path.exists(os.path.join(media_dir, filename)):
        return "File not found", 404

    return send_from_directory(media_dir, filename)
