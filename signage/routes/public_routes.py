from flask import Blueprint, jsonify

public_bp = Blueprint("public", __name__)

@public_bp.route("/")
def index():
    return "PiSignage API Server"

@public_bp.route("/api/health")
def health():
    return jsonify({"status": "OK", "message": "Server is running"})
