from .public_routes import public_bp
from .player_routes import player_bp
from .file_routes import file_bp

def register_routes(app):
    app.register_blueprint(public_bp)
    app.register_blueprint(player_bp, url_prefix="/api/players")
    app.register_blueprint(file_bp)
