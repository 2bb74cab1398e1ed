from app import create_app
from extensions import db
from signage.models import Group, Player
from signage.services.group_service import ensure_default_group

app = create_app()

with app.app_context():
    db.create_all()

    group = ensure_default_group()

    # A lobby group and one pre-registered player for manual testing
    lobby = Group.query.filter_by(name="lobby").first()
    if not lobby:
        lobby = Group(name="lobby", description="Lobby screens")
        db.session.add(lobby)
        db.session.commit()

    if not Player.query.filter_by(cpu_serial_number="PI-LOBBY-1").first():
        db.session.add(Player(
            cpu_serial_number="PI-LOBBY-1",
            name="Lobby TV",
            group_id=lobby.id,
            group_name=lobby.name,
            installation="local",
            registered=True,
        ))
        db.session.commit()

    print('DB initialized. Default group id:', group.id, 'Lobby group id:', lobby.id)
