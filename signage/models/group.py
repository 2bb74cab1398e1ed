from datetime import datetime, timezone

from sqlalchemy.orm import validates

from extensions import db


class Group(db.Model):
    """
    Named deployment configuration (playlists, display settings).
    The check-in core only reads ``id`` and ``name``.
    """
    __tablename__ = "groups"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False, index=True)
    description = db.Column(db.String(500), default="")
    playlists = db.Column(db.JSON, default=list)
    orientation = db.Column(db.String(20), default="landscape")
    resolution = db.Column(db.String(20), default="auto")
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    @validates("name")
    def validate_name(self, key, name):
        name = (name or "").strip()
        if not name:
            raise ValueError("Name cannot be blank")
        return name

    def to_ref(self):
        return {"_id": self.id, "name": self.name}

