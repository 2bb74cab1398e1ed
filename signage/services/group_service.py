from flask import current_app

from extensions import db
from signage.models import Group


def find_group_by_name(name):
    return Group.query.filter_by(name=name).first()


def find_group(group_id):
    if group_id is None:
        return None
    return db.session.get(Group, group_id)


def ensure_default_group():
    name = current_app.config["DEFAULT_GROUP_NAME"]
    group = find_group_by_name(name)
    if not group:
        group = Group(name=name, description="Fallback group for new players")
        db.session.add(group)
        db.session.commit()
    return group
