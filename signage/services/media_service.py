import os
import re
from datetime import datetime, timezone

from flask import current_app


class MediaPathError(ValueError):
    """Raised for file names that point outside the media directory."""


def _media_dir():
    return current_app.config["MEDIA_DIR"]


def _natural_key(name):
    return [int(part) if part.isdigit() else part.lower() for part in re.split(r"(\d+)", name)]


def installation_name(email):
    """'alice@example.com' -> 'alice'."""
    if not email:
        return None
    return email.split("@")[0] or None


def check_filename(filename):
    if not filename or ".." in filename.split("/") or filename.startswith("/") or "\\" in filename:
        raise MediaPathError(f"Invalid filename: {filename!r}")
    return filename


def resolve_media_path(filename, installation=None):
    """
    Return the absolute path for ``filename``. A bare name is looked up in
    the installation's own directory first and falls back to the media root.
    """
    check_filename(filename)
    media_dir = _media_dir()
    if installation and "/" not in filename:
        tenant_path = os.path.join(media_dir, installation, filename)
        if os.path.exists(tenant_path):
            return tenant_path
    return os.path.join(media_dir, filename)


def list_media_files(installation=None):
    media_dir = _media_dir()
    search_dir = media_dir
    if installation:
        tenant_dir = os.path.join(media_dir, installation)
        if os.path.isdir(tenant_dir):
            search_dir = tenant_dir

    if not os.path.isdir(search_dir):
        return []

    files = [f for f in os.listdir(search_dir) if not f.startswith(("_", "."))]
    if search_dir != media_dir:
        files = [f"{installation}/{f}" for f in files]
    files.sort(key=_natural_key)
    return files


def classify_asset(filename):
    name = os.path.basename(filename)
    for asset_type, pattern in current_app.config["ASSET_TYPES"]:
        if pattern.search(name) or pattern.search(filename):
            return asset_type
    return "other"


def file_details(filename, installation=None):
    """Stat a media file. Returns None when it does not exist."""
    path = resolve_media_path(filename, installation)
    if not os.path.isfile(path):
        return None
    stat = os.stat(path)
    relative = os.path.relpath(path, _media_dir()).replace("\\", "/")
    return {
        "name": filename,
        "size": f"{stat.st_size // 1000} KB",
        "ctime": datetime.fromtimestamp(stat.st_ctime, tz=timezone.utc).isoformat(),
        "path": "/media/" + relative,
        "type": classify_asset(filename),
    }
