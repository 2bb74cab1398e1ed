import os

import pytest

from signage.services.media_service import (
    MediaPathError,
    classify_asset,
    file_details,
    installation_name,
    list_media_files,
    resolve_media_path,
)


@pytest.fixture
def media(ctx):
    media_dir = ctx.config["MEDIA_DIR"]
    os.makedirs(os.path.join(media_dir, "alice"), exist_ok=True)
    os.makedirs(os.path.join(media_dir, "_thumbnails"), exist_ok=True)
    for name in ["clip10.mp4", "clip2.mp4", ".hidden", "shared.png"]:
        with open(os.path.join(media_dir, name), "wb") as f:
            f.write(b"x" * 2048)
    with open(os.path.join(media_dir, "alice", "menu.pdf"), "wb") as f:
        f.write(b"%PDF")
    return media_dir


def test_installation_name():
    assert installation_name("alice@example.com") == "alice"
    assert installation_name("") is None


def test_resolve_prefers_tenant_directory(media):
    assert resolve_media_path("menu.pdf", "alice") == os.path.join(media, "alice", "menu.pdf")
    assert resolve_media_path("shared.png", "alice") == os.path.join(media, "shared.png")
    assert resolve_media_path("alice/menu.pdf", "alice") == os.path.join(media, "alice/menu.pdf")


def test_resolve_rejects_traversal(media):
    with pytest.raises(MediaPathError):
        resolve_media_path("../secret.txt")


def test_list_media_files_root_and_tenant(media):
    assert list_media_files() == ["alice", "clip2.mp4", "clip10.mp4", "shared.png"]
    assert list_media_files("alice") == ["alice/menu.pdf"]
    assert list_media_files("bob") == list_media_files()


@pytest.mark.parametrize(
    "filename, expected",
    [
        ("a.JPG", "image"),
        ("b.webm", "video"),
        ("c.mp3", "audio"),
        ("page.html", "html"),
        ("live_feed.m3u8", "link"),
        ("news.rss", "link"),
        ("cal.gcal", "gcal"),
        ("doc.pdf", "pdf"),
        ("notes.txt", "text"),
        ("fm.radio", "radio"),
        ("alert.notice", "notice"),
        ("archive.zip", "other"),
    ],
)
def test_classify_asset(ctx, filename, expected):
    assert classify_asset(filename) == expected


def test_file_details(media):
    details = file_details("menu.pdf", "alice")
    assert details["path"] == "/media/alice/menu.pdf"
    assert details["type"] == "pdf"
    assert details["size"] == "0 KB"

    assert file_details("shared.png")["size"] == "2 KB"
    assert file_details("missing.png") is None


def test_file_routes(client, media):
    assert client.get("/api/files?installation=alice").get_json() == {"files": ["alice/menu.pdf"]}
    assert client.get("/api/files/clip2.mp4").get_json()["type"] == "video"
    assert client.get("/api/files/nothing.mp4").status_code == 404

    resp = client.get("/media/shared.png")
    assert resp.status_code == 200
    assert resp.data == b"x" * 2048
    resp.close()
    assert client.get("/media/nothing.png").status_code == 404
