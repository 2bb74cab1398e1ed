import os
import re
from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "pisignage2026")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///signage.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Optional engine options for better PostgreSQL behavior under concurrency
    DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", 5))
    DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", 10))
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_size": DB_POOL_SIZE,
        "max_overflow": DB_MAX_OVERFLOW,
    }

    BASE_DIR = os.path.abspath(os.path.dirname(__file__))
    MEDIA_DIR = os.getenv("MEDIA_DIR", os.path.join(BASE_DIR, "media"))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    PUSH_THROTTLE_SECONDS = float(os.getenv("PUSH_THROTTLE_SECONDS", 60))
    DEFAULT_GROUP_NAME = "default"
    DEFAULT_INSTALLATION = "local"

    # Asset type detection, checked in order
    ASSET_TYPES = [
        ("image", re.compile(r"\.(jpg|jpeg|png|gif|bmp|tiff|webp)$", re.I)),
        ("video", re.compile(r"\.(mp4|avi|mov|mkv|wmv|flv|webm|m4v)$", re.I)),
        ("audio", re.compile(r"\.(mp3|wav|aac|flac|ogg|m4a)$", re.I)),
        ("html", re.compile(r"\.html?$", re.I)),
        ("link", re.compile(r"^live.*\.(mp4|m3u8)$", re.I)),
        ("link", re.compile(r"^omx.*\.(mp4|m3u8)$", re.I)),
        ("link", re.compile(r"\.rss$", re.I)),
        ("link", re.compile(r"^cors.*\.(mp4|m3u8)$", re.I)),
        ("link", re.compile(r"^https?://", re.I)),
        ("gcal", re.compile(r"\.gcal$", re.I)),
        ("pdf", re.compile(r"\.pdf$", re.I)),
        ("text", re.compile(r"\.txt$", re.I)),
        ("radio", re.compile(r"\.radio$", re.I)),
        ("notice", re.compile(r"\.notice$", re.I)),
    ]


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    LOG_LEVEL = "DEBUG"
