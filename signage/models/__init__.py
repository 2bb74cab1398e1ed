from .group import Group
from .player import Player
from .log_entry import LogEntry

__all__ = [
	"Group",
	"Player",
	"LogEntry",
]
