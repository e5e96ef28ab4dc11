"""Change feed clients for the remote, authoritative source"""

from src.feed.change_feed import ChangeFeed
from src.feed.http_feed import HttpChangeFeed
from src.feed.in_memory_feed import InMemoryChangeFeed

__all__ = ["ChangeFeed", "HttpChangeFeed", "InMemoryChangeFeed"]
