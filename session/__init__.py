from .cache import CacheEntry, TTLCache
from .history import ConversationHistory, HistoryEntry

__all__ = ["CacheEntry", "TTLCache", "ConversationHistory", "HistoryEntry"]
