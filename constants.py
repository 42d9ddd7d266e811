from enum import Enum, unique


@unique
class MediaKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    FILE = "file"

    @staticmethod
    def from_type(value: str | None) -> "MediaKind | None":
        if not value:
            return None
        try:
            return MediaKind(value.lower())
        except ValueError:
            return None


@unique
class CacheKind(str, Enum):
    IMAGE = "image"  # 仅图片，兼容只认单图的命令
    MEDIA = "media"  # 图片/视频/音频/文件


COMMAND_PREFIXES = ("-", "/")
DEFAULT_COMMAND = "ai"

CACHE_TTL = 10 * 60  # 秒
MEDIA_MAX_AGE = 5 * 60  # 命令使用缓存媒体的新鲜度上限

MAX_HISTORY = 20
KEEP_RECENT = 12

CHUNK_SIZE = 1900
CHUNK_DELAY = 0.1

UNKNOWN_COMMAND_NOTICE = 'Unknown command. Type "help" for available commands.'
COMMAND_FAILED_NOTICE = "❌ Command execution failed."
