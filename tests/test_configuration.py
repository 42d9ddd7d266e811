from __future__ import annotations

from pathlib import Path

import constants
from configuration import Config


def test_config_reads_yaml_sections(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(
        "messenger:\n"
        "  page_access_token: tok\n"
        "commands:\n"
        "  prefixes: ['!']\n"
        "  enabled: [ai]\n"
        "cache:\n"
        "  ttl: 120\n"
        "  media_max_age: nonsense\n"
        "history:\n"
        "  max_history: 10\n"
        "  keep_recent: 5\n"
        "send:\n"
        "  chunk_size: 500\n",
        encoding="utf-8",
    )

    config = Config(str(path))

    assert config.PAGE_ACCESS_TOKEN == "tok"
    assert config.COMMAND_PREFIXES == ("!",)
    assert config.ENABLED_COMMANDS == ["ai"]
    assert config.CACHE_TTL == 120.0
    assert config.MEDIA_MAX_AGE == constants.MEDIA_MAX_AGE
    assert (config.MAX_HISTORY, config.KEEP_RECENT) == (10, 5)
    assert config.CHUNK_SIZE == 500
    assert config.CHUNK_DELAY == constants.CHUNK_DELAY


def test_config_defaults_for_empty_file(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")

    config = Config(str(path))

    assert config.COMMAND_PREFIXES == constants.COMMAND_PREFIXES
    assert config.ENABLED_COMMANDS == ["ai", "getlink", "help"]
    assert config.DEFAULT_COMMAND == "ai"
    assert config.CACHE_TTL == constants.CACHE_TTL
    assert config.CHAT == {}
