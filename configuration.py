#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import logging.config
import os
import shutil

import yaml

import constants


class Config(object):
    def __init__(self, path: str | None = None) -> None:
        self.path = path
        self.reload()

    @staticmethod
    def _normalize_seconds(value, fallback: float) -> float:
        try:
            seconds = float(value)
        except (TypeError, ValueError):
            return fallback
        return seconds if seconds > 0 else fallback

    def _load_config(self) -> dict:
        if self.path:
            with open(self.path, "rb") as fp:
                return yaml.safe_load(fp) or {}

        pwd = os.path.dirname(os.path.abspath(__file__))
        try:
            with open(f"{pwd}/config.yaml", "rb") as fp:
                yconfig = yaml.safe_load(fp)
        except FileNotFoundError:
            shutil.copyfile(f"{pwd}/config.yaml.template", f"{pwd}/config.yaml")
            with open(f"{pwd}/config.yaml", "rb") as fp:
                yconfig = yaml.safe_load(fp)

        return yconfig or {}

    def reload(self) -> None:
        yconfig = self._load_config()
        if yconfig.get("logging"):
            logging.config.dictConfig(yconfig["logging"])

        self.MESSENGER = yconfig.get("messenger", {})
        self.PAGE_ACCESS_TOKEN = self.MESSENGER.get("page_access_token", "")

        commands_conf = yconfig.get("commands", {}) or {}
        self.COMMANDS = commands_conf
        self.COMMAND_PREFIXES = tuple(commands_conf.get("prefixes") or constants.COMMAND_PREFIXES)
        self.ENABLED_COMMANDS = list(commands_conf.get("enabled") or ["ai", "getlink", "help"])
        self.DEFAULT_COMMAND = commands_conf.get("default", constants.DEFAULT_COMMAND)

        cache_conf = yconfig.get("cache", {}) or {}
        self.CACHE = cache_conf
        self.CACHE_TTL = self._normalize_seconds(cache_conf.get("ttl"), constants.CACHE_TTL)
        self.MEDIA_MAX_AGE = self._normalize_seconds(cache_conf.get("media_max_age"), constants.MEDIA_MAX_AGE)

        history_conf = yconfig.get("history", {}) or {}
        self.HISTORY = history_conf
        self.MAX_HISTORY = int(history_conf.get("max_history", constants.MAX_HISTORY))
        self.KEEP_RECENT = int(history_conf.get("keep_recent", constants.KEEP_RECENT))

        self.CHAT = yconfig.get("chat", {}) or {}
        self.SEND = yconfig.get("send", {}) or {}
        self.CHUNK_SIZE = int(self.SEND.get("chunk_size", constants.CHUNK_SIZE))
        self.CHUNK_DELAY = float(self.SEND.get("chunk_delay", constants.CHUNK_DELAY))
        self.UPLOAD = yconfig.get("upload", {}) or {}
