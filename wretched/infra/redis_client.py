from __future__ import annotations

import os

import redis


def get_redis_url() -> str:
    return os.environ.get("REDIS_URL", "redis://localhost:6379/0")


def get_save_prefix() -> str:
    return os.environ.get("WRETCHED_SAVE_PREFIX", "wretched-save")


def create_redis() -> redis.Redis:
    # Save documents and narration lines are read back as str.
    return redis.Redis.from_url(get_redis_url(), decode_responses=True)
