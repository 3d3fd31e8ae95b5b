"""Persisted user preferences and environment configuration."""
import logging
import os

from code_tutor.db import get_connection

logger = logging.getLogger(__name__)

REPLAY_POLICIES = ("none", "full")
DEFAULT_REPLAY_POLICY = "none"
DEFAULT_LOG_LEVEL = "WARNING"


def get_setting(db_path: str, key: str, default: str = None) -> str | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT value FROM user_settings WHERE key = ?", (key,)).fetchone()
    conn.close()
    return row["value"] if row else default


def set_setting(db_path: str, key: str, value: str) -> None:
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO user_settings (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=?",
        (key, value, value),
    )
    conn.commit()
    conn.close()


def get_replay_policy(db_path: str) -> str:
    """XP policy for replaying an already-completed lesson."""
    policy = get_setting(db_path, "replay_xp_policy", DEFAULT_REPLAY_POLICY)
    if policy not in REPLAY_POLICIES:
        logger.warning(f"Unknown replay_xp_policy {policy!r}, using {DEFAULT_REPLAY_POLICY!r}")
        return DEFAULT_REPLAY_POLICY
    return policy


def set_replay_policy(db_path: str, policy: str) -> None:
    if policy not in REPLAY_POLICIES:
        raise ValueError(f"Replay policy must be one of {', '.join(REPLAY_POLICIES)}")
    set_setting(db_path, "replay_xp_policy", policy)


def get_last_user(db_path: str) -> str | None:
    return get_setting(db_path, "last_user")


def set_last_user(db_path: str, user_id: str) -> None:
    set_setting(db_path, "last_user", user_id)


def get_log_level(db_path: str | None = None) -> str:
    """Environment first, then the stored setting, then WARNING."""
    level = os.environ.get("CODE_TUTOR_LOG_LEVEL")
    if not level and db_path is not None:
        level = get_setting(db_path, "log_level")
    return (level or DEFAULT_LOG_LEVEL).upper()
