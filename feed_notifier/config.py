import os
from dataclasses import dataclass
from typing import Any, Mapping

from dotenv import load_dotenv

from feed_notifier.errors import ConfigError
from feed_notifier.models import TimeWindow

REQUEST_TIMEOUT_SECONDS: int = 10
USER_AGENT: str = "FeedNotifier/1.0 (+new-post poller)"
STORE_BATCH_SIZE: int = 100          # identities per lookup query

DEFAULT_STATE_STORE: str = "feed_state.db"
DEFAULT_NOTIFY_TARGET: str = "console"
DEFAULT_LOG_LEVEL: str = "INFO"

ENV_FILE: str = ".env.local"

# override key -> environment variable
ENV_VARS: dict[str, str] = {
    "feed_url":      "JSON_FEED_URL",
    "state_store":   "STATE_STORE",
    "notify_target": "NOTIFY_TARGET",
    "start":         "START_TRIGGER_DATE",
    "end":           "END_TRIGGER_DATE",
    "log_level":     "LOG_LEVEL",
}


@dataclass(frozen=True)
class Settings:
    feed_url: str
    state_store: str
    notify_target: str
    window: TimeWindow
    log_level: str = DEFAULT_LOG_LEVEL


def state_store_from_env(env: Mapping[str, str] | None = None) -> str:
    """Where the state lives, for commands that need nothing else."""
    if env is None:
        load_dotenv(ENV_FILE)
        env = os.environ
    return env.get(ENV_VARS["state_store"]) or DEFAULT_STATE_STORE


def load_settings(
    overrides: Mapping[str, Any] | None = None,
    env: Mapping[str, str] | None = None,
) -> Settings:
    """
    Build run Settings from the environment plus explicit overrides.

    Overrides come from CLI flags or the trigger event and win over the
    environment; None values are ignored. When env is not given, .env.local
    is loaded into os.environ first (already-set variables are kept).
    """
    if env is None:
        load_dotenv(ENV_FILE)
        env = os.environ

    values: dict[str, str] = {}
    for key, var in ENV_VARS.items():
        value = env.get(var)
        if value:
            values[key] = value
    for key, value in (overrides or {}).items():
        if key not in ENV_VARS:
            raise ConfigError(f"Unknown setting: {key!r}")
        if value is not None:
            values[key] = str(value)

    missing = [ENV_VARS[k] for k in ("feed_url", "start", "end") if not values.get(k)]
    if missing:
        raise ConfigError(f"Missing required setting(s): {', '.join(missing)}")

    feed_url = values["feed_url"]
    if not feed_url.startswith(("http://", "https://")):
        raise ConfigError(f"Feed URL must be http(s): {feed_url!r}")

    return Settings(
        feed_url=feed_url,
        state_store=values.get("state_store", DEFAULT_STATE_STORE),
        notify_target=values.get("notify_target", DEFAULT_NOTIFY_TARGET),
        window=TimeWindow.parse(values["start"], values["end"]),
        log_level=values.get("log_level", DEFAULT_LOG_LEVEL).upper(),
    )
