"""Shared test configuration.

The environment is set before any ``src.portal`` import so that the config
loaded from config.yaml (and seen by every thread the test client uses)
points at test values.
"""

import os
from pathlib import Path

from tests.utils import INTERACTION_PUBLIC_KEY_HEX

os.environ["APP_ENVIRONMENT"] = "test"
os.environ["CONFIG_PATH"] = str(Path(__file__).resolve().parent.parent / "config.yaml")
os.environ["SESSION_SIGNING_SECRET"] = "test-session-secret"
os.environ["DISCORD_PUBLIC_KEY"] = INTERACTION_PUBLIC_KEY_HEX
os.environ["DISCORD_CLIENT_ID"] = "client-123"
os.environ["DISCORD_CLIENT_SECRET"] = "client-secret"
os.environ["DISCORD_GUILD_ID"] = "guild-1"
os.environ["REVIEW_CHANNEL_ID"] = "review-channel"
os.environ["APPROVED_CHANNEL_ID"] = "approved-channel"
os.environ["REJECTED_CHANNEL_ID"] = "rejected-channel"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REVIEW_GUARD_BACKEND"] = "database"
for _name in ("DISCORD_BOT_TOKEN", "AUDIT_WEBHOOK_URL", "LOG_FILE"):
    os.environ.pop(_name, None)

from tests.fixtures.core import *  # noqa: E402,F401,F403
from tests.fixtures.services import *  # noqa: E402,F401,F403
