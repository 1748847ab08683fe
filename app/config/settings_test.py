"""
Settings for the test suite.

Environment defaults are applied before the main settings module reads the
environment, so tests run without Redis, Postgres or an env file. Any
variable already set wins, e.g. DATABASE_URL=postgres://... to run the
suite against Postgres.

On SQLite the test database is a file rather than memory so that the
concurrency tests can open one connection per thread. IMMEDIATE transactions
make writers queue on the database lock instead of failing on lock upgrade.
"""

import os
import tempfile

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite://:memory:")
os.environ.setdefault("CACHE_URL", "locmemcache://")
os.environ.setdefault("CHANNEL_LAYER", "memory")
os.environ.setdefault("CELERY_TASK_ALWAYS_EAGER", "true")
os.environ.setdefault("SECURE_SSL_REDIRECT", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from config.settings import *  # noqa: E402, F403
from config.settings import DATABASES, LOGGING, REST_FRAMEWORK  # noqa: E402

if DATABASES["default"]["ENGINE"] == "django.db.backends.sqlite3":
    DATABASES["default"]["TEST"] = {
        "NAME": os.path.join(tempfile.gettempdir(), f"engagement_chat_test_{os.getpid()}.sqlite3"),
    }
    DATABASES["default"].setdefault("OPTIONS", {}).update(
        {"transaction_mode": "IMMEDIATE", "timeout": 20}
    )

# Throttling is exercised explicitly where it matters
REST_FRAMEWORK["DEFAULT_THROTTLE_CLASSES"] = []

# Everything goes through the root logger so caplog sees it
for _logger in LOGGING["loggers"].values():
    _logger["handlers"] = []
    _logger["propagate"] = True

PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

CELERY_TASK_EAGER_PROPAGATES = False
