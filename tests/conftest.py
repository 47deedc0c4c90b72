"""Root conftest - shared test configuration."""

import os

# Never reach a real database or mail webhook from the test suite
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.pop("NOTIFICATION_WEBHOOK_URL", None)
