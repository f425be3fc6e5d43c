"""Root conftest — shared test configuration."""

import os

# Tests never reach a real database or model endpoint
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("OPENFDA_API_KEY", "test-fake-key")
os.environ.pop("RXGUARD_LLM_BASE_URL", None)
