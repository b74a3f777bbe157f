import os

# Load .env.dev for tests when present (e.g. to point TEST_DATABASE_URL at PostgreSQL)
from dotenv import load_dotenv

env_dev_path = os.path.join(os.path.dirname(__file__), ".env.dev")
if os.path.exists(env_dev_path):
    load_dotenv(env_dev_path, override=True)

# Default to an in-memory SQLite database; row-lock tests need PostgreSQL
os.environ.setdefault("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DATABASE_URL", os.environ["TEST_DATABASE_URL"])

from libs.common.config import get_settings  # noqa: E402

# Clear cached settings to reload with new env vars
get_settings.cache_clear()


def pytest_report_header(config):
    url = os.environ["TEST_DATABASE_URL"]
    if url.startswith("postgresql"):
        return "orders tests: PostgreSQL backend, row-lock tests enabled"
    return (
        f"orders tests: {url.split(':', 1)[0]} backend; tests marked 'postgres' "
        "(concurrency, stock conservation) will be SKIPPED. "
        "Set TEST_DATABASE_URL=postgresql+psycopg://... to run them."
    )
