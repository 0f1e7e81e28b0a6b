import time
from loguru import logger
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from cronhooks.db import engine as default_engine

def wait_for_db(max_seconds: int = 30, interval: float = 1.0, engine: Engine | None = None) -> None:
    """Block until the database accepts connections (or timeout)."""
    engine = engine or default_engine
    deadline = time.time() + max_seconds
    last_err = None

    while time.time() < deadline:
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return
        except OperationalError as e:
            last_err = e
            logger.debug("Database not ready yet: {}", e)
            time.sleep(interval)

    raise RuntimeError(f"DB not ready after {max_seconds}s. Last error: {last_err}")
