import logging
import os
import sys
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file in the project root
project_root = Path(__file__).parent
load_dotenv(project_root / '.env')

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")

# Per-phrase classifier deadline, counted from the start of resolution and
# including the wait for one of ORACLE_MAX_CONCURRENCY slots
ORACLE_TIMEOUT_SECONDS = float(os.getenv("ORACLE_TIMEOUT_SECONDS", "10"))
ORACLE_MAX_CONCURRENCY = int(os.getenv("ORACLE_MAX_CONCURRENCY", "4"))

# "avoid_only" or "strict"
CHILD_SAFETY_POLICY = os.getenv("CHILD_SAFETY_POLICY", "avoid_only")

# Handle KNOWLEDGE_BASE_PATH - convert relative path to absolute
_kb_path = os.getenv("KNOWLEDGE_BASE_PATH")
if _kb_path:
    KNOWLEDGE_BASE_PATH = Path(_kb_path)
    if not KNOWLEDGE_BASE_PATH.is_absolute():
        KNOWLEDGE_BASE_PATH = (project_root / _kb_path).resolve()
else:
    KNOWLEDGE_BASE_PATH = project_root / "ingredient_risk" / "knowledge_base" / "additives.json"

_db_path = os.getenv("PRODUCT_DB_PATH")
if _db_path and not Path(_db_path).is_absolute():
    PRODUCT_DB_PATH = (project_root / _db_path).resolve()
else:
    PRODUCT_DB_PATH = Path(_db_path) if _db_path else project_root / "data" / "products.db"

OPEN_FOOD_FACTS_ENABLED = os.getenv("OPEN_FOOD_FACTS_ENABLED", "true").lower() in ("1", "true", "yes")
OPEN_FOOD_FACTS_TIMEOUT_SECONDS = float(os.getenv("OPEN_FOOD_FACTS_TIMEOUT_SECONDS", "10"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def setup_logging(level: str = None):
    """
    Configure the root logger for the application.
    - Clears existing handlers to prevent duplicate logs on reload.
    - Adds a stream handler for console output.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level or LOG_LEVEL)

    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    log_formatter = logging.Formatter(
        "[%(asctime)s] [%(levelname)s] [%(name)s] - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(log_formatter)
    root_logger.addHandler(stream_handler)
