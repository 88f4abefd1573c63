"""
CLI entrypoint for the refresh token retention job. Run from cron, e.g.:

  python -m qms.retention

Or hourly: 0 * * * * cd /path/to/qms && .venv/bin/python -m qms.retention
"""

import logging
import sys

from qms.core.config import get_settings
from qms.core.database import SessionLocal
from qms.services.retention import run_retention

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Run retention: purge refresh tokens dead for longer than RETENTION_HOURS."""
    settings = get_settings()
    db = SessionLocal()
    try:
        deleted = run_retention(db, settings)
        logger.info("Retention completed: refresh_tokens_deleted=%s", deleted)
        return 0
    except Exception as e:
        logger.exception("Retention job failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
