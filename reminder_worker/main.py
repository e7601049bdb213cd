import logging
import time
from sqlalchemy import inspect

from server.database import Base, engine
import server.models  # noqa: F401  (registers tables on Base)
from .config import config
from .scheduler import build_scheduler

logger = logging.getLogger(__name__)


def init_database():
    inspector = inspect(engine)
    if not inspector.get_table_names():
        Base.metadata.create_all(bind=engine)
        logger.info("✅ Tables created")


def start_worker():
    """
    Run the reminder scheduler in the foreground until interrupted.
    """
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    missing = config.missing_values()
    if missing:
        logger.warning(f"⚠️ Missing values for {', '.join(missing)}; affected channels stay disabled")

    init_database()
    scheduler = build_scheduler()
    scheduler.start(run_immediately=True)

    try:
        while True:
            time.sleep(60)
    except (KeyboardInterrupt, SystemExit):
        logger.info("Worker interrupted, shutting down")
    finally:
        scheduler.stop()


if __name__ == "__main__":
    start_worker()
