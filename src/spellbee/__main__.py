"""Main entry point for the console practice app."""
import logging

from spellbee.app import SpellBeeApp
from spellbee.config import ensure_directories
from spellbee.logging_config import setup_logging
from spellbee.models.base import SessionLocal, init_db

logger = logging.getLogger(__name__)


def main() -> None:
    """Run the practice app."""
    ensure_directories()
    setup_logging("Starting SpellBee ...")

    init_db()
    db = SessionLocal()
    try:
        SpellBeeApp(db).run()
    except (KeyboardInterrupt, EOFError):
        logger.info("Received keyboard interrupt, shutting down...")
    finally:
        db.close()


if __name__ == "__main__":
    main()
