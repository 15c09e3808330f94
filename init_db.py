# init_db.py
# Creates the ArtView tables in the database configured by DATABASE_URL.
import logging

from artview.core.database import init_db

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

if __name__ == "__main__":
    init_db()
    logger.info("✅ Tables created")
