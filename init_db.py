"""
Database initialization script
Creates every table of the storefront on the configured database
"""
from storefront.database import engine, Base
import storefront.models  # noqa: F401
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

def init_db():
    """Initialize database with all tables"""
    try:
        logger.info("Creating all database tables...")
        Base.metadata.create_all(bind=engine)
        logger.info(f"Database tables created: {', '.join(sorted(Base.metadata.tables))}")
        logger.info("Database initialization complete! You can now start the FastAPI server.")

    except Exception as e:
        logger.error(f"Error initializing database: {str(e)}")
        raise

if __name__ == "__main__":
    init_db()
