from sqlmodel import SQLModel, create_engine
from sqlalchemy.engine import Engine
from clozedrill.core.config import settings
import logging

logger = logging.getLogger(__name__)


def normalize_database_url(db_url: str) -> str:
    """SQLAlchemy prefers postgresql:// over postgres://."""
    if db_url.startswith("postgres://"):
        return db_url.replace("postgres://", "postgresql://", 1)
    return db_url


def build_engine(db_url: str) -> Engine:
    """Create an engine with pool options suited to the backend."""
    db_url = normalize_database_url(db_url)
    if db_url.startswith("sqlite"):
        return create_engine(
            db_url,
            echo=False,
            connect_args={"check_same_thread": False},
        )
    return create_engine(
        db_url,
        echo=False,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=5,
        max_overflow=10,
    )


logger.info(f"Connecting to database: {settings.database_url[:20]}...")  # Log partial URL for debugging

engine = build_engine(settings.database_url)


def init_db(bind: Engine = engine):
    """Initialize database tables."""
    # Import models to register them with SQLModel
    from clozedrill.models import CardPoolDocument, GoalStateDocument  # noqa: F401

    SQLModel.metadata.create_all(bind)
