"""
Utility to create all tables from SQLAlchemy metadata.

Note: the stream store has a single table; migrations are not needed yet.
"""

from acemux.db.models import Base
from acemux.db.session import engine


# PUBLIC_INTERFACE
def create_all_tables() -> None:
    """Create all tables if they do not exist yet."""
    Base.metadata.create_all(bind=engine)
