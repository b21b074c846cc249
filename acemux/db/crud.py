"""
CRUD and data-access helpers for AceMux.

Contains functions for listing, reading, creating, updating and deleting
stream records. All functions expect a SQLAlchemy Session (2.0 style).
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from acemux.db.models import Stream


# PUBLIC_INTERFACE
def list_streams(db: Session) -> List[Stream]:
    """List all streams, newest first."""
    stmt = select(Stream).order_by(Stream.created_at.desc(), Stream.id)
    return list(db.execute(stmt).scalars().all())


# PUBLIC_INTERFACE
def get_stream(db: Session, stream_id: str) -> Optional[Stream]:
    """Fetch a stream by id."""
    return db.get(Stream, stream_id)


# PUBLIC_INTERFACE
def create_stream(
    db: Session, stream_id: str, name: str, photo_url: Optional[str] = None
) -> Tuple[Optional[Stream], Optional[str]]:
    """Insert a new stream. Returns (stream, error)."""
    try:
        stream = Stream(id=stream_id, name=name, photo_url=photo_url or None)
        db.add(stream)
        db.commit()
        db.refresh(stream)
        return stream, None
    except IntegrityError:
        db.rollback()
        return None, "id already exists"
    except Exception as e:
        db.rollback()
        return None, str(e)


# PUBLIC_INTERFACE
def update_stream(
    db: Session, stream_id: str, name: Optional[str] = None, photo_url: Optional[str] = None
) -> Optional[Stream]:
    """Update editable fields; fields passed as None keep their current value."""
    values = {k: v for k, v in {"name": name, "photo_url": photo_url}.items() if v is not None}
    if not values:
        # Still a mutation: lets the column onupdate refresh updated_at.
        values = {"name": Stream.name}
    stmt = update(Stream).where(Stream.id == stream_id).values(**values)
    res = db.execute(stmt, execution_options={"synchronize_session": False})
    db.commit()
    if res.rowcount == 0:
        return None
    stream = db.get(Stream, stream_id)
    if stream is not None:
        db.refresh(stream)
    return stream


# PUBLIC_INTERFACE
def delete_stream(db: Session, stream_id: str) -> bool:
    """Delete a stream by id."""
    res = db.execute(delete(Stream).where(Stream.id == stream_id))
    db.commit()
    return res.rowcount > 0
