from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session

from .models import ChatHistory


def get_chat_history(
    db: Session,
    current_menu: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    limit: int = 1000,
    offset: int = 0,
) -> List[Dict[str, Any]]:
    """Chat executions, newest first. ``end_date`` is exclusive."""
    query = db.query(ChatHistory)
    if current_menu:
        query = query.filter(ChatHistory.current_menu == current_menu)
    if start_date:
        query = query.filter(ChatHistory.started_at >= start_date)
    if end_date:
        query = query.filter(ChatHistory.started_at < end_date)
    rows = query.order_by(ChatHistory.started_at.desc()).offset(offset).limit(limit).all()
    return [row.to_dict() for row in rows]
