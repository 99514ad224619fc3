from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel


def parse_date(value: Optional[str], field: str, end_of_day: bool = False) -> Optional[datetime]:
    """Parse a YYYY-MM-DD query value; ``end_of_day`` returns the next midnight for exclusive upper bounds"""
    if not value:
        return None
    try:
        parsed = datetime.strptime(value, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {field} format. Use YYYY-MM-DD",
        )
    return parsed + timedelta(days=1) if end_of_day else parsed


def error_response(payload: BaseModel, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=payload.model_dump(mode="json", by_alias=True))
