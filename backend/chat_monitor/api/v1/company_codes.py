from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session
from loguru import logger

from ...config import settings
from ...core.aggregator import summarize, unique_company_codes
from ...core.auth import Principal, require_admin
from ...core.chat_history import get_chat_history
from ...core.company_code_service import CompanyCodeService, get_company_code_service
from ...core.database import get_db
from ...core.reporting import tag_chat_records
from ...core.schemas import (
    BatchResult,
    ChatHistoryResponse,
    CompanyCodeData,
    CompanyCodeResponse,
    RefreshCompanyCodesRequest,
    TaggedChatRecord,
)
from ...core.utils import clean_phone_number, unique_phone_numbers
from .common import error_response, parse_date

router = APIRouter()


def _company_code_response(batch: BatchResult, phone_numbers: List[str]) -> CompanyCodeResponse:
    return CompanyCodeResponse(
        success=True,
        data=CompanyCodeData(
            company_data=batch.results,
            unique_company_codes=unique_company_codes(batch),
            phone_numbers=phone_numbers,
            stats=summarize(batch),
            deadline_exceeded=batch.deadline_exceeded,
        ),
    )


@router.get("/company-codes", response_model=CompanyCodeResponse)
async def get_company_codes(
    response: Response,
    current_menu: Optional[str] = Query(None, alias="currentMenu"),
    start_date: Optional[str] = Query(None, alias="startDate", description="Start date (YYYY-MM-DD)"),
    end_date: Optional[str] = Query(None, alias="endDate", description="End date (YYYY-MM-DD)"),
    limit: int = Query(1000, ge=1, le=50000),
    db: Session = Depends(get_db),
    service: CompanyCodeService = Depends(get_company_code_service),
    principal: Principal = Depends(require_admin),
):
    """
    Resolve company codes for the phone numbers in the filtered chat history
    """
    start_dt = parse_date(start_date, "startDate")
    end_dt = parse_date(end_date, "endDate", end_of_day=True)
    logger.info(f"Company codes requested: menu={current_menu} start={start_date} end={end_date} limit={limit}")

    try:
        records = get_chat_history(db, current_menu=current_menu, start_date=start_dt, end_date=end_dt, limit=limit)
        phone_numbers = unique_phone_numbers(record["nohp"] for record in records)
        logger.info(f"Found {len(phone_numbers)} unique phone numbers in {len(records)} chat records")

        batch = BatchResult()
        if phone_numbers:
            batch = await service.resolve(
                phone_numbers,
                concurrency=settings.COMPANY_LOOKUP_CONCURRENCY,
                deadline=settings.COMPANY_LOOKUP_DEADLINE_SECONDS,
            )
        response.headers["Cache-Control"] = "public, max-age=300"
        return _company_code_response(batch, phone_numbers)
    except Exception as e:
        logger.exception(f"Company codes API error: {e}")
        return error_response(CompanyCodeResponse(success=False, error=str(e) or "Failed to fetch company codes"))


@router.post("/company-codes", response_model=CompanyCodeResponse)
async def refresh_company_codes(
    request: RefreshCompanyCodesRequest,
    service: CompanyCodeService = Depends(get_company_code_service),
    principal: Principal = Depends(require_admin),
):
    """
    Resolve company codes for an explicit list of phone numbers
    """
    phone_numbers = unique_phone_numbers(request.phone_numbers or [])
    if not phone_numbers:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Phone numbers array is required",
        )
    logger.info(f"Manual company code refresh for {len(phone_numbers)} phone numbers")

    try:
        batch = await service.resolve(
            phone_numbers,
            concurrency=settings.COMPANY_LOOKUP_CONCURRENCY,
            deadline=settings.COMPANY_LOOKUP_DEADLINE_SECONDS,
        )
        return _company_code_response(batch, phone_numbers)
    except Exception as e:
        logger.exception(f"Manual company codes refresh error: {e}")
        return error_response(CompanyCodeResponse(success=False, error=str(e) or "Failed to refresh company codes"))


@router.get("/history", response_model=ChatHistoryResponse)
async def get_tagged_chat_history(
    current_menu: Optional[str] = Query(None, alias="currentMenu"),
    start_date: Optional[str] = Query(None, alias="startDate", description="Start date (YYYY-MM-DD)"),
    end_date: Optional[str] = Query(None, alias="endDate", description="End date (YYYY-MM-DD)"),
    company_code: Optional[str] = Query(None, alias="companyCode"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=500),
    db: Session = Depends(get_db),
    service: CompanyCodeService = Depends(get_company_code_service),
    principal: Principal = Depends(require_admin),
):
    """
    Chat history with the company of each contact.

    Filtering by company needs every candidate record resolved first, so the
    filter is applied to at most COMPANY_LOOKUP_MAX_PHONE_NUMBERS records and
    the page is cut afterwards.
    """
    start_dt = parse_date(start_date, "startDate")
    end_dt = parse_date(end_date, "endDate", end_of_day=True)
    offset = (page - 1) * limit

    try:
        if company_code:
            records = get_chat_history(
                db,
                current_menu=current_menu,
                start_date=start_dt,
                end_date=end_dt,
                limit=settings.COMPANY_LOOKUP_MAX_PHONE_NUMBERS,
            )
        else:
            records = get_chat_history(
                db, current_menu=current_menu, start_date=start_dt, end_date=end_dt, limit=limit, offset=offset
            )
        records = [{**record, "nohp": clean_phone_number(record["nohp"])} for record in records]

        phone_numbers = unique_phone_numbers(record["nohp"] for record in records)
        batch = BatchResult()
        if phone_numbers:
            batch = await service.resolve(
                phone_numbers,
                concurrency=settings.COMPANY_LOOKUP_CONCURRENCY,
                deadline=settings.COMPANY_LOOKUP_DEADLINE_SECONDS,
            )

        tagged = tag_chat_records(records, batch)
        if company_code:
            tagged = [record for record in tagged if record["company_code"] == company_code]
            tagged = tagged[offset:offset + limit]

        return ChatHistoryResponse(
            success=True,
            data=[
                TaggedChatRecord(
                    execution_id=record["execution_id"],
                    started_at=record["started_at"],
                    contact=record["nohp"],
                    chat=record["chat"],
                    chat_response=record["chat_response"],
                    current_menu=record["current_menu"],
                    workflow_id=record["workflow_id"],
                    workflow_name=record["workflow_name"],
                    company_code=record["company_code"],
                    company_name=record["company_name"],
                )
                for record in tagged
            ],
            page=page,
            limit=limit,
            deadline_exceeded=batch.deadline_exceeded,
        )
    except Exception as e:
        logger.exception(f"Chat history API error: {e}")
        return error_response(ChatHistoryResponse(success=False, page=page, limit=limit, error=str(e)))
