import time
from datetime import datetime, timedelta, timezone
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from loguru import logger

from ...config import settings
from ...core.auth import Principal, require_admin
from ...core.chat_history import get_chat_history
from ...core.company_code_service import CompanyCodeService, get_company_code_service
from ...core.database import get_db
from ...core.reporting import company_contact_stats
from ...core.schemas import BatchResult, CompanyContactsResponse, CompanyContactsSummary
from ...core.utils import clean_phone_number, unique_phone_numbers
from .common import error_response

router = APIRouter()

MAX_CHAT_RECORDS = 50000


@router.get("/company-contacts", response_model=CompanyContactsResponse)
async def get_company_contacts(
    days: int = Query(30, ge=1, le=365),
    include_phone_numbers: bool = Query(False, alias="includePhoneNumbers"),
    db: Session = Depends(get_db),
    service: CompanyCodeService = Depends(get_company_code_service),
    principal: Principal = Depends(require_admin),
):
    """
    Unique contacts per company over the last ``days`` days
    """
    started = time.monotonic()
    budget = settings.COMPANY_LOOKUP_DEADLINE_SECONDS

    today = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    start_dt = today - timedelta(days=days)
    end_dt = today + timedelta(days=1)

    try:
        records = get_chat_history(db, start_date=start_dt, end_date=end_dt, limit=MAX_CHAT_RECORDS)
        records = [{**record, "nohp": clean_phone_number(record["nohp"])} for record in records]
        phone_numbers = unique_phone_numbers(record["nohp"] for record in records)
        logger.info(f"Company contacts for {days} days: {len(records)} records, {len(phone_numbers)} unique phone numbers")

        batch = BatchResult()
        if phone_numbers:
            to_process = phone_numbers[:settings.COMPANY_LOOKUP_MAX_PHONE_NUMBERS]
            if len(to_process) < len(phone_numbers):
                logger.info(f"Processing {len(to_process)} phone numbers (limited from {len(phone_numbers)} total)")

            remaining = budget - (time.monotonic() - started)
            if remaining <= 0:
                logger.warning(f"Processing budget spent ({budget}s) before company lookup, skipping SAP calls")
            else:
                try:
                    batch = await service.resolve(
                        to_process,
                        concurrency=settings.COMPANY_CONTACTS_CONCURRENCY,
                        deadline=remaining,
                    )
                except Exception as e:
                    # Report the contacts without company data rather than failing the page
                    logger.error(f"Error fetching company codes: {e}")

        stats = company_contact_stats(records, batch, include_phone_numbers=include_phone_numbers)
        return CompanyContactsResponse(
            success=True,
            data=stats,
            summary=CompanyContactsSummary(
                total_companies=len(stats),
                total_unique_contacts=sum(s.unique_contacts for s in stats),
            ),
        )
    except Exception as e:
        logger.exception(f"Company contacts API error: {e}")
        return error_response(CompanyContactsResponse(success=False, error=str(e)))
