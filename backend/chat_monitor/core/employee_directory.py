"""
Employee directory lookups.

The reporting database keeps a synced copy of the SAP HR employee list. It is
queried first because it is far cheaper than the live service; only numbers
that are not in the copy go out to SAP.
"""
import time
from typing import Callable, Optional
import anyio
from loguru import logger
from sqlalchemy import case, or_
from sqlalchemy.orm import Session

from .classifier import RawLookup, classify, error_result
from .models import EmployeeRecord
from .sap_client import CompanyLookupClient, log_lookup
from .schemas import CompanyCodeResult


PREFERRED_ENVIRONMENT = "100"
ENVIRONMENTS = ("100", "200")
TERMINATED_GROUP = "Terminated"


class EmployeeDirectory:
    """Reads the synced employee table"""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def find_by_phone(self, phone_number: str) -> Optional[dict]:
        """Active employee record for a phone number, preferring environment 100"""
        with self.session_factory() as db:
            row = (
                db.query(EmployeeRecord)
                .filter(
                    EmployeeRecord.hp == phone_number,
                    EmployeeRecord.environment_id.in_(ENVIRONMENTS),
                    or_(
                        EmployeeRecord.employee_group.is_(None),
                        EmployeeRecord.employee_group != TERMINATED_GROUP,
                    ),
                )
                .order_by(
                    case((EmployeeRecord.environment_id == PREFERRED_ENVIRONMENT, 1), else_=2),
                    EmployeeRecord.environment_id,
                )
                .first()
            )
            return row.to_sap_record() if row else None


class DirectoryLookupClient:
    """Directory first, live SAP lookup when the directory has no record.

    A directory failure is reported as ERROR without trying SAP. Cancelling
    resolve (batch deadline) does not stop a query already running in its
    worker thread; it runs to completion and its row is discarded.
    """

    def __init__(self, directory: EmployeeDirectory, fallback: CompanyLookupClient):
        self.directory = directory
        self.fallback = fallback

    async def resolve(self, phone_number: str) -> CompanyCodeResult:
        start = time.monotonic()
        try:
            record = await anyio.to_thread.run_sync(
                self.directory.find_by_phone, phone_number, abandon_on_cancel=True
            )
        except Exception as e:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            result = error_result(phone_number, f"Employee directory error: {e}")
            log_lookup("directory", result, elapsed_ms)
            return result

        if record is None:
            logger.debug(f"{phone_number} not in employee directory, trying live SAP API")
            return await self.fallback.resolve(phone_number)

        elapsed_ms = int((time.monotonic() - start) * 1000)
        result = classify(RawLookup(phone_number, payload=record, elapsed_ms=elapsed_ms))
        log_lookup("directory", result, elapsed_ms)
        return result
