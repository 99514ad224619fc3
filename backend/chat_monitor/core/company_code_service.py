"""
Company code resolution service used by the report endpoints and the CLI
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Iterable, Optional, Union
import httpx

from chat_monitor.config import settings
from .batch_executor import execute_batch
from .database import SessionLocal
from .employee_directory import DirectoryLookupClient, EmployeeDirectory
from .sap_client import CompanyLookupClient, SAPLookupService, build_sap_http_client
from .schemas import BatchResult


LookupClient = Union[CompanyLookupClient, DirectoryLookupClient]


class CompanyCodeService:
    """Wires the lookup clients together and runs batches against them"""

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        session_factory: Optional[Callable] = None,
        use_directory: Optional[bool] = None,
    ):
        self.transport = transport
        self.session_factory = session_factory
        self.use_directory = use_directory

    @asynccontextmanager
    async def lookup_client(self) -> AsyncIterator[LookupClient]:
        """Lookup client backed by one HTTP connection pool for the whole batch"""
        use_directory = settings.COMPANY_LOOKUP_USE_DIRECTORY if self.use_directory is None else self.use_directory
        async with build_sap_http_client(self.transport) as http:
            sap_client = CompanyLookupClient(SAPLookupService(http).lookup, source="sap")
            if use_directory:
                directory = EmployeeDirectory(self.session_factory or SessionLocal)
                yield DirectoryLookupClient(directory, sap_client)
            else:
                yield sap_client

    async def resolve(
        self,
        phone_numbers: Iterable[str],
        concurrency: Optional[int] = None,
        deadline: Optional[float] = None,
    ) -> BatchResult:
        phone_numbers = list(phone_numbers)
        if not phone_numbers:
            return BatchResult()
        async with self.lookup_client() as client:
            return await execute_batch(
                phone_numbers,
                client.resolve,
                concurrency=concurrency or settings.COMPANY_LOOKUP_CONCURRENCY,
                deadline=deadline,
            )


# Global instance
company_code_service = CompanyCodeService()


def get_company_code_service() -> CompanyCodeService:
    return company_code_service
