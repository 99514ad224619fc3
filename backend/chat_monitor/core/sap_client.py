"""
Company code lookups against the SAP HR user-sync service
"""
import json
import time
from typing import Any, Awaitable, Callable, Optional
import httpx
from loguru import logger

from chat_monitor.config import settings
from .classifier import RawLookup, classify, error_result
from .http_client import HttpClient
from .schemas import CompanyCodeResult
from .types import CompanyCode


LookupFn = Callable[[str], Awaitable[Any]]


class LookupPayloadError(Exception):
    """The lookup service answered with a body that is not JSON"""


def build_sap_http_client(transport: Optional[httpx.AsyncBaseTransport] = None) -> HttpClient:
    """HttpClient preconfigured for the SAP service from settings"""
    auth = None
    if settings.SAP_USERNAME and settings.SAP_PASSWORD:
        auth = (settings.SAP_USERNAME, settings.SAP_PASSWORD)
    return HttpClient(
        base_url=settings.SAP_API_BASE_URL,
        headers={
            "Accept": "application/json",
            "Content-Type": "application/json",
        },
        timeout=settings.SAP_TIMEOUT_SECONDS,
        auth=auth,
        transport=transport,
    )


class SAPLookupService:
    """Raw transport: one GET per phone number, returns the decoded JSON body.

    Errors are raised, not classified; CompanyLookupClient turns them into results.
    """

    def __init__(self, http: HttpClient, api_path: Optional[str] = None, sap_client: Optional[str] = None):
        self.http = http
        self.api_path = api_path or settings.SAP_API_PATH
        self.sap_client = sap_client or settings.SAP_CLIENT

    def build_params(self, phone_number: str) -> dict:
        return {
            "sap-client": self.sap_client,
            "req": json.dumps({"IM_HP": phone_number}, separators=(",", ":")),
        }

    async def lookup(self, phone_number: str) -> Any:
        response = await self.http.get(self.api_path, params=self.build_params(phone_number))
        try:
            return response.json()
        except ValueError as e:
            raise LookupPayloadError(f"SAP API returned a non-JSON body: {response.text[:120]!r}") from e


class CompanyLookupClient:
    """Resolves one phone number into a CompanyCodeResult.

    ``resolve`` never raises for a failed lookup: network errors, timeouts,
    non-2xx statuses and unreadable bodies all come back as ERROR results.
    Cancellation still propagates.
    """

    def __init__(self, lookup: LookupFn, source: str = "sap"):
        self._lookup = lookup
        self.source = source

    async def resolve(self, phone_number: str) -> CompanyCodeResult:
        start = time.monotonic()
        try:
            payload = await self._lookup(phone_number)
            raw = RawLookup(phone_number, payload=payload, elapsed_ms=_elapsed_ms(start))
        except Exception as e:
            raw = RawLookup(phone_number, error=e, elapsed_ms=_elapsed_ms(start))

        try:
            result = classify(raw)
        except Exception as e:
            logger.exception(f"Could not classify {self.source} response for {phone_number}: {e}")
            result = error_result(phone_number, f"Unclassifiable response: {e}")

        log_lookup(self.source, result, raw.elapsed_ms)
        return result


def log_lookup(source: str, result: CompanyCodeResult, elapsed_ms: int) -> None:
    if result.company_code == CompanyCode.error.value:
        logger.warning(f"{source} lookup error for {result.phone_number} ({elapsed_ms}ms): {result.error}")
    elif result.success and result.company_code in (
        CompanyCode.not_found.value, CompanyCode.no_data.value, CompanyCode.unknown.value
    ):
        logger.info(f"{source} lookup for {result.phone_number} -> {result.company_code} ({elapsed_ms}ms)")
    else:
        logger.debug(
            f"{source} lookup for {result.phone_number} -> {result.company_code} "
            f"'{result.company_name}' ({elapsed_ms}ms)"
        )


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
