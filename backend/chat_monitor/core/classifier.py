"""
Classification of raw company lookups into CompanyCodeResult values.

Every raw outcome lands in exactly one of five shapes:

1. the call failed                        -> ERROR, success=False
2. the service answered "no record"       -> NOT_FOUND
3. a record came back without usable data -> NO_DATA
4. the payload shape is not recognized    -> UNKNOWN
5. a complete record                      -> the real company code

A record that carries the service's own error marker is reported as ERROR
with success=True, since the call itself completed.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .schemas import CompanyCodeResult
from .types import CompanyCode, ResultCategory, UNRESOLVED_CODES


RECORD_FIELDS = (
    "UserName",
    "FullName",
    "CompanyCode",
    "CompanyCodeDesc",
    "PositionName",
    "PositionId",
    "PersonalArea",
    "PersonalSubarea",
    "PositionLevelId",
    "EmployeeGroup",
    "Hp",
)


@dataclass(frozen=True)
class RawLookup:
    """What came back from one remote call: a decoded payload or the exception that ended it"""
    phone_number: str
    payload: Any = None
    error: Optional[BaseException] = None
    elapsed_ms: int = 0


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _remote_error_message(record: Dict[str, Any]) -> Optional[str]:
    if _text(record.get("TYPE")).upper() == "E":
        return _text(record.get("MESSAGE")) or "SAP returned an error record"
    marker = _text(record.get("ERROR")) or _text(record.get("Error"))
    return marker or None


def error_result(phone_number: str, message: str) -> CompanyCodeResult:
    """Result for a lookup whose call did not complete"""
    return CompanyCodeResult(
        phone_number=phone_number,
        company_code=CompanyCode.error.value,
        success=False,
        error=message,
    )


def _sentinel(phone_number: str, code: CompanyCode, error: Optional[str] = None) -> CompanyCodeResult:
    return CompanyCodeResult(
        phone_number=phone_number,
        company_code=code.value,
        success=True,
        error=error,
    )


def classify(raw: RawLookup) -> CompanyCodeResult:
    phone_number = raw.phone_number

    if raw.error is not None:
        return error_result(phone_number, str(raw.error) or type(raw.error).__name__)

    payload = raw.payload
    if payload is None or payload == [] or payload == {}:
        return _sentinel(phone_number, CompanyCode.not_found)

    # The service answers with a list of users; only the first one counts
    if isinstance(payload, list):
        record = payload[0]
    elif isinstance(payload, dict):
        record = payload
    else:
        return _sentinel(phone_number, CompanyCode.unknown)

    if not isinstance(record, dict):
        return _sentinel(phone_number, CompanyCode.unknown)
    if not record:
        return _sentinel(phone_number, CompanyCode.not_found)

    remote_error = _remote_error_message(record)
    if remote_error:
        return _sentinel(phone_number, CompanyCode.error, error=remote_error)

    if not any(field in record for field in RECORD_FIELDS):
        return _sentinel(phone_number, CompanyCode.unknown)

    company_code = _text(record.get("CompanyCode"))
    if not _text(record.get("UserName")) or not company_code:
        return _sentinel(phone_number, CompanyCode.no_data)

    return CompanyCodeResult(
        phone_number=phone_number,
        company_code=company_code,
        company_name=_text(record.get("CompanyCodeDesc")),
        success=True,
        employee_id=_text(record.get("PositionId")) or None,
        employee_name=_text(record.get("FullName")) or None,
        department=_text(record.get("PersonalArea")) or None,
        position=_text(record.get("PositionName")) or None,
    )


def categorize(result: CompanyCodeResult) -> ResultCategory:
    """Map a result onto the successful / unknown / error counters"""
    if not result.success or result.company_code == CompanyCode.error.value:
        return ResultCategory.error
    if result.company_code in UNRESOLVED_CODES:
        return ResultCategory.unknown
    return ResultCategory.successful
