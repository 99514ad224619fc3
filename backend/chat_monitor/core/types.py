from enum import Enum
from typing import FrozenSet


class CompanyCode(str, Enum):
    """Sentinel company codes for lookups that did not resolve to a real company"""
    unknown = "UNKNOWN"
    error = "ERROR"
    not_found = "NOT_FOUND"
    no_data = "NO_DATA"


class ResultCategory(str, Enum):
    """Externally visible outcome categories used by the summary counters"""
    successful = "successful"
    unknown = "unknown"
    error = "error"


SENTINEL_CODES: FrozenSet[str] = frozenset(code.value for code in CompanyCode)

# Sentinels that mean "the call worked but no usable company came back"
UNRESOLVED_CODES: FrozenSet[str] = frozenset({
    CompanyCode.unknown.value,
    CompanyCode.not_found.value,
    CompanyCode.no_data.value,
})


def is_sentinel_code(company_code: str) -> bool:
    """Check whether a company code is one of the placeholder values"""
    return company_code in SENTINEL_CODES
