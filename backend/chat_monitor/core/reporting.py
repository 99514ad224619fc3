"""
Report views built on top of resolved company codes: tagging chat records
and per-company contact statistics.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .aggregator import Results, iter_results
from .classifier import categorize
from .schemas import CompanyCodeResult, CompanyContactStats
from .types import CompanyCode, ResultCategory


UNKNOWN_COMPANY_NAME = "Unknown Company (SAP data unavailable)"


def _as_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def tag_chat_records(records: Iterable[Dict[str, Any]], results: Results) -> List[Dict[str, Any]]:
    """Copy each chat record with the company code and name of its phone number"""
    by_phone: Dict[str, CompanyCodeResult] = {r.phone_number: r for r in iter_results(results)}
    tagged = []
    for record in records:
        result = by_phone.get(record.get("nohp") or "")
        tagged.append({
            **record,
            "company_code": result.company_code if result else CompanyCode.unknown.value,
            "company_name": result.company_name if result else "",
        })
    return tagged


def company_contact_stats(
    records: Iterable[Dict[str, Any]],
    results: Results,
    include_phone_numbers: bool = False,
) -> List[CompanyContactStats]:
    """
    Group chat records by the company of their phone number.

    Only phone numbers that resolved to a real company are grouped. If none
    did, every contact is reported under a single UNKNOWN company instead.
    Sorted by unique contacts, largest first.
    """
    records = list(records)
    companies: Dict[Tuple[str, str], Dict[str, Any]] = {}
    by_phone = {
        r.phone_number: r
        for r in iter_results(results)
        if categorize(r) is ResultCategory.successful
    }

    for record in records:
        phone_number = record.get("nohp")
        result = by_phone.get(phone_number) if phone_number else None
        if result is None:
            continue
        key = (result.company_code, result.company_name)
        _add_contact(companies, key, phone_number, _as_datetime(record.get("started_at")))

    if not companies:
        key = (CompanyCode.unknown.value, UNKNOWN_COMPANY_NAME)
        for record in records:
            phone_number = (record.get("nohp") or "").strip()
            if phone_number:
                _add_contact(companies, key, phone_number, _as_datetime(record.get("started_at")))

    stats = [
        CompanyContactStats(
            company_code=code,
            company_name=name,
            unique_contacts=len(entry["phone_numbers"]),
            phone_numbers=sorted(entry["phone_numbers"]) if include_phone_numbers else [],
            last_contact=entry["last_contact"],
        )
        for (code, name), entry in companies.items()
    ]
    stats.sort(key=lambda s: s.unique_contacts, reverse=True)
    return stats


def _add_contact(companies, key, phone_number: str, started_at: Optional[datetime]) -> None:
    entry = companies.setdefault(key, {"phone_numbers": set(), "last_contact": None})
    entry["phone_numbers"].add(phone_number)
    if started_at and (entry["last_contact"] is None or started_at > entry["last_contact"]):
        entry["last_contact"] = started_at
