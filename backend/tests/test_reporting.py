from datetime import datetime, timezone

from chat_monitor.core.reporting import UNKNOWN_COMPANY_NAME, company_contact_stats, tag_chat_records
from conftest import failed, ok, sentinel


def record(phone, started_at, execution_id="exec"):
    return {"execution_id": execution_id, "nohp": phone, "started_at": started_at, "current_menu": "main"}


RECORDS = [
    record("6281", "2025-01-01T08:00:00Z", "e1"),
    record("6281", "2025-01-03T08:00:00Z", "e2"),
    record("6282", "2025-01-02T08:00:00Z", "e3"),
    record("6283", datetime(2025, 1, 4, 8, 0), "e4"),
    record("6284", "2025-01-05T08:00:00Z", "e5"),
    record("6285", "2025-01-05T09:00:00Z", "e6"),
]

RESULTS = [
    ok("6281", "SM01", "PT One"),
    ok("6282", "SM01", "PT One"),
    ok("6283", "SM02", "PT Two"),
    sentinel("6284", "NOT_FOUND"),
    failed("6285"),
]


def test_tag_chat_records_adds_company_to_every_record():
    tagged = tag_chat_records(RECORDS + [record("6289", None, "e7")], RESULTS)

    codes = {r["execution_id"]: r["company_code"] for r in tagged}
    assert codes == {
        "e1": "SM01", "e2": "SM01", "e3": "SM01", "e4": "SM02",
        "e5": "NOT_FOUND", "e6": "ERROR", "e7": "UNKNOWN",
    }
    assert tagged[0]["company_name"] == "PT One"
    assert tagged[0]["current_menu"] == "main"
    assert "company_code" not in RECORDS[0]


def test_company_contact_stats_groups_successful_contacts():
    stats = company_contact_stats(RECORDS, RESULTS)

    assert [(s.company_code, s.unique_contacts) for s in stats] == [("SM01", 2), ("SM02", 1)]
    assert stats[0].company_name == "PT One"
    assert stats[0].last_contact == datetime(2025, 1, 3, 8, 0, tzinfo=timezone.utc)
    assert stats[1].last_contact == datetime(2025, 1, 4, 8, 0, tzinfo=timezone.utc)
    assert stats[0].phone_numbers == []


def test_company_contact_stats_can_list_phone_numbers():
    stats = company_contact_stats(RECORDS, RESULTS, include_phone_numbers=True)

    assert stats[0].phone_numbers == ["6281", "6282"]


def test_company_contact_stats_falls_back_to_unknown_group():
    stats = company_contact_stats(RECORDS, [failed("6281"), sentinel("6282", "NO_DATA")])

    assert len(stats) == 1
    assert stats[0].company_code == "UNKNOWN"
    assert stats[0].company_name == UNKNOWN_COMPANY_NAME
    assert stats[0].unique_contacts == 5


def test_company_contact_stats_without_records():
    assert company_contact_stats([], RESULTS) == []
