import asyncio
import base64
import json

import httpx
import pytest

from chat_monitor.config import settings
from chat_monitor.core.company_code_service import CompanyCodeService
from chat_monitor.core.http_client import HttpClient
from chat_monitor.core.sap_client import CompanyLookupClient, SAPLookupService, build_sap_http_client


SAP_PATH = "/sap/SMM_API/LMS/USER_SYNC/GET"


def sap_user(phone: str, code: str = "SM01") -> dict:
    return {"UserName": f"user{phone[-3:]}", "FullName": "Test User", "CompanyCode": code,
            "CompanyCodeDesc": f"Company {code}", "Hp": phone}


def client_for(handler) -> HttpClient:
    return HttpClient(base_url="http://sap.test", transport=httpx.MockTransport(handler), timeout=1.0)


@pytest.mark.anyio
async def test_request_carries_phone_and_sap_client():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[sap_user("628123456789")])

    async with client_for(handler) as http:
        service = SAPLookupService(http, api_path=SAP_PATH, sap_client="300")
        result = await CompanyLookupClient(service.lookup).resolve("628123456789")

    assert result.company_code == "SM01"
    assert result.company_name == "Company SM01"
    request = seen[0]
    assert request.method == "GET"
    assert request.url.path == SAP_PATH
    assert request.url.params["sap-client"] == "300"
    assert json.loads(request.url.params["req"]) == {"IM_HP": "628123456789"}


@pytest.mark.anyio
async def test_phone_number_is_sent_as_given():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.url.params["req"])["IM_HP"])
        return httpx.Response(200, json=[])

    async with client_for(handler) as http:
        result = await CompanyLookupClient(SAPLookupService(http, api_path=SAP_PATH).lookup).resolve("+62 812-3456")

    assert seen == ["+62 812-3456"]
    assert result.phone_number == "+62 812-3456"
    assert result.company_code == "NOT_FOUND"


@pytest.mark.anyio
async def test_basic_auth_when_credentials_configured(monkeypatch):
    monkeypatch.setattr(settings, "SAP_USERNAME", "hris")
    monkeypatch.setattr(settings, "SAP_PASSWORD", "secret")
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers.get("Authorization"))
        return httpx.Response(200, json=[sap_user("628111")])

    async with build_sap_http_client(httpx.MockTransport(handler)) as http:
        await SAPLookupService(http).lookup("628111")

    assert seen == ["Basic " + base64.b64encode(b"hris:secret").decode()]


@pytest.mark.anyio
async def test_no_auth_header_without_credentials(monkeypatch):
    monkeypatch.setattr(settings, "SAP_USERNAME", None)
    monkeypatch.setattr(settings, "SAP_PASSWORD", None)
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers.get("Authorization"))
        return httpx.Response(200, json=[])

    async with build_sap_http_client(httpx.MockTransport(handler)) as http:
        await SAPLookupService(http).lookup("628111")

    assert seen == [None]


@pytest.mark.anyio
@pytest.mark.parametrize(
    "handler",
    [
        lambda request: httpx.Response(500, text="Internal Server Error"),
        lambda request: httpx.Response(401, text="Unauthorized"),
        lambda request: httpx.Response(200, text="<html>SAP NetWeaver</html>"),
    ],
    ids=["server-error", "unauthorized", "not-json"],
)
async def test_failed_calls_become_error_results(handler):
    async with client_for(handler) as http:
        result = await CompanyLookupClient(SAPLookupService(http, api_path=SAP_PATH).lookup).resolve("628123")

    assert result.success is False
    assert result.company_code == "ERROR"
    assert result.error


@pytest.mark.anyio
async def test_timeout_becomes_error_result():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    async with client_for(handler) as http:
        result = await CompanyLookupClient(SAPLookupService(http, api_path=SAP_PATH).lookup).resolve("628123")

    assert result.success is False
    assert result.company_code == "ERROR"
    assert result.error == "timed out"


@pytest.mark.anyio
async def test_resolve_never_raises_for_arbitrary_lookup_failures():
    async def broken_lookup(phone_number):
        raise RuntimeError("boom")

    result = await CompanyLookupClient(broken_lookup).resolve("628123")

    assert result.success is False
    assert result.company_code == "ERROR"
    assert result.error == "boom"


@pytest.mark.anyio
async def test_cancellation_is_not_swallowed():
    started = asyncio.Event()

    async def hanging_lookup(phone_number):
        started.set()
        await asyncio.sleep(10)

    task = asyncio.create_task(CompanyLookupClient(hanging_lookup).resolve("628123"))
    await started.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task


@pytest.mark.anyio
async def test_service_resolves_batch_over_one_connection_pool():
    def handler(request: httpx.Request) -> httpx.Response:
        phone = json.loads(request.url.params["req"])["IM_HP"]
        if phone == "628001":
            return httpx.Response(200, json=[sap_user(phone, "SM01")])
        if phone == "628002":
            return httpx.Response(200, json=[])
        return httpx.Response(503, text="Service Unavailable")

    service = CompanyCodeService(transport=httpx.MockTransport(handler), use_directory=False)
    batch = await service.resolve(["628001", "628002", "628003"], concurrency=2)

    by_phone = batch.by_phone()
    assert set(by_phone) == {"628001", "628002", "628003"}
    assert by_phone["628001"].company_code == "SM01"
    assert by_phone["628002"].company_code == "NOT_FOUND"
    assert by_phone["628003"].company_code == "ERROR"
    assert by_phone["628003"].success is False


@pytest.mark.anyio
async def test_service_short_circuits_empty_input():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=[])

    service = CompanyCodeService(transport=httpx.MockTransport(handler), use_directory=False)
    batch = await service.resolve([])

    assert batch.results == []
    assert calls == []
