import importlib
import json
import sys
from pathlib import Path

import pytest
from playwright.sync_api import Error as PWError

from app.scraper import config, db
from app.scraper import session as session_module
from app.scraper.error_codes import ChallengeUnavailable, ErrorCode, NavigationTimeout
from app.scraper.models import (
    CaseDetail,
    CaseQuery,
    CaseSummaryRecord,
    ChallengeToken,
    Outcome,
    ScrapeResult,
)
from app.scraper.utils import dump_json


def _configure_temp_paths(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    data_dir = tmp_path / "data"
    data_dir.mkdir(parents=True, exist_ok=True)
    db_path = data_dir / "casestatus.db"

    monkeypatch.setattr(config, "DATA_DIR", data_dir)
    monkeypatch.setattr(config, "LOG_DIR", data_dir / "logs")
    monkeypatch.setattr(config, "LOG_FILE", data_dir / "logs" / "latest.log")
    monkeypatch.setattr(config, "EXPORTS_DIR", data_dir / "exports")
    monkeypatch.setattr(config, "DB_PATH", db_path)
    monkeypatch.setattr(db, "DB_PATH", db_path)


def _reload_main_module():
    if "app.main" in sys.modules:
        del sys.modules["app.main"]
    return importlib.import_module("app.main")


@pytest.fixture
def main(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    _configure_temp_paths(tmp_path, monkeypatch)
    return _reload_main_module()


def _result(query: CaseQuery, outcome: Outcome, **kwargs) -> ScrapeResult:
    return ScrapeResult(query=query, outcome=outcome, challenge_used="AB12C", **kwargs)


def test_fetch_case_data_success(main, monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[CaseQuery] = []

    def _fake_fetch(query):
        seen.append(query)
        summary = CaseSummaryRecord("1", "FAO 123/2023", "A VS. B", "COURT NO: 12")
        return _result(query, Outcome.SUCCESS, summaries=[summary])

    monkeypatch.setattr(main, "fetch_case_data", _fake_fetch)
    client = main.app.test_client()

    resp = client.post(
        "/api/fetch-case-data",
        json={"caseType": "FAO", "caseNumber": "123", "filingYear": 2023},
    )

    assert resp.status_code == 200
    payload = resp.get_json()
    assert payload["ok"] is True
    assert payload["outcome"] == "success"
    assert payload["summaries"][0]["diary_or_case_no"] == "FAO 123/2023"
    assert payload["message"] == "Case data found successfully"
    assert seen == [CaseQuery("FAO", "123", "2023")]
    assert resp.headers["Access-Control-Allow-Origin"] == "*"


def test_fetch_case_data_no_data_is_not_an_error(main, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(main, "fetch_case_data", lambda query: _result(query, Outcome.NO_DATA))
    client = main.app.test_client()

    resp = client.post(
        "/api/fetch-case-data",
        json={"case_type": "FAO", "case_number": "999", "filing_year": "2023"},
    )

    assert resp.status_code == 200
    payload = resp.get_json()
    assert payload["outcome"] == "no_data"
    assert payload["summaries"] == []
    assert payload["error_code"] is None


def test_fetch_case_data_failure_maps_to_502(main, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        main,
        "fetch_case_data",
        lambda query: ScrapeResult.failure(
            query,
            ErrorCode.CHALLENGE_UNAVAILABLE,
            main.describe_error(ErrorCode.CHALLENGE_UNAVAILABLE),
        ),
    )
    client = main.app.test_client()

    resp = client.post(
        "/api/fetch-case-data",
        json={"caseType": "FAO", "caseNumber": "1", "filingYear": "2023"},
    )

    assert resp.status_code == 502
    payload = resp.get_json()
    assert payload["ok"] is False
    assert payload["error_code"] == ErrorCode.CHALLENGE_UNAVAILABLE
    assert payload["message"] == main.describe_error(ErrorCode.CHALLENGE_UNAVAILABLE)


def test_fetch_case_data_missing_fields(main, monkeypatch: pytest.MonkeyPatch) -> None:
    def _never(_query):
        raise AssertionError("scraper must not run for invalid input")

    monkeypatch.setattr(main, "fetch_case_data", _never)
    client = main.app.test_client()

    resp = client.post("/api/fetch-case-data", json={"caseType": "FAO", "caseNumber": " "})

    assert resp.status_code == 400
    payload = resp.get_json()
    assert payload["error"] == "invalid_params"
    assert payload["details"] == ["caseNumber is required", "filingYear is required"]

    resp_no_body = client.post("/api/fetch-case-data", data="not json")
    assert resp_no_body.status_code == 400


def test_fetch_case_data_invalid_config(main, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "POLL_MAX_ATTEMPTS", 0)
    client = main.app.test_client()

    resp = client.post(
        "/api/fetch-case-data",
        json={"caseType": "FAO", "caseNumber": "1", "filingYear": "2023"},
    )

    assert resp.status_code == 500
    assert resp.get_json()["error"] == "config_invalid"


def test_case_types(main, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(main, "list_case_types", lambda: ["FAO", "W.P.(C)"])
    client = main.app.test_client()

    resp = client.get("/api/case-types")

    assert resp.status_code == 200
    assert resp.get_json() == {"ok": True, "case_types": ["FAO", "W.P.(C)"]}


def test_case_types_scrape_error(main, monkeypatch: pytest.MonkeyPatch) -> None:
    def _fail():
        raise NavigationTimeout("slow")

    monkeypatch.setattr(main, "list_case_types", _fail)
    client = main.app.test_client()

    resp = client.get("/api/case-types")

    assert resp.status_code == 502
    assert resp.get_json()["error"] == ErrorCode.NAVIGATION_TIMEOUT


def test_captcha(main, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(main, "read_current_challenge", lambda: ChallengeToken("x7Q2p"))
    client = main.app.test_client()

    assert client.get("/api/captcha").get_json() == {"ok": True, "captcha": "x7Q2p"}

    def _missing():
        raise ChallengeUnavailable("gone")

    monkeypatch.setattr(main, "read_current_challenge", _missing)
    resp = client.get("/api/captcha")
    assert resp.status_code == 502
    assert resp.get_json()["error"] == ErrorCode.CHALLENGE_UNAVAILABLE


def test_case_orders(main, monkeypatch: pytest.MonkeyPatch) -> None:
    link = "https://delhihighcourt.nic.in/app/case-type-status-details/FAO/123/2023"
    monkeypatch.setattr(
        main, "fetch_case_orders", lambda url: CaseDetail("12/01/2023", "05/03/2024", [])
    )
    client = main.app.test_client()

    resp = client.get("/api/case-orders", query_string={"link": link})

    assert resp.status_code == 200
    payload = resp.get_json()
    assert payload["link"] == link
    assert payload["filing_date"] == "12/01/2023"
    assert payload["orders"] == []

    assert client.get("/api/case-orders").status_code == 400
    assert client.get("/api/case-orders?link=javascript:alert(1)").status_code == 400


def test_query_history_returns_archived_rows(main) -> None:
    query = CaseQuery("FAO", "123", "2023")
    older = _result(query, Outcome.NO_DATA)
    db.record_query("FAO", "123", "2023", dump_json(older.to_dict()), outcome="no_data")
    db.record_query("FAO", "124", "2023", "{broken", outcome="failure", error_code="navigation_timeout")
    client = main.app.test_client()

    resp = client.get("/api/query-history?limit=10")

    assert resp.status_code == 200
    payload = resp.get_json()
    assert payload["count"] == 2
    newest, oldest = payload["queries"]
    assert newest["case_number"] == "124"
    assert newest["response"] is None
    assert newest["error_code"] == "navigation_timeout"
    assert oldest["response"]["outcome"] == "no_data"
    assert "raw_response" not in oldest

    assert client.get("/api/query-history?limit=abc").status_code == 400


def test_history_export_download(main) -> None:
    query = CaseQuery("FAO", "123", "2023")
    summary = CaseSummaryRecord("1", "FAO 123/2023", "A VS. B", "")
    result = _result(query, Outcome.SUCCESS, summaries=[summary])
    db.record_query("FAO", "123", "2023", json.dumps(result.to_dict()), outcome="success")
    client = main.app.test_client()

    resp = client.get("/api/exports/history.xlsx")

    assert resp.status_code == 200
    assert resp.data[:2] == b"PK"
    resp.close()


def test_case_orders_rejects_unrelated_links(main, monkeypatch: pytest.MonkeyPatch) -> None:
    def _never(_link):
        raise AssertionError("browser must not open for unrelated links")

    monkeypatch.setattr(main, "fetch_case_orders", _never)
    client = main.app.test_client()

    resp = client.get("/api/case-orders", query_string={"link": "https://example.com/admin"})

    assert resp.status_code == 400
    assert resp.get_json()["details"] == ["link is not a case orders page"]


@pytest.mark.parametrize(
    "url",
    [
        "/api/case-orders?link=https://delhihighcourt.nic.in/app/case-type-status-details/FAO/1/2023",
        "/api/case-types",
        "/api/captcha",
    ],
)
def test_browser_launch_failure_returns_json_error(
    main, monkeypatch: pytest.MonkeyPatch, url: str
) -> None:
    def _no_browser(_label):
        raise PWError("Executable doesn't exist at /ms-playwright/chromium/chrome")

    monkeypatch.setattr(session_module, "open_browser_session", _no_browser)
    client = main.app.test_client()

    resp = client.get(url)

    assert resp.status_code == 502
    assert resp.is_json
    payload = resp.get_json()
    assert payload["ok"] is False
    assert payload["error"] == ErrorCode.INTERNAL
    assert "ms-playwright" not in payload["message"]
