"""Tests for the calendar event source."""

import asyncio

import pytest
import requests

from core import config
from core.config import ConfigurationError
from services import calendar
from services.calendar import UpstreamFetchError, fetch_calendar_events, parse_event, parse_job_name


class FakeResponse:
    def __init__(self, status_code=200, body=None, reason="OK"):
        self.status_code = status_code
        self.reason = reason
        self._body = body if body is not None else {"events": [], "count": 0}

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        if isinstance(self._body, Exception):
            raise self._body
        return self._body


@pytest.fixture
def calendar_url(monkeypatch):
    monkeypatch.setattr(config, "CALENDAR_API_URL", "https://script.example.com/exec")
    return config.CALENDAR_API_URL


class TestParseJobName:

    def test_extracts_name(self):
        assert parse_job_name("[バイト]コンビニA") == "コンビニA"

    def test_trims_whitespace(self):
        assert parse_job_name("[バイト]  塾講師  ") == "塾講師"

    def test_untagged_title(self):
        assert parse_job_name("歯医者") is None

    def test_tag_only(self):
        assert parse_job_name("[バイト]   ") is None

    def test_custom_tag(self):
        assert parse_job_name("[Job] Bakery", tag="[Job]") == "Bakery"


class TestParseEvent:

    def test_keeps_source_fields(self):
        event = parse_event({
            "id": "abc@google.com",
            "title": "[バイト]モシモス",
            "jobName": "モシモス",
            "startTime": "2024-03-15T01:00:00.000Z",
            "endTime": "2024-03-15T09:00:00.000Z",
            "description": "closing shift",
            "isAllDay": False,
        })
        assert event["id"] == "abc@google.com"
        assert event["jobName"] == "モシモス"
        assert event["description"] == "closing shift"
        assert event["isAllDay"] is False

    def test_missing_job_name_derived_from_title(self):
        event = parse_event({
            "id": "x", "title": "[バイト]塾", "startTime": "2024-03-15T01:00:00.000Z",
            "endTime": "2024-03-15T02:00:00.000Z",
        })
        assert event["jobName"] == "塾"
        assert event["description"] == ""

    def test_null_job_name_on_untagged_title(self):
        event = parse_event({
            "id": "x", "title": "meeting", "jobName": None,
            "startTime": "2024-03-15T01:00:00.000Z", "endTime": "2024-03-15T02:00:00.000Z",
        })
        assert event["jobName"] is None


class TestFetchCalendarEvents:

    def test_missing_url_raises_configuration_error(self):
        with pytest.raises(ConfigurationError):
            asyncio.run(fetch_calendar_events(2024))

    def test_requests_year(self, calendar_url, monkeypatch):
        seen = {}

        def fake_get(url, params=None, headers=None, timeout=None):
            seen["url"] = url
            seen["params"] = params
            return FakeResponse(body={
                "events": [{
                    "id": "evt1", "title": "[バイト]モシモス", "jobName": "モシモス",
                    "startTime": "2024-03-15T01:00:00.000Z", "endTime": "2024-03-15T09:00:00.000Z",
                    "description": "", "isAllDay": False,
                }],
                "count": 1,
            })

        monkeypatch.setattr(calendar.requests, "get", fake_get)
        result = asyncio.run(fetch_calendar_events(2024))

        assert seen["url"] == calendar_url
        assert seen["params"] == {"path": "events", "year": "2024"}
        assert result["count"] == 1
        assert result["events"][0]["jobName"] == "モシモス"

    def test_http_error_status(self, calendar_url, monkeypatch):
        monkeypatch.setattr(
            calendar.requests, "get",
            lambda *a, **kw: FakeResponse(status_code=502, reason="Bad Gateway"),
        )
        with pytest.raises(UpstreamFetchError, match="502 Bad Gateway"):
            asyncio.run(fetch_calendar_events(2024))

    def test_network_error(self, calendar_url, monkeypatch):
        def boom(*a, **kw):
            raise requests.ConnectionError("connection refused")

        monkeypatch.setattr(calendar.requests, "get", boom)
        with pytest.raises(UpstreamFetchError, match="connection refused"):
            asyncio.run(fetch_calendar_events(2024))

    def test_error_body(self, calendar_url, monkeypatch):
        monkeypatch.setattr(
            calendar.requests, "get",
            lambda *a, **kw: FakeResponse(body={"error": "unknown path"}),
        )
        with pytest.raises(UpstreamFetchError, match="unknown path"):
            asyncio.run(fetch_calendar_events(2024))

    def test_invalid_json(self, calendar_url, monkeypatch):
        monkeypatch.setattr(
            calendar.requests, "get",
            lambda *a, **kw: FakeResponse(body=ValueError("not json")),
        )
        with pytest.raises(UpstreamFetchError, match="invalid JSON"):
            asyncio.run(fetch_calendar_events(2024))
