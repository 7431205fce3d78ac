import io
import urllib.error
import urllib.request

import pytest

from s3audit import logstream
from s3audit.logstream import (
    LogstreamError,
    ServiceNotReady,
    basic_auth_header,
    create_logstreams,
    minio_ready_url,
    parseable_ready_url,
    wait_until_ready,
)


class FakeResponse:
    def __init__(self, status=200):
        self.status = status

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


def test_basic_auth_header_admin():
    assert basic_auth_header("admin", "admin") == "Basic YWRtaW46YWRtaW4="


def test_ready_urls():
    assert parseable_ready_url("http://localhost:8000/") == "http://localhost:8000/api/v1/about"
    assert minio_ready_url("http://localhost:9000") == "http://localhost:9000/minio/health/live"


def test_create_logstreams_issues_put(monkeypatch):
    requests = []

    def fake_urlopen(req, timeout=None):
        requests.append(req)
        return FakeResponse()

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)

    created = create_logstreams("http://localhost:8000", ["minio_audit", "minio_log"])

    assert created == ["minio_audit", "minio_log"]
    assert [r.full_url for r in requests] == [
        "http://localhost:8000/api/v1/logstream/minio_audit",
        "http://localhost:8000/api/v1/logstream/minio_log",
    ]
    assert all(r.get_method() == "PUT" for r in requests)
    assert requests[0].get_header("Authorization") == "Basic YWRtaW46YWRtaW4="
    assert requests[0].data == b"{}"


def test_create_logstream_http_error(monkeypatch):
    def fake_urlopen(req, timeout=None):
        raise urllib.error.HTTPError(req.full_url, 401, "Unauthorized", {}, io.BytesIO(b"bad credentials"))

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)

    with pytest.raises(LogstreamError, match="401"):
        logstream.create_logstream("http://localhost:8000", "minio_audit", "admin", "wrong")


def test_is_ready_treats_auth_error_as_up(monkeypatch):
    def fake_urlopen(url, timeout=None):
        raise urllib.error.HTTPError(url, 401, "Unauthorized", {}, io.BytesIO())

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)

    assert logstream.is_ready("http://localhost:8000/api/v1/about") is True


def test_is_ready_false_when_refused(monkeypatch):
    def fake_urlopen(url, timeout=None):
        raise urllib.error.URLError("Connection refused")

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)

    assert logstream.is_ready("http://localhost:9000/minio/health/live") is False


def test_wait_until_ready_polls():
    answers = iter([False, False, True])
    sleeps = []

    wait_until_ready("http://x", timeout=10, interval=2, sleep=sleeps.append, probe=lambda url: next(answers))

    assert sleeps == [2, 2]


def test_wait_until_ready_times_out():
    sleeps = []

    with pytest.raises(ServiceNotReady):
        wait_until_ready("http://x", timeout=6, interval=2, sleep=sleeps.append, probe=lambda url: False)

    assert sum(sleeps) == 6
