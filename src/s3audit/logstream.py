"""
Подготовка Parseable: ожидание готовности сервисов и создание logstream'ов,
в которые MinIO шлёт аудит (minio_audit) и серверные логи (minio_log).
"""
import base64
import time
import urllib.error
import urllib.request
from typing import Callable, Iterable, List

DEFAULT_PARSEABLE_URL = "http://localhost:8000"
DEFAULT_MINIO_URL = "http://localhost:9000"
DEFAULT_STREAMS = ["minio_audit", "minio_log"]
DEFAULT_MINIO_CONSOLE_URL = "http://localhost:9001"


class ServiceNotReady(Exception):
    pass


class LogstreamError(Exception):
    pass


def basic_auth_header(username: str, password: str) -> str:
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def parseable_ready_url(base_url: str) -> str:
    return base_url.rstrip("/") + "/api/v1/about"


def minio_ready_url(base_url: str) -> str:
    return base_url.rstrip("/") + "/minio/health/live"


def is_ready(url: str, timeout: float = 5) -> bool:
    try:
        with urllib.request.urlopen(url, timeout=timeout) as resp:
            return 200 <= resp.status < 500
    except urllib.error.HTTPError as exc:
        # /api/v1/about без авторизации отвечает 401, но сервис уже поднят
        return exc.code < 500
    except (urllib.error.URLError, OSError):
        return False


def wait_until_ready(
    url: str,
    timeout: float = 60,
    interval: float = 2,
    sleep: Callable[[float], None] = time.sleep,
    probe: Callable[[str], bool] = is_ready,
):
    waited = 0.0
    while not probe(url):
        if waited >= timeout:
            raise ServiceNotReady(f"{url} did not respond within {timeout:g} seconds")
        sleep(interval)
        waited += interval


def create_logstream(base_url: str, name: str, username: str = "admin", password: str = "admin", timeout: float = 10) -> int:
    url = f"{base_url.rstrip('/')}/api/v1/logstream/{name}"
    req = urllib.request.Request(
        url,
        data=b"{}",
        method="PUT",
        headers={
            "Authorization": basic_auth_header(username, password),
            "Content-Type": "application/json",
        },
    )
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            return resp.status
    except urllib.error.HTTPError as exc:
        body = exc.read().decode("utf-8", errors="replace")
        raise LogstreamError(f"PUT {url} -> {exc.code}: {body[:200]}") from exc
    except urllib.error.URLError as exc:
        raise LogstreamError(f"PUT {url} failed: {exc.reason}") from exc


def create_logstreams(base_url: str, names: Iterable[str], username: str = "admin", password: str = "admin") -> List[str]:
    created = []
    for name in names:
        create_logstream(base_url, name, username, password)
        created.append(name)
    return created
