# File-system and HTTP capabilities handed to the provisioning components.
# Tests swap these for fakes; production uses the local disk and requests.

import os, shutil
from typing import Dict, Optional, Protocol
import backoff, requests
from .errors import EngineUnreachable
from .logs import get_logger

logger = get_logger()


class FileSystem(Protocol):
    def exists(self, path: str) -> bool: ...
    def is_file(self, path: str) -> bool: ...
    def copy_tree(self, src: str, dst: str, dirs_exist_ok: bool = False) -> None: ...
    def remove_tree(self, path: str) -> None: ...
    def delete_file(self, path: str) -> None: ...
    def read_bytes(self, path: str) -> bytes: ...
    def write_text(self, path: str, text: str) -> None: ...


class HttpClient(Protocol):
    def get(self, url: str, params: Optional[Dict[str, str]] = None) -> str:
        """Return the response body; raise EngineUnreachable on transport errors or non-2xx."""
        ...


class LocalFileSystem:
    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def is_file(self, path: str) -> bool:
        return os.path.isfile(path)

    def copy_tree(self, src: str, dst: str, dirs_exist_ok: bool = False) -> None:
        shutil.copytree(src, dst, dirs_exist_ok=dirs_exist_ok)

    def remove_tree(self, path: str) -> None:
        shutil.rmtree(path)

    def delete_file(self, path: str) -> None:
        # deleting something that isn't there is fine
        try:
            os.remove(path)
        except FileNotFoundError:
            pass

    def read_bytes(self, path: str) -> bytes:
        with open(path, "rb") as f:
            return f.read()

    def write_text(self, path: str, text: str) -> None:
        with open(path, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)


class RequestsHttpClient:
    def __init__(self, timeout: float = 30.0, session: requests.Session | None = None):
        self.timeout = timeout
        self.session = session or requests.Session()

    def get(self, url: str, params: Optional[Dict[str, str]] = None) -> str:
        try:
            r = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise EngineUnreachable(f"GET {url} failed: {e}", url=url) from e
        if not 200 <= r.status_code < 300:
            raise EngineUnreachable(
                f"GET {r.url} returned HTTP {r.status_code}: {r.text[:500]}",
                url=r.url, status=r.status_code,
            )
        return r.text


def wait_for_engine(http: HttpClient, url: str, max_wait_sec: float) -> None:
    """Poll the admin API until it answers, giving up after max_wait_sec.

    Runs before any core is touched, so it is the only retry in the step.
    """
    if max_wait_sec <= 0:
        return

    @backoff.on_exception(backoff.expo, EngineUnreachable, max_time=max_wait_sec, max_value=5,
                          on_backoff=lambda d: logger.info("solr_cores.engine.waiting",
                                                           extra={"url": url, "tries": d["tries"]}))
    def _ping():
        http.get(url)

    _ping()
