import json
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable

import urllib3

from text_to_wordbook.errors import TransportError

logger = logging.getLogger(__name__)

USER_AGENT = "text-to-wordbook/1.0"


class CancelToken:
    """Caller-owned handle that aborts in-flight requests when cancelled."""

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.RLock()
        self._callbacks: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks)
            self._callbacks.clear()
        for callback in callbacks:
            callback()

    def add_callback(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register ``callback`` and return a function that unregisters it."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)

                def remove():
                    with self._lock:
                        if callback in self._callbacks:
                            self._callbacks.remove(callback)

                return remove
        callback()
        return lambda: None


@dataclass
class HttpResponse:
    status: int = 0
    data: Any = None
    headers: dict = field(default_factory=dict)
    error: str | None = None
    timed_out: bool = False
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and 200 <= self.status < 300

    @property
    def transport_failed(self) -> bool:
        return self.error is not None

    @classmethod
    def from_error(cls, exc: Exception) -> "HttpResponse":
        if isinstance(exc, TransportError):
            return cls(
                status=exc.status_code,
                error=str(exc),
                timed_out=exc.timed_out,
                cancelled=exc.cancelled,
            )
        return cls(error=str(exc) or type(exc).__name__)


def _decode_body(raw: bytes):
    text = raw.decode("utf-8", errors="ignore") if raw else ""
    if not text:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


class HttpClient:
    """Single-attempt HTTP transport with whole-second timeouts and cancellation.

    ``send`` raises :class:`TransportError`; ``request`` never raises and
    reports transport failures through :attr:`HttpResponse.error`.
    """

    def __init__(self, *, pool=None, max_workers: int = 4):
        self._pool = pool if pool is not None else urllib3.PoolManager(retries=False)
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="wordbook-http"
        )

    def send(
        self,
        method: str,
        url: str,
        *,
        headers: dict | None = None,
        body=None,
        timeout: int = 1,
        cancel_token: CancelToken | None = None,
    ) -> HttpResponse:
        if cancel_token is not None and cancel_token.cancelled:
            raise TransportError(url, "cancelled before sending", cancelled=True)

        future = self._executor.submit(self._perform, method, url, headers, body, timeout)
        if cancel_token is None:
            return future.result()

        settled = threading.Event()
        future.add_done_callback(lambda _future: settled.set())
        remove_callback = cancel_token.add_callback(settled.set)
        try:
            settled.wait()
        finally:
            remove_callback()
        if not future.done():
            # The worker keeps running until its own transport timeout.
            logger.info("Request to %s cancelled while in flight", url)
            raise TransportError(url, "cancelled", cancelled=True)
        return future.result()

    def request(self, method: str, url: str, **kwargs) -> HttpResponse:
        try:
            return self.send(method, url, **kwargs)
        except TransportError as exc:
            return HttpResponse.from_error(exc)
        except Exception as exc:
            logger.debug("Unexpected transport failure for %s", url, exc_info=True)
            return HttpResponse.from_error(exc)

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)
        self._pool.clear()

    def _perform(self, method, url, headers, body, timeout) -> HttpResponse:
        request_headers = {"User-Agent": USER_AGENT}
        request_headers.update(headers or {})
        encoded = None
        if body is not None:
            encoded = json.dumps(body, ensure_ascii=False).encode("utf-8")
            request_headers.setdefault("Content-Type", "application/json")
        try:
            response = self._pool.request(
                method,
                url,
                body=encoded,
                headers=request_headers,
                timeout=urllib3.Timeout(total=timeout),
            )
        except urllib3.exceptions.TimeoutError as exc:
            raise TransportError(url, f"timed out after {timeout}s", timed_out=True) from exc
        except urllib3.exceptions.HTTPError as exc:
            raise TransportError(url, str(exc) or type(exc).__name__) from exc
        return HttpResponse(
            status=response.status,
            data=_decode_body(response.data),
            headers=dict(response.headers),
        )


_DEFAULT_CLIENT = None
_DEFAULT_CLIENT_LOCK = threading.Lock()


def default_client() -> HttpClient:
    global _DEFAULT_CLIENT
    with _DEFAULT_CLIENT_LOCK:
        if _DEFAULT_CLIENT is None:
            _DEFAULT_CLIENT = HttpClient()
        return _DEFAULT_CLIENT
