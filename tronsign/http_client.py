import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests
from colorama import Fore, Style
from requests.adapters import HTTPAdapter

from .config import MOBILE_USER_AGENT

logger = logging.getLogger("tronsign.http")


@dataclass
class ResponseWrapper:
    status_code: int
    headers: Dict[str, str]
    text: str
    elapsed_ms: float
    url: str
    json_data: Optional[Any] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def body(self) -> Any:
        """Parsed JSON when the backend sent JSON, raw text otherwise."""
        return self.json_data if self.json_data is not None else self.text


class HttpClient:
    """
    Thin wrapper over a pooled requests.Session.

    No retries: every check-in call is state-changing, so exactly one request
    goes out per send(). Transport failures surface as requests exceptions.
    """

    def __init__(self, base_url: str, timeout: float = 10.0, verbose: bool = False,
                 user_agent: str = MOBILE_USER_AGENT, pool_size: int = 64,
                 headers: Optional[Dict[str, str]] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.verbose = verbose
        self.global_headers = headers or {}
        self.session = requests.Session()

        # Pool must cover the widest fan-out or threads queue on sockets
        adapter = HTTPAdapter(pool_connections=4, pool_maxsize=pool_size, max_retries=0)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

        self.session.headers.update({
            "User-Agent": user_agent,
            "Accept": "application/json, text/plain, */*",
        })

    def url_for(self, target: str) -> str:
        return target if target.startswith("http") else f"{self.base_url}/{target.lstrip('/')}"

    def send(self, method: str, target: str, *,
             headers: Optional[Dict[str, str]] = None,
             params: Optional[Dict[str, Any]] = None,
             json_body: Optional[Any] = None,
             timeout: Optional[float] = None) -> ResponseWrapper:
        url = self.url_for(target)

        request_headers = dict(self.global_headers)
        if headers:
            request_headers.update(headers)

        if self.verbose:
            preview = f" | JSON: {str(json_body)[:60]}" if json_body is not None else ""
            print(f"{Fore.GREEN}[TRAFFIC] {method.upper()} {url}{preview}{Style.RESET_ALL}")

        start_time = time.time()
        resp = self.session.request(
            method=method.upper(),
            url=url,
            headers=request_headers,
            params=params,
            json=json_body,
            timeout=timeout or self.timeout,
        )
        elapsed = (time.time() - start_time) * 1000.0

        # Best-effort JSON parsing
        json_data = None
        try:
            json_data = resp.json()
        except ValueError:
            pass

        if self.verbose:
            color = Fore.GREEN if resp.status_code < 400 else Fore.YELLOW if resp.status_code < 500 else Fore.RED
            print(f"{color}[<] {resp.status_code} {resp.reason} ({elapsed:.0f}ms) | {url}{Style.RESET_ALL}")
        logger.debug("%s %s -> %s in %.0fms", method.upper(), url, resp.status_code, elapsed)

        return ResponseWrapper(
            status_code=resp.status_code,
            headers=dict(resp.headers),
            text=resp.text,
            elapsed_ms=elapsed,
            url=str(resp.url),
            json_data=json_data,
        )

    def close(self):
        self.session.close()
