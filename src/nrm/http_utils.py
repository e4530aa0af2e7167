from __future__ import annotations

import json
import logging
import random
import ssl
import time
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from typing import Any, Mapping


logger = logging.getLogger(__name__)

_RETRYABLE_STATUS = (429, 500, 502, 503, 504)


@dataclass(frozen=True, slots=True)
class HttpResponse:
    status: int
    url: str
    headers: Mapping[str, str]
    body: bytes

    def header(self, name: str) -> str | None:
        lowered = name.lower()
        for k, v in self.headers.items():
            if k.lower() == lowered:
                return v
        return None

    def json(self) -> Any:
        return json.loads(self.body.decode("utf-8"))


class HttpClient:
    """
    发布数据源使用的只读 HTTP 客户端（仅依赖标准库）。

    重试 / 退避只在这一层做：429 与 5xx、网络错误按指数退避重试有限次，
    解析器与评估器不关心传输细节。
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = 20.0,
        user_agent: str = "node-release-monitor/0",
        max_retries: int = 3,
        base_backoff_seconds: float = 0.8,
    ) -> None:
        self._timeout_seconds = timeout_seconds
        self._user_agent = user_agent
        self._max_retries = max_retries
        self._base_backoff_seconds = base_backoff_seconds
        self._ssl_context = ssl.create_default_context()

    def get(self, url: str, *, headers: Mapping[str, str] | None = None) -> HttpResponse:
        request_headers = {"User-Agent": self._user_agent}
        if headers:
            request_headers.update(dict(headers))

        attempt = 0
        while True:
            try:
                req = urllib.request.Request(url=url, headers=request_headers, method="GET")
                with urllib.request.urlopen(req, timeout=self._timeout_seconds, context=self._ssl_context) as resp:
                    return HttpResponse(
                        status=getattr(resp, "status", 200),
                        url=resp.geturl(),
                        headers={k: v for k, v in resp.headers.items()},
                        body=resp.read(),
                    )
            except urllib.error.HTTPError as e:
                if e.code not in _RETRYABLE_STATUS or attempt >= self._max_retries:
                    raise
                reason = f"status={e.code}"
            except (urllib.error.URLError, TimeoutError) as e:
                if attempt >= self._max_retries:
                    raise
                reason = f"{type(e).__name__}: {e}"

            backoff = self._base_backoff_seconds * (2**attempt)
            backoff += random.random() * 0.25 * backoff
            logger.debug("http retry: url=%s attempt=%d reason=%s sleep=%.2fs", url, attempt + 1, reason, backoff)
            time.sleep(backoff)
            attempt += 1


def parse_link_header(link_value: str) -> dict[str, str]:
    """
    解析 RFC5988 Link 头，返回 rel -> url 映射（GitHub 分页使用）。

    示例：
    <https://api.github.com/...&page=2>; rel="next", <https://api.github.com/...&page=5>; rel="last"
    """
    result: dict[str, str] = {}
    for part in link_value.split(","):
        part = part.strip()
        if not part.startswith("<") or ">" not in part:
            continue
        end = part.index(">")
        url = part[1:end]
        for p in part[end + 1 :].split(";"):
            p = p.strip()
            if p.startswith("rel="):
                result[p.split("=", 1)[1].strip().strip('"')] = url
    return result


def with_query_params(url: str, params: Mapping[str, str | None]) -> str:
    parsed = urllib.parse.urlparse(url)
    q = dict(urllib.parse.parse_qsl(parsed.query, keep_blank_values=True))
    q.update({k: v for k, v in params.items() if v is not None})
    return urllib.parse.urlunparse(parsed._replace(query=urllib.parse.urlencode(q)))
