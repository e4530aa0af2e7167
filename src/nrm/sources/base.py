from __future__ import annotations

from typing import Protocol

from ..models import ReleaseTag


class ReleaseSource(Protocol):
    """
    发布数据源接口：返回某个项目已发布的全部 tag（不保证顺序）。

    拉取失败直接抛异常，由解析器统一捕获并降级为“没有新发布”。
    """

    def list_releases(self, project: str) -> list[ReleaseTag]: ...
