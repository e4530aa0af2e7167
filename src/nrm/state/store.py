from __future__ import annotations

from datetime import datetime
from typing import Protocol

from ..models import MonitoredNode


class CandidateStore(Protocol):
    """
    外部存储接口（解析器与评估器只依赖这四个操作）：
    - set_release：记录最新已知发布（幂等）
    - all_candidates：读取当前被监控节点名单快照
    - report_updated / report_not_updated：写入单个节点的合规结论
    """

    def set_release(self, version: str, published_at: datetime) -> None: ...

    def all_candidates(self) -> list[MonitoredNode]: ...

    def report_updated(self, name: str) -> None: ...

    def report_not_updated(self, name: str) -> None: ...
