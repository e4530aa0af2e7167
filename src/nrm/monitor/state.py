from __future__ import annotations

from dataclasses import dataclass

from ..models import ResolvedRelease


@dataclass(slots=True)
class ReleaseState:
    """
    进程内唯一的可变状态：当前跟踪的最新发布。

    以实例形式注入（而非模块级全局），每个客户端家族一个 monitor、互不干扰；
    只有解析器写入，评估器只读且需容忍 None。
    """

    latest: ResolvedRelease | None = None

    def get(self) -> ResolvedRelease | None:
        return self.latest

    def set(self, release: ResolvedRelease) -> None:
        self.latest = release
