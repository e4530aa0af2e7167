"""
Node Release Monitor (nrm)

跟踪节点客户端（默认 polkadot）在 GitHub 上的最新发布，并判定每个被监控节点
是否在 grace 窗口内完成升级；grace 窗口内只落后一个 patch 的节点仍视为合规。
"""

from .models import MonitoredNode, ResolvedRelease, ResolveOutcome, ResolveStatus, Verdict

__all__ = [
    "MonitoredNode",
    "ResolveOutcome",
    "ResolveStatus",
    "ResolvedRelease",
    "Verdict",
]
