from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable

from ..models import ResolvedRelease, utc_now
from ..state.store import CandidateStore
from ..versioning import SemVer, clean_version, coerce_version
from .resolver import ReleaseResolver
from .state import ReleaseState


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class EvaluationReport:
    latest: ResolvedRelease | None
    nodes: int = 0
    reported_updated: int = 0
    reported_not_updated: int = 0
    skipped: int = 0


@dataclass(slots=True)
class UpgradeEvaluator:
    """
    升级合规评估：确认每个节点在 grace 窗口内升级到了最新发布。

    判定规则（每轮对每个节点）：
    - 没有可用的最新发布（未缓存或无法解析）：不做判定，全部跳过
    - 节点版本无法解析：若节点此前为 updated 则上报 not updated，否则跳过
    - 节点版本 >= 最新版本：此前未标记 updated 时上报 updated（已标记则不重复写）
    - 仍在 grace 窗口内且只落后一个 patch：上报 updated
    - 其余情况：上报 not updated

    当前时间每轮只取一次，保证同一轮内所有节点使用同一时刻判定。
    """

    store: CandidateStore
    state: ReleaseState
    resolver: ReleaseResolver
    grace: timedelta
    clock: Callable[[], datetime] = field(default=utc_now)

    def ensure_upgrades(self, *, resolve_if_missing: bool = True) -> EvaluationReport:
        """
        resolve_if_missing 为 False 时不再补做解析（调用方本轮刚解析过）。
        """
        if resolve_if_missing and self.state.get() is None:
            self.resolver.resolve()

        latest = self.state.get()
        now = self.clock()
        latest_version = _latest_version(latest)
        report = EvaluationReport(latest=latest)

        nodes = self.store.all_candidates()
        if latest is None or latest_version is None:
            report.nodes = report.skipped = len(nodes)
            logger.warning(
                "no usable latest release, skipping upgrade check: latest=%s nodes=%d",
                latest.name if latest else None,
                report.nodes,
            )
            return report

        for node in nodes:
            report.nodes += 1
            node_version = coerce_version(node.version)

            if node_version is None:
                if node.updated:
                    logger.info(
                        "unparsable version, marking not updated: node=%s version=%r",
                        node.name,
                        node.version,
                    )
                    self.store.report_not_updated(node.name)
                    report.reported_not_updated += 1
                else:
                    report.skipped += 1
                continue

            logger.debug("checking node: node=%s version=%s latest=%s", node.name, node_version, latest_version)

            if node_version >= latest_version:
                if node.updated:
                    report.skipped += 1
                else:
                    self.store.report_updated(node.name)
                    report.reported_updated += 1
                continue

            # grace 窗口内只容忍落后一个 patch
            if now < latest.published_at + self.grace and node_version.inc_patch() >= latest_version:
                self.store.report_updated(node.name)
                report.reported_updated += 1
                continue

            self.store.report_not_updated(node.name)
            report.reported_not_updated += 1

        logger.info(
            "upgrade check done: latest=%s nodes=%d updated=%d not_updated=%d skipped=%d",
            latest.name,
            report.nodes,
            report.reported_updated,
            report.reported_not_updated,
            report.skipped,
        )
        return report


def _latest_version(latest: ResolvedRelease | None) -> SemVer | None:
    if latest is None:
        return None
    # 丢弃 "-" 之后的后缀，如 "1.15.2-rc1" -> "1.15.2"
    return clean_version(latest.name.split("-")[0])
