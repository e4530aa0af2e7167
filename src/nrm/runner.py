from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime

from .config import AppConfig
from .http_utils import HttpClient
from .models import ResolveOutcome, utc_now
from .monitor import EvaluationReport, ReleaseResolver, ReleaseState, UpgradeEvaluator
from .sources.github import GitHubReleasesSource
from .state.sqlite_store import SqliteStateStore


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RunOnceReport:
    started_at: datetime
    finished_at: datetime
    duration_ms: int
    resolve: ResolveOutcome
    evaluation: EvaluationReport


@dataclass(slots=True)
class Runner:
    """
    一次监控周期：解析最新发布 -> 逐节点评估升级合规。

    两步严格串行：解析完成（更新 ReleaseState）之后评估才读取它。
    """

    state: SqliteStateStore
    resolver: ReleaseResolver
    evaluator: UpgradeEvaluator

    def run_once(self) -> RunOnceReport:
        started_at = utc_now()
        start_t = time.monotonic()

        self.state.ensure_schema()

        outcome = self.resolver.resolve()
        if outcome.error:
            logger.warning("release resolution degraded: status=%s error=%s", outcome.status.value, outcome.error)

        # 本轮刚解析过，评估阶段不再重复拉取上游
        evaluation = self.evaluator.ensure_upgrades(resolve_if_missing=False)

        return RunOnceReport(
            started_at=started_at,
            finished_at=utc_now(),
            duration_ms=int((time.monotonic() - start_t) * 1000),
            resolve=outcome,
            evaluation=evaluation,
        )


def build_runner(config: AppConfig, *, release_state: ReleaseState | None = None) -> Runner:
    """
    配置 -> 实例 的装配。token 只从环境变量读取。
    """
    http = HttpClient()
    store = SqliteStateStore(config.sqlite_path)
    release_state = release_state if release_state is not None else ReleaseState()

    source = GitHubReleasesSource(
        http=http,
        token=config.resolve_env(config.github.token_env),
        max_pages=config.github.max_pages,
    )
    resolver = ReleaseResolver(
        source=source,
        store=store,
        state=release_state,
        project=config.github.repo,
        tag_prefix=config.monitor.tag_prefix,
    )
    evaluator = UpgradeEvaluator(
        store=store,
        state=release_state,
        resolver=resolver,
        grace=config.monitor.grace,
    )
    return Runner(state=store, resolver=resolver, evaluator=evaluator)
