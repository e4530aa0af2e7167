from __future__ import annotations

import functools
import logging
from dataclasses import dataclass

from ..models import ReleaseTag, ResolvedRelease, ResolveOutcome, ResolveStatus
from ..sources.base import ReleaseSource
from ..state.store import CandidateStore
from ..versioning import compare_versions, extract_version_triple
from .state import ReleaseState


logger = logging.getLogger(__name__)

DEFAULT_TAG_PREFIX = "polkadot-v"


@dataclass(slots=True)
class ReleaseResolver:
    """
    发布解析器：从数据源的全部 tag 中选出目标客户端家族的最高版本。

    流程：
    - 拉取 project 的 releases（失败 -> FETCH_FAILED，状态不变）
    - 仅保留以 tag_prefix 开头的 tag（排除 parachain 等其它 tag）
    - 去前缀后按数值版本稳定排序，取最大者（并列时输入顺序靠后者胜出）
    - 从最大者的 tag 中抽取 MAJOR.MINOR.PATCH；抽取失败不回退到次大者
    - 抽取成功即写入 store.set_release；与缓存相同则返回 NO_NEW_RELEASE
    """

    source: ReleaseSource
    store: CandidateStore
    state: ReleaseState
    project: str
    tag_prefix: str = DEFAULT_TAG_PREFIX

    def resolve(self) -> ResolveOutcome:
        logger.info("fetching latest release: project=%s tag_prefix=%s", self.project, self.tag_prefix)
        try:
            releases = list(self.source.list_releases(self.project))
        except Exception as e:  # noqa: BLE001
            logger.exception("could not get latest release: project=%s", self.project)
            return ResolveOutcome(status=ResolveStatus.FETCH_FAILED, error=f"{type(e).__name__}: {e}")

        best = self._pick_highest(releases)
        if best is None:
            logger.info("no matching release tags: project=%s tag_prefix=%s", self.project, self.tag_prefix)
            return ResolveOutcome(status=ResolveStatus.NO_CANDIDATES)

        version = extract_version_triple(best.tag_name)
        if version is None:
            logger.warning("unable to extract version from tag name: %s", best.tag_name)
            return ResolveOutcome(status=ResolveStatus.MALFORMED_TAG, error=f"unparsable tag: {best.tag_name}")

        self.store.set_release(version, best.published_at)

        current = self.state.get()
        if current is not None and current.name == version:
            logger.info("no new release found: latest=%s", version)
            return ResolveOutcome(status=ResolveStatus.NO_NEW_RELEASE)

        release = ResolvedRelease(name=version, published_at=best.published_at)
        self.state.set(release)
        logger.info(
            "latest release updated: version=%s published_at=%s",
            release.name,
            release.published_at.isoformat(),
        )
        return ResolveOutcome(status=ResolveStatus.NEW_RELEASE, release=release)

    def resolve_latest_release(self) -> ResolvedRelease | None:
        return self.resolve().release

    def _pick_highest(self, releases: list[ReleaseTag]) -> ReleaseTag | None:
        matching = [r for r in releases if r.tag_name.startswith(self.tag_prefix)]
        if not matching:
            return None

        prefix_len = len(self.tag_prefix)
        ordered = sorted(
            matching,
            key=functools.cmp_to_key(lambda a, b: compare_versions(a.tag_name[prefix_len:], b.tag_name[prefix_len:])),
        )
        return ordered[-1]
