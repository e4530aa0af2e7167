from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from ..http_utils import HttpClient, parse_link_header, with_query_params
from ..models import ReleaseTag, parse_rfc3339_datetime


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class GitHubReleasesSource:
    """
    GitHub Releases 数据源。

    project 形如 "owner/repo"（如 "paritytech/polkadot-sdk"）。
    - GitHub 按创建时间倒序返回 releases，max_pages 限制翻页数量
    - draft 与缺少 published_at 的条目被跳过（尚未发布）
    - prerelease 不做过滤，是否采用由 tag 前缀与版本号决定
    """

    http: HttpClient
    token: str | None = None
    per_page: int = 100
    max_pages: int = 1

    def _headers(self) -> Mapping[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def list_releases(self, project: str) -> list[ReleaseTag]:
        url: str | None = with_query_params(
            f"https://api.github.com/repos/{project}/releases",
            {"per_page": str(self.per_page)},
        )
        releases: list[ReleaseTag] = []
        pages = 0
        while url and pages < max(1, self.max_pages):
            resp = self.http.get(url, headers=self._headers())
            data = resp.json()
            if not isinstance(data, list):
                raise ValueError(f"GitHub API expected list, got {type(data)}: {resp.url}")
            pages += 1

            for it in data:
                if not isinstance(it, dict):
                    continue
                tag = _to_release_tag(it)
                if tag is not None:
                    releases.append(tag)

            link = resp.header("Link")
            url = parse_link_header(link).get("next") if link else None

        logger.debug("github releases fetched: project=%s pages=%d releases=%d", project, pages, len(releases))
        return releases


def _to_release_tag(it: Mapping[str, Any]) -> ReleaseTag | None:
    if it.get("draft"):
        return None
    tag_name = it.get("tag_name")
    published_at_s = it.get("published_at")
    if not isinstance(tag_name, str) or not isinstance(published_at_s, str):
        return None
    return ReleaseTag(
        tag_name=tag_name,
        published_at=parse_rfc3339_datetime(published_at_s),
    )
