from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


def parse_rfc3339_datetime(value: str) -> datetime:
    """
    解析 GitHub 返回的 RFC3339/ISO8601 时间串为带 tzinfo 的 datetime。

    兼容：
    - 2024-08-01T12:34:56Z
    - 2024-08-01T12:34:56+00:00
    - 2024-08-01T12:34:56.123Z
    """
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


@dataclass(frozen=True, slots=True)
class ReleaseTag:
    """
    数据源返回的原始发布条目（瞬态，不持久化）。
    """

    tag_name: str
    published_at: datetime


@dataclass(frozen=True, slots=True)
class ResolvedRelease:
    """
    当前跟踪的“最新发布”。

    name 为从 tag 中抽取出的 MAJOR.MINOR.PATCH；published_at 为该 tag 的发布时间。
    """

    name: str
    published_at: datetime


@dataclass(frozen=True, slots=True)
class MonitoredNode:
    name: str
    version: str
    updated: bool


class Verdict(str, Enum):
    UPDATED = "updated"
    NOT_UPDATED = "not_updated"


class ResolveStatus(str, Enum):
    NEW_RELEASE = "new_release"
    NO_NEW_RELEASE = "no_new_release"
    NO_CANDIDATES = "no_candidates"
    MALFORMED_TAG = "malformed_tag"
    FETCH_FAILED = "fetch_failed"


@dataclass(frozen=True, slots=True)
class ResolveOutcome:
    """
    一次发布解析的显式结果。

    调用方如只关心“有没有新发布”，读取 release 即可（仅 NEW_RELEASE 时非空）；
    需要区分“上游拉取失败”与“确实没有新发布”时，读取 status / error。
    """

    status: ResolveStatus
    release: ResolvedRelease | None = None
    error: str | None = None

    @property
    def is_new(self) -> bool:
        return self.status is ResolveStatus.NEW_RELEASE
