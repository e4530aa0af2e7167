from __future__ import annotations

import json
import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Mapping

from .monitor.resolver import DEFAULT_TAG_PREFIX

DEFAULT_PROJECT = "paritytech/polkadot-sdk"
DEFAULT_GRACE_SECONDS = 2 * 24 * 60 * 60
DEFAULT_SQLITE_PATH = "./nrm_state.sqlite3"


def _require_dict(value: Any, *, where: str) -> Mapping[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"Expected object at {where}, got {type(value)}")
    return value


def _get_int(d: Mapping[str, Any], key: str, default: int) -> int:
    v = d.get(key, default)
    if isinstance(v, bool):
        return default
    try:
        return int(v)
    except (TypeError, ValueError):
        return default


def _get_str(d: Mapping[str, Any], key: str, default: str | None = None) -> str | None:
    v = d.get(key, default)
    if v is None:
        return None
    return str(v)


@dataclass(frozen=True, slots=True)
class GitHubReleaseSourceConfig:
    """
    GitHub Releases 数据源配置。

    repo:
      - "owner/repo"，默认 paritytech/polkadot-sdk
    token_env:
      - GitHub Token 的环境变量名（可选，不配置则匿名访问，易触发限流）
    max_pages:
      - 每轮最多翻页数（每页 100 条）
    """

    repo: str
    token_env: str | None
    max_pages: int = 1


@dataclass(frozen=True, slots=True)
class MonitorConfig:
    """
    grace_seconds:
      - 新发布之后允许节点只落后一个 patch 的时长（秒，不可为负）
    tag_prefix:
      - 目标客户端家族的 tag 前缀
    """

    grace_seconds: int
    tag_prefix: str

    @property
    def grace(self) -> timedelta:
        return timedelta(seconds=self.grace_seconds)


@dataclass(frozen=True, slots=True)
class AppConfig:
    poll_interval_seconds: int
    sqlite_path: str
    monitor: MonitorConfig
    github: GitHubReleaseSourceConfig

    def resolve_env(self, env_name: str | None) -> str | None:
        if not env_name:
            return None
        return os.environ.get(env_name)


def load_config(config_path: str) -> AppConfig:
    """
    读取 JSON 配置。所有字段均可省略，省略时使用 polkadot 的默认值。

    JSON 顶层结构（示意）：
    {
      "poll_interval_seconds": 900,
      "state": { "sqlite_path": "./nrm_state.sqlite3" },
      "monitor": { "grace_seconds": 172800, "tag_prefix": "polkadot-v" },
      "release_source": { "github": { "repo": "paritytech/polkadot-sdk", "token_env": "GITHUB_TOKEN" } }
    }
    """
    with open(config_path, "rb") as f:
        raw = json.loads(f.read().decode("utf-8"))
    return parse_config(raw)


def parse_config(raw: Any) -> AppConfig:
    root = _require_dict(raw, where="$")
    poll_interval_seconds = _get_int(root, "poll_interval_seconds", 900)

    state = _require_dict(root.get("state", {}), where="$.state")
    sqlite_path = str(state.get("sqlite_path") or DEFAULT_SQLITE_PATH)

    mon = _require_dict(root.get("monitor", {}), where="$.monitor")
    grace_seconds = _get_int(mon, "grace_seconds", DEFAULT_GRACE_SECONDS)
    if grace_seconds < 0:
        raise ValueError(f"$.monitor.grace_seconds must be non-negative, got {grace_seconds}")
    tag_prefix = _get_str(mon, "tag_prefix", DEFAULT_TAG_PREFIX) or DEFAULT_TAG_PREFIX

    release_source = _require_dict(root.get("release_source", {}), where="$.release_source")
    gh = _require_dict(release_source.get("github", {}), where="$.release_source.github")
    github_cfg = GitHubReleaseSourceConfig(
        repo=_get_str(gh, "repo", DEFAULT_PROJECT) or DEFAULT_PROJECT,
        token_env=_get_str(gh, "token_env", None),
        max_pages=max(1, _get_int(gh, "max_pages", 1)),
    )

    return AppConfig(
        poll_interval_seconds=poll_interval_seconds,
        sqlite_path=sqlite_path,
        monitor=MonitorConfig(grace_seconds=grace_seconds, tag_prefix=tag_prefix),
        github=github_cfg,
    )
