from __future__ import annotations

import re
from dataclasses import dataclass

_TRIPLE_RE = re.compile(r"v?(\d+\.\d+\.\d+)")
_COERCE_RE = re.compile(r"(?:^|(?<=\D))(\d{1,16})(?:\.(\d{1,16}))?(?:\.(\d{1,16}))?(?=\D|$)")
_STRICT_RE = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?"
    r"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?$"
)
_LEADING_INT_RE = re.compile(r"^\s*[+-]?\d+")


@dataclass(frozen=True, slots=True, order=True)
class SemVer:
    """
    只保留数值三元组的语义化版本。

    预发布 / 构建元数据在解析阶段即被丢弃，因此比较结果只由 major/minor/patch 决定。
    """

    major: int
    minor: int
    patch: int

    def inc_patch(self) -> SemVer:
        return SemVer(self.major, self.minor, self.patch + 1)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


def _component(part: str) -> int:
    m = _LEADING_INT_RE.match(part)
    if not m:
        return 0
    return int(m.group(0))


def compare_versions(a: str, b: str) -> int:
    """
    逐段按整数比较两个点分版本号，返回 -1 / 0 / 1。

    - 段数不同时缺失段按 0 处理："1.2" == "1.2.0"
    - 每段取前导数字，无数字的段按 0 处理（"2-rc1" -> 2）
    """
    parts_a = [_component(p) for p in a.split(".")]
    parts_b = [_component(p) for p in b.split(".")]

    for i in range(max(len(parts_a), len(parts_b))):
        pa = parts_a[i] if i < len(parts_a) else 0
        pb = parts_b[i] if i < len(parts_b) else 0
        if pa < pb:
            return -1
        if pa > pb:
            return 1
    return 0


def extract_version_triple(tag: str) -> str | None:
    """
    从 tag 中抽取严格的 MAJOR.MINOR.PATCH（允许前导 v），如 "polkadot-v1.15.2" -> "1.15.2"。
    """
    m = _TRIPLE_RE.search(tag or "")
    if not m:
        return None
    return m.group(1)


def coerce_version(value: str | None) -> SemVer | None:
    """
    宽松解析：取字符串中第一段 1~3 个点分整数，缺失部分补 0。

    节点上报的版本通常带有提交哈希与平台后缀，例如
    "1.15.2-7c4c3f5b2a-x86_64-linux-gnu" -> 1.15.2，"v1.15" -> 1.15.0。
    """
    if not value:
        return None
    m = _COERCE_RE.search(str(value))
    if not m:
        return None
    major, minor, patch = m.groups()
    return SemVer(int(major), int(minor or 0), int(patch or 0))


def clean_version(value: str | None) -> SemVer | None:
    """
    严格解析：去除首尾空白与前导 "=" / "v" 后，必须是完整的 MAJOR.MINOR.PATCH。
    """
    if value is None:
        return None
    s = str(value).strip().lstrip("=v")
    m = _STRICT_RE.match(s)
    if not m:
        return None
    return SemVer(int(m.group(1)), int(m.group(2)), int(m.group(3)))
