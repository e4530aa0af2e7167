from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import UTC, datetime

from ..models import MonitoredNode, ResolvedRelease, Verdict, parse_rfc3339_datetime


def _utc_now_iso() -> str:
    return datetime.now(tz=UTC).isoformat()


@dataclass(slots=True)
class SqliteStateStore:
    """
    默认外部存储：SQLite

    表设计：
    - releases：观察到的发布（name 唯一，重复写入只刷新 recorded_at）
    - candidates：被监控节点名单与最近一次合规结论（updated，新节点默认 0）
    - verdicts：合规结论流水（只追加，便于审计）
    """

    sqlite_path: str

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.sqlite_path)
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
        conn.row_factory = sqlite3.Row
        return conn

    def ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS releases (
                    name TEXT PRIMARY KEY,
                    published_at TEXT NOT NULL,
                    recorded_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS candidates (
                    name TEXT PRIMARY KEY,
                    version TEXT NOT NULL DEFAULT '',
                    updated INTEGER NOT NULL DEFAULT 0,
                    verdict_at TEXT,
                    created_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS verdicts (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    verdict TEXT NOT NULL,
                    version TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
                """
            )

    def set_release(self, version: str, published_at: datetime) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO releases(name, published_at, recorded_at)
                VALUES(?, ?, ?)
                ON CONFLICT(name) DO UPDATE SET
                    published_at=excluded.published_at,
                    recorded_at=excluded.recorded_at
                """,
                (version, published_at.isoformat(), _utc_now_iso()),
            )

    def get_latest_release(self) -> ResolvedRelease | None:
        """
        最近一次写入的发布（按 recorded_at，而不是版本号）。
        """
        with self._connect() as conn:
            row = conn.execute(
                "SELECT name, published_at FROM releases ORDER BY recorded_at DESC, rowid DESC LIMIT 1"
            ).fetchone()
            if not row:
                return None
            return ResolvedRelease(name=row["name"], published_at=parse_rfc3339_datetime(row["published_at"]))

    def upsert_candidate(self, name: str, version: str) -> None:
        """
        新增节点或刷新其上报版本；已有的 updated 结论保持不变。
        """
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO candidates(name, version, updated, created_at)
                VALUES(?, ?, 0, ?)
                ON CONFLICT(name) DO UPDATE SET version=excluded.version
                """,
                (name, version, _utc_now_iso()),
            )

    def get_candidate(self, name: str) -> MonitoredNode | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT name, version, updated FROM candidates WHERE name = ?",
                (name,),
            ).fetchone()
            if not row:
                return None
            return MonitoredNode(name=row["name"], version=row["version"], updated=bool(row["updated"]))

    def all_candidates(self) -> list[MonitoredNode]:
        with self._connect() as conn:
            rows = conn.execute("SELECT name, version, updated FROM candidates ORDER BY name").fetchall()
            return [MonitoredNode(name=r["name"], version=r["version"], updated=bool(r["updated"])) for r in rows]

    def report_updated(self, name: str) -> None:
        self._record_verdict(name, Verdict.UPDATED)

    def report_not_updated(self, name: str) -> None:
        self._record_verdict(name, Verdict.NOT_UPDATED)

    def list_verdicts(self, name: str | None = None) -> list[tuple[str, Verdict]]:
        with self._connect() as conn:
            if name is None:
                rows = conn.execute("SELECT name, verdict FROM verdicts ORDER BY id").fetchall()
            else:
                rows = conn.execute(
                    "SELECT name, verdict FROM verdicts WHERE name = ? ORDER BY id",
                    (name,),
                ).fetchall()
            return [(r["name"], Verdict(r["verdict"])) for r in rows]

    def _record_verdict(self, name: str, verdict: Verdict) -> None:
        now = _utc_now_iso()
        with self._connect() as conn:
            conn.execute(
                "UPDATE candidates SET updated = ?, verdict_at = ? WHERE name = ?",
                (1 if verdict is Verdict.UPDATED else 0, now, name),
            )
            conn.execute(
                """
                INSERT INTO verdicts(name, verdict, version, created_at)
                VALUES(?, ?, COALESCE((SELECT version FROM candidates WHERE name = ?), ''), ?)
                """,
                (name, verdict.value, name, now),
            )
