from __future__ import annotations

import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from app.core.config import settings

_schema_lock = threading.Lock()
_schema_ready: set[str] = set()


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _get_db_path() -> Path:
    return Path(settings.analytics_db_path)


def _create_schema(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS ai_analysis_runs (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            created_at TEXT NOT NULL,
            run_id TEXT NOT NULL,
            tool_slug TEXT NOT NULL,
            model TEXT NOT NULL,
            schema_valid INTEGER NOT NULL,
            status TEXT NOT NULL,
            error_code TEXT,
            latency_ms INTEGER
        )
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS resume_resolution_runs (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            created_at TEXT NOT NULL,
            resume_id TEXT NOT NULL,
            substituted INTEGER NOT NULL,
            status TEXT NOT NULL,
            method_used TEXT,
            attempted_methods TEXT,
            latency_ms INTEGER
        )
        """
    )
    conn.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_ai_analysis_runs_created_at
        ON ai_analysis_runs (created_at)
        """
    )
    conn.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_resume_resolution_runs_created_at
        ON resume_resolution_runs (created_at)
        """
    )


def _connect() -> sqlite3.Connection:
    db_path = _get_db_path()
    key = str(db_path)
    if key not in _schema_ready:
        with _schema_lock:
            if key not in _schema_ready:
                db_path.parent.mkdir(parents=True, exist_ok=True)
                with sqlite3.connect(db_path) as conn:
                    _create_schema(conn)
                    conn.commit()
                _schema_ready.add(key)
    return sqlite3.connect(db_path)


def init_db() -> None:
    if not settings.analytics_enabled:
        return
    _connect().close()
    purge_old_records()


def log_ai_analysis_run(
    *,
    run_id: str,
    tool_slug: str,
    model: str,
    schema_valid: bool,
    status: str,
    error_code: str | None = None,
    latency_ms: int | None = None,
) -> None:
    if not settings.analytics_enabled:
        return
    with _connect() as conn:
        conn.execute(
            """
            INSERT INTO ai_analysis_runs (
                created_at, run_id, tool_slug, model, schema_valid, status, error_code, latency_ms
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                _utc_now(),
                run_id,
                tool_slug,
                model,
                1 if schema_valid else 0,
                status,
                error_code,
                latency_ms,
            ),
        )
        conn.commit()


def log_resolution_run(
    *,
    resume_id: str,
    substituted: bool,
    status: str,
    method_used: str | None,
    attempted_methods: list[str],
    latency_ms: int | None = None,
) -> None:
    if not settings.analytics_enabled:
        return
    with _connect() as conn:
        conn.execute(
            """
            INSERT INTO resume_resolution_runs (
                created_at, resume_id, substituted, status, method_used, attempted_methods, latency_ms
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                _utc_now(),
                resume_id,
                1 if substituted else 0,
                status,
                method_used,
                ",".join(attempted_methods),
                latency_ms,
            ),
        )
        conn.commit()


def purge_old_records() -> dict[str, int]:
    deleted = {"ai_analysis_runs": 0, "resume_resolution_runs": 0}
    if not settings.analytics_enabled:
        return deleted

    retention = max(1, int(settings.analytics_retention_days))
    with _connect() as conn:
        for table in deleted:
            cur = conn.execute(
                f"DELETE FROM {table} WHERE created_at < datetime('now', ?)",
                (f"-{retention} days",),
            )
            deleted[table] = int(cur.rowcount or 0)
        conn.commit()

    return deleted


def get_summary() -> dict[str, Any]:
    if not settings.analytics_enabled:
        return {"enabled": False}
    with _connect() as conn:
        ai_runs = conn.execute(
            "SELECT status, COUNT(*) FROM ai_analysis_runs GROUP BY status"
        ).fetchall()
        resolutions = conn.execute(
            "SELECT COALESCE(method_used, status), COUNT(*) FROM resume_resolution_runs GROUP BY 1"
        ).fetchall()
        substituted = conn.execute(
            "SELECT COUNT(*) FROM resume_resolution_runs WHERE substituted = 1"
        ).fetchone()[0]
    return {
        "enabled": True,
        "ai_runs_by_status": {status: count for status, count in ai_runs},
        "resolutions_by_method": {method: count for method, count in resolutions},
        "substituted_ids": substituted,
    }
