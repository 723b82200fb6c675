# pyright: reportMissingImports=false
import logging
import os
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import aiosqlite

from pagediff.config import get_settings

logger = logging.getLogger(__name__)

DB_PATH = get_settings().db_path


async def init_db():
    folder = os.path.dirname(DB_PATH)
    if folder:
        os.makedirs(folder, exist_ok=True)
    async with aiosqlite.connect(DB_PATH) as db:
        await db.execute(
            """
        CREATE TABLE IF NOT EXISTS baselines (
            url TEXT PRIMARY KEY,
            html TEXT NOT NULL,
            captured_at TEXT NOT NULL
        )
        """
        )
        await db.execute(
            """
        CREATE TABLE IF NOT EXISTS pending_comparisons (
            id TEXT PRIMARY KEY,
            url TEXT NOT NULL,
            baseline_html TEXT NOT NULL,
            current_html TEXT NOT NULL,
            created_at TEXT NOT NULL
        )
        """
        )
        await db.commit()


async def save_baseline(url: str, html: str) -> str:
    """Store (or overwrite) the baseline for ``url``; returns captured_at."""
    # ISO8601 UTC so captured_at/created_at compare correctly as strings
    now = datetime.utcnow().isoformat()
    async with aiosqlite.connect(DB_PATH) as db:
        await db.execute(
            "INSERT INTO baselines (url, html, captured_at) VALUES (?, ?, ?) "
            "ON CONFLICT(url) DO UPDATE SET html=excluded.html, "
            "captured_at=excluded.captured_at",
            (url, html, now),
        )
        await db.commit()
    logger.info("baseline saved for %s (%d chars)", url, len(html))
    return now


async def get_baseline(url: str) -> Optional[Dict[str, Any]]:
    async with aiosqlite.connect(DB_PATH) as db:
        async with db.execute(
            "SELECT url, html, captured_at FROM baselines WHERE url=?", (url,)
        ) as cur:
            row = await cur.fetchone()
            if not row:
                return None
            return {"url": row[0], "html": row[1], "captured_at": row[2]}


async def list_baselines() -> List[Dict[str, Any]]:
    async with aiosqlite.connect(DB_PATH) as db:
        rows = []
        async with db.execute(
            "SELECT url, captured_at, length(html) FROM baselines "
            "ORDER BY captured_at DESC"
        ) as cur:
            async for r in cur:
                rows.append({"url": r[0], "captured_at": r[1], "size": r[2]})
        return rows


async def delete_baseline(url: str) -> bool:
    async with aiosqlite.connect(DB_PATH) as db:
        cur = await db.execute("DELETE FROM baselines WHERE url=?", (url,))
        await db.commit()
        deleted = cur.rowcount > 0
    if deleted:
        logger.info("baseline deleted for %s", url)
    return deleted


async def stash_comparison(url: str, baseline_html: str, current_html: str) -> str:
    """Park a baseline/current pair for the viewer; returns its id."""
    comparison_id = str(uuid.uuid4())
    now = datetime.utcnow().isoformat()
    async with aiosqlite.connect(DB_PATH) as db:
        await db.execute(
            "INSERT INTO pending_comparisons "
            "(id, url, baseline_html, current_html, created_at) "
            "VALUES (?, ?, ?, ?, ?)",
            (comparison_id, url, baseline_html, current_html, now),
        )
        await db.commit()
    return comparison_id


async def get_comparison(
    comparison_id: str, max_age_minutes: Optional[int] = None
) -> Optional[Dict[str, Any]]:
    """Return a parked pair, or None if unknown or older than the window."""
    async with aiosqlite.connect(DB_PATH) as db:
        async with db.execute(
            "SELECT id, url, baseline_html, current_html, created_at "
            "FROM pending_comparisons WHERE id=?",
            (comparison_id,),
        ) as cur:
            row = await cur.fetchone()
        if not row:
            return None
        if max_age_minutes is not None:
            cutoff = datetime.utcnow() - timedelta(minutes=max_age_minutes)
            if row[4] < cutoff.isoformat():
                return None
        return {
            "id": row[0],
            "url": row[1],
            "baseline_html": row[2],
            "current_html": row[3],
            "created_at": row[4],
        }


async def purge_stale_comparisons(max_age_minutes: int) -> int:
    """
    Delete parked comparisons nobody opened within the window.
    Returns number of rows deleted.
    """
    cutoff = datetime.utcnow() - timedelta(minutes=max_age_minutes)
    async with aiosqlite.connect(DB_PATH) as db:
        cur = await db.execute(
            "DELETE FROM pending_comparisons WHERE created_at < ?",
            (cutoff.isoformat(),),
        )
        await db.commit()
        return cur.rowcount


async def vacuum() -> None:
    """Run VACUUM to reclaim space after large deletions."""
    async with aiosqlite.connect(DB_PATH) as db:
        await db.execute("VACUUM")
        await db.commit()
