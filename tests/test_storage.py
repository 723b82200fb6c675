import aiosqlite
import pytest

from pagediff.storage import db


@pytest.mark.asyncio
async def test_baseline_round_trip(db_path):
    await db.init_db()
    assert await db.get_baseline("https://example.com/") is None

    first = await db.save_baseline("https://example.com/", "<p>one</p>")
    record = await db.get_baseline("https://example.com/")
    assert record == {
        "url": "https://example.com/",
        "html": "<p>one</p>",
        "captured_at": first,
    }


@pytest.mark.asyncio
async def test_recapture_overwrites(db_path):
    await db.init_db()
    await db.save_baseline("https://example.com/", "<p>one</p>")
    await db.save_baseline("https://example.com/", "<p>two</p>")
    record = await db.get_baseline("https://example.com/")
    assert record["html"] == "<p>two</p>"
    assert len(await db.list_baselines()) == 1


@pytest.mark.asyncio
async def test_list_and_delete(db_path):
    await db.init_db()
    await db.save_baseline("https://a.example/", "<p>a</p>")
    await db.save_baseline("https://b.example/", "<p>bb</p>")
    listed = await db.list_baselines()
    assert {b["url"] for b in listed} == {"https://a.example/", "https://b.example/"}
    assert {b["size"] for b in listed} == {8, 9}

    assert await db.delete_baseline("https://a.example/")
    assert not await db.delete_baseline("https://a.example/")
    assert [b["url"] for b in await db.list_baselines()] == ["https://b.example/"]


@pytest.mark.asyncio
async def test_pending_comparison_lifecycle(db_path):
    await db.init_db()
    cid = await db.stash_comparison("https://example.com/", "<p>A</p>", "<p>B</p>")
    pair = await db.get_comparison(cid, max_age_minutes=30)
    assert pair["baseline_html"] == "<p>A</p>"
    assert pair["current_html"] == "<p>B</p>"
    assert await db.get_comparison("missing") is None

    async with aiosqlite.connect(db_path) as conn:
        await conn.execute(
            "UPDATE pending_comparisons SET created_at=? WHERE id=?",
            ("2000-01-01T00:00:00", cid),
        )
        await conn.commit()

    assert await db.get_comparison(cid, max_age_minutes=30) is None
    assert await db.get_comparison(cid) is not None
    assert await db.purge_stale_comparisons(30) == 1
    assert await db.get_comparison(cid) is None
    await db.vacuum()
