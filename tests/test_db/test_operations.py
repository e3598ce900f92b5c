"""Tests for ListenRepository."""

from sqlalchemy.ext.asyncio import AsyncSession

from scrobbles.db.models import ListenRecord
from scrobbles.db.operations import ListenRepository
from scrobbles.importing.models import Listen


def _listen(ts: int, track: str = "T", **info: object) -> Listen:
    return Listen(listened_at=ts, track_name=track, artist_name="A", release_name="R", additional_info=info)


async def _seed(session: AsyncSession, user: str, *timestamps: int) -> None:
    repo = ListenRepository()
    for ts in timestamps:
        repo.add_listen(user, _listen(ts, track=f"T{ts}"), session)
    await session.flush()


async def test_add_and_list_listens(async_session: AsyncSession) -> None:
    """Listens come back oldest first as canonical listens."""
    repo = ListenRepository()
    await _seed(async_session, "u1", 300, 100, 200)
    records = await repo.list_listens("u1", async_session)
    assert [r.listened_at for r in records] == [100, 200, 300]
    assert records[0].to_listen() == _listen(100, track="T100")


async def test_list_listens_window(async_session: AsyncSession) -> None:
    """Bounds are start-inclusive and end-exclusive."""
    await _seed(async_session, "u1", 100, 200, 300)
    records = await ListenRepository().list_listens("u1", async_session, start=200, end=300)
    assert [r.listened_at for r in records] == [200]


async def test_listens_are_scoped_per_user(async_session: AsyncSession) -> None:
    """Each user only sees their own listens."""
    repo = ListenRepository()
    await _seed(async_session, "u1", 100)
    await _seed(async_session, "u2", 200, 300)
    assert await repo.count_listens("u1", async_session) == 1
    assert await repo.count_listens("u2", async_session) == 2
    assert await repo.count_listens("nobody", async_session) == 0


async def test_recent_listens_newest_first(async_session: AsyncSession) -> None:
    """Recent listens are ordered newest first and limited."""
    await _seed(async_session, "u1", 100, 300, 200)
    records = await ListenRepository().recent_listens("u1", async_session, limit=2)
    assert [r.listened_at for r in records] == [300, 200]


async def test_merge_additional_info(async_session: AsyncSession) -> None:
    """Non-null fields are overlaid; nothing changes for a no-op merge."""
    record = ListenRecord.from_listen("u1", _listen(100, duration_ms=1000))
    assert ListenRepository.merge_additional_info(record, {"genres": ["x"], "duration_ms": None})
    assert record.additional_info == {"duration_ms": 1000, "genres": ["x"]}
    assert not ListenRepository.merge_additional_info(record, {"genres": ["x"]})


async def test_merge_is_persisted(async_session: AsyncSession) -> None:
    """A merged additional_info survives a reload."""
    repo = ListenRepository()
    record = repo.add_listen("u1", _listen(100), async_session)
    await async_session.flush()
    repo.merge_additional_info(record, {"recording_mbid": "m"})
    await async_session.commit()
    async_session.expire_all()
    (reloaded,) = await repo.list_listens("u1", async_session)
    assert reloaded.additional_info == {"recording_mbid": "m"}


async def test_delete_user_listens(async_session: AsyncSession) -> None:
    """Deleting one user's listens leaves others intact."""
    repo = ListenRepository()
    await _seed(async_session, "u1", 100, 200)
    await _seed(async_session, "u2", 300)
    assert await repo.delete_user_listens("u1", async_session) == 2
    assert await repo.count_listens("u1", async_session) == 0
    assert await repo.count_listens("u2", async_session) == 1
