"""Sample code generation - one counter per received date"""
from datetime import date

from sqlalchemy import select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from pathlab.models.sample import SampleCodeSequence


def format_sample_code(day: date, seq: int) -> str:
    """XN + received date + sequence, e.g. XN20240115-003"""
    return f"XN{day.strftime('%Y%m%d')}-{seq:03d}"


async def next_sample_code(db: AsyncSession, received_at: date) -> str:
    """Issue the next code for `received_at`

    A single upsert creates or increments the day's counter, so concurrent
    callers are serialised by the database write lock. Runs inside the
    caller's transaction.
    """
    stmt = sqlite_insert(SampleCodeSequence).values(day=received_at, last_value=1)
    stmt = stmt.on_conflict_do_update(
        index_elements=[SampleCodeSequence.day],
        set_={"last_value": SampleCodeSequence.last_value + 1},
    )
    await db.execute(stmt)

    seq = (await db.execute(
        select(SampleCodeSequence.last_value).where(SampleCodeSequence.day == received_at)
    )).scalar_one()
    return format_sample_code(received_at, seq)
