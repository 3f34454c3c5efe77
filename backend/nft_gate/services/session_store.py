import time
from typing import Callable, Optional
from loguru import logger
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from nft_gate.models.kv_record import KVRecord
from nft_gate.schemas.session import Session


def now_ms() -> int:
    return int(time.time() * 1000)


class SessionStore:
    """Single session record for one client, kept in the local key-value table."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        key: str,
        clock: Callable[[], int] = now_ms,
    ):
        self.session_factory = session_factory
        self.key = key
        self.clock = clock

    async def save(self, session: Session) -> None:
        async with self.session_factory() as db:
            record = await db.get(KVRecord, self.key)
            if record:
                record.value = session.to_record()
            else:
                db.add(KVRecord(key=self.key, value=session.to_record()))
            await db.commit()

    async def load(self) -> Optional[Session]:
        try:
            async with self.session_factory() as db:
                record = await db.get(KVRecord, self.key)
                if not record:
                    return None
                raw = record.value
        except SQLAlchemyError as e:
            logger.error(f"Could not read session record {self.key}: {e}")
            return None

        try:
            session = Session.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable session record {self.key}: {e.error_count()} error(s)")
            await self.clear()
            return None

        if session.is_expired(self.clock()):
            logger.info(f"Session {self.key} for {session.wallet} expired")
            await self.clear()
            return None
        return session

    async def clear(self) -> None:
        try:
            async with self.session_factory() as db:
                record = await db.get(KVRecord, self.key)
                if record:
                    await db.delete(record)
                    await db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Could not delete session record {self.key}: {e}")
