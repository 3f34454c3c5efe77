from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from nft_gate.config import settings

engine = create_async_engine(settings.DATABASE_URL, echo=False)
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)

class Base(DeclarativeBase):
    pass

async def init_db(bind=engine):
    import nft_gate.models  # noqa: F401 - register all models
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
