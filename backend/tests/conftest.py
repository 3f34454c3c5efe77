import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from nft_gate.database import Base
import nft_gate.models  # noqa: F401 - register all models

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

CONTRACT = "0xABC0000000000000000000000000000000000abc"
WALLET = "0x1111111111111111111111111111111111111111"
OTHER_WALLET = "0x2222222222222222222222222222222222222222"


class FakeClock:
    def __init__(self, now: int = 1_700_000_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now


class FakeChain:
    """Stands in for ChainClient; optionally holds each query until ``gate`` is set."""

    def __init__(self, result):
        self.result = result
        self.calls = []
        self.gate = None

    async def query_ownership(self, query):
        self.calls.append(query)
        if self.gate is not None:
            await self.gate.wait()
        return self.result

    async def close(self):
        pass


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def clock():
    return FakeClock()


@pytest_asyncio.fixture
async def tableless_session_factory():
    """Database with no tables, so every storage call fails."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()
