import httpx
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from nft_gate.core.deps import get_registry
from nft_gate.main import app
from nft_gate.services.chain_client import OwnershipResult
from nft_gate.services.registry import FlowRegistry
from conftest import FakeChain, WALLET

HEADERS = {"X-Client-Id": "browser-0001"}


@pytest_asyncio.fixture
async def chain(session_factory, clock):
    chain = FakeChain(OwnershipResult(balance=3, endpoint="https://rpc-a.test"))
    registry = FlowRegistry(session_factory, chain, clock)
    app.dependency_overrides[get_registry] = lambda: registry
    yield chain
    app.dependency_overrides.clear()
    await registry.close()


@pytest_asyncio.fixture
async def client(chain):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.mark.asyncio
async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_public_config(client):
    r = await client.get("/api/gate/config")
    assert r.status_code == 200
    body = r.json()
    assert body["chain_id"] == 8453
    assert body["store_url"] == "https://kingofapes.shop"


@pytest.mark.asyncio
async def test_client_id_is_required(client):
    r = await client.get("/api/gate/state")
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_invalid_address_rejected(client):
    r = await client.post("/api/gate/wallet", json={"address": "0x1234"}, headers=HEADERS)
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_full_journey(client):
    r = await client.get("/api/gate/state", headers=HEADERS)
    assert r.json()["step"] == "disconnected"

    r = await client.post("/api/gate/connect", headers=HEADERS)
    assert r.json()["step"] == "disconnected"

    r = await client.post("/api/gate/wallet", json={"address": WALLET}, headers=HEADERS)
    assert r.json()["step"] == "connected_unverified"
    assert r.json()["wallet"] == WALLET

    r = await client.post("/api/gate/verify", headers=HEADERS)
    assert r.status_code == 200, r.text
    assert r.json()["step"] == "verified"
    assert r.json()["token_count"] == 3

    r = await client.get("/api/gate/store-url", headers=HEADERS)
    assert r.status_code == 200
    url = httpx.URL(r.json()["url"])
    assert url.host == "kingofapes.shop"
    assert url.params["token"]

    r = await client.post("/api/gate/disconnect", headers=HEADERS)
    assert r.json()["step"] == "disconnected"

    r = await client.get("/api/gate/store-url", headers=HEADERS)
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_empty_address_disconnects(client):
    await client.post("/api/gate/wallet", json={"address": WALLET}, headers=HEADERS)
    r = await client.post("/api/gate/wallet", json={"address": ""}, headers=HEADERS)
    assert r.json()["step"] == "disconnected"
    assert r.json()["wallet"] is None


@pytest.mark.asyncio
async def test_no_tokens_reports_message(client, chain):
    chain.result = OwnershipResult(balance=0, endpoint="https://rpc-a.test")
    await client.post("/api/gate/wallet", json={"address": WALLET}, headers=HEADERS)

    r = await client.post("/api/gate/verify", headers=HEADERS)

    assert r.json()["step"] == "connected_unverified"
    assert "No King of Apes NFT found" in r.json()["error"]


@pytest.mark.asyncio
async def test_clients_have_separate_flows(client):
    await client.post("/api/gate/wallet", json={"address": WALLET}, headers=HEADERS)
    await client.post("/api/gate/verify", headers=HEADERS)

    r = await client.get("/api/gate/state", headers={"X-Client-Id": "browser-0002"})
    assert r.json()["step"] == "disconnected"
