import asyncio
import string
from dataclasses import dataclass
from typing import Optional
import httpx
from loguru import logger
from nft_gate.config import settings

# ERC-721 / ERC-20 balanceOf(address)
BALANCE_OF_SELECTOR = "0x70a08231"


@dataclass(frozen=True)
class TokenBalanceQuery:
    contract_address: str
    wallet_address: str
    endpoints: tuple[str, ...]


@dataclass(frozen=True)
class OwnershipResult:
    balance: Optional[int]
    endpoint: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.balance is None

    @classmethod
    def failure(cls) -> "OwnershipResult":
        return cls(balance=None)


def build_balance_of_data(wallet_address: str) -> str:
    return BALANCE_OF_SELECTOR + wallet_address.removeprefix("0x").rjust(64, "0")


def decode_balance(raw) -> Optional[int]:
    """Decode an eth_call result, or None when the endpoint gave nothing usable.

    ``"0x"`` and empty strings are failures, not zero: only a non-empty hex
    value (``0x00...00`` included) is an answer.
    """
    if not isinstance(raw, str):
        return None
    digits = raw[2:] if raw[:2].lower() == "0x" else raw
    if not digits:
        return None
    if not all(c in string.hexdigits for c in digits):
        return None
    return int(digits, 16)


class ChainClient:
    def __init__(self, timeout: Optional[float] = None):
        self.timeout = settings.RPC_TIMEOUT_SEC if timeout is None else timeout
        self.client = httpx.AsyncClient(timeout=self.timeout)

    async def _call_endpoint(self, rpc_url: str, payload: dict) -> Optional[int]:
        try:
            # httpx times each phase separately; cap the whole call too
            resp = await asyncio.wait_for(self.client.post(rpc_url, json=payload), self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"RPC {rpc_url} timed out after {self.timeout}s")
            return None
        except httpx.HTTPError as e:
            logger.warning(f"RPC {rpc_url} failed: {e!r}")
            return None

        if resp.status_code != 200:
            logger.warning(f"RPC {rpc_url} returned HTTP {resp.status_code}")
            return None

        try:
            data = resp.json()
        except ValueError:
            logger.warning(f"RPC {rpc_url} returned a non-JSON body")
            return None

        if not isinstance(data, dict) or data.get("error"):
            logger.warning(f"RPC {rpc_url} returned an error: {data!r}")
            return None

        balance = decode_balance(data.get("result"))
        if balance is None:
            logger.warning(f"RPC {rpc_url} returned empty result {data.get('result')!r}")
        return balance

    async def query_ownership(self, query: TokenBalanceQuery) -> OwnershipResult:
        """Ask each endpoint in turn for balanceOf(wallet); first usable answer wins."""
        payload = {
            "jsonrpc": "2.0",
            "method": "eth_call",
            "params": [{
                "to": query.contract_address,
                "data": build_balance_of_data(query.wallet_address),
            }, "latest"],
            "id": 1,
        }
        for rpc_url in query.endpoints:
            balance = await self._call_endpoint(rpc_url, payload)
            if balance is not None:
                logger.info(f"NFT balance for {query.wallet_address}: {balance} (via {rpc_url})")
                return OwnershipResult(balance=balance, endpoint=rpc_url)

        logger.error(f"All {len(query.endpoints)} RPC endpoints failed for {query.wallet_address}")
        return OwnershipResult.failure()

    async def close(self):
        await self.client.aclose()
