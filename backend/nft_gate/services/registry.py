import asyncio
from collections import OrderedDict
from typing import Callable, Optional
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from nft_gate.config import settings
from nft_gate.services.chain_client import ChainClient
from nft_gate.services.flow import VerificationFlow, Verifying
from nft_gate.services.session_store import SessionStore, now_ms
from nft_gate.services.wallet import ReportedWallet


class FlowRegistry:
    """One verification flow per client id, built and started on first use.

    Holds at most ``max_flows`` flows, least recently used evicted first.
    An evicted client gets a fresh flow on its next request, restored from
    its stored session.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        chain_client: ChainClient,
        clock: Callable[[], int] = now_ms,
        max_flows: Optional[int] = None,
    ):
        self.session_factory = session_factory
        self.chain_client = chain_client
        self.clock = clock
        self.max_flows = settings.MAX_CLIENT_FLOWS if max_flows is None else max_flows
        self._flows: OrderedDict[str, VerificationFlow] = OrderedDict()
        self._lock = asyncio.Lock()

    def __len__(self):
        return len(self._flows)

    async def get(self, client_id: str) -> VerificationFlow:
        flow = self._flows.get(client_id)
        if flow:
            self._flows.move_to_end(client_id)
            return flow
        async with self._lock:
            if client_id not in self._flows:
                store = SessionStore(self.session_factory, f"{settings.SESSION_KEY}:{client_id}", self.clock)
                flow = VerificationFlow(ReportedWallet(client_id), self.chain_client, store, self.clock)
                await flow.start()
                self._flows[client_id] = flow
                self._evict(keep=client_id)
            return self._flows[client_id]

    def _evict(self, keep: str):
        excess = len(self._flows) - self.max_flows
        if excess <= 0:
            return
        # a flow with a query in flight is kept until it settles
        idle = [cid for cid, flow in self._flows.items()
                if cid != keep and not isinstance(flow.state, Verifying)]
        for client_id in idle[:excess]:
            self._flows.pop(client_id).stop()
            logger.debug(f"Evicted idle flow for client {client_id}")

    async def close(self):
        for flow in self._flows.values():
            flow.stop()
        self._flows.clear()
        await self.chain_client.close()
