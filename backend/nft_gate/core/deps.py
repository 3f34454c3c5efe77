from typing import Optional
from fastapi import Depends, Header
from nft_gate.database import AsyncSessionLocal
from nft_gate.services.chain_client import ChainClient
from nft_gate.services.flow import VerificationFlow
from nft_gate.services.registry import FlowRegistry

_registry: Optional[FlowRegistry] = None

def get_registry() -> FlowRegistry:
    global _registry
    if _registry is None:
        _registry = FlowRegistry(AsyncSessionLocal, ChainClient())
    return _registry

async def close_registry():
    global _registry
    if _registry is not None:
        await _registry.close()
        _registry = None

async def get_flow(
    x_client_id: str = Header(..., min_length=8, max_length=128),
    registry: FlowRegistry = Depends(get_registry),
) -> VerificationFlow:
    return await registry.get(x_client_id)
