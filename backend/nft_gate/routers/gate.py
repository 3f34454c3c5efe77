from fastapi import APIRouter, Depends, HTTPException, status
from nft_gate.config import settings
from nft_gate.core.deps import get_flow
from nft_gate.core.errors import NotVerifiedError
from nft_gate.schemas.gate import FlowSnapshot, PublicConfig, StoreUrlResponse, WalletReport
from nft_gate.services.flow import VerificationFlow

router = APIRouter(prefix="/api/gate", tags=["gate"])

@router.get("/config", response_model=PublicConfig)
async def public_config():
    """Values the front end needs to set up its wallet modal."""
    return PublicConfig(
        project_id=settings.PROJECT_ID,
        chain_id=settings.CHAIN_ID,
        contract_address=settings.NFT_CONTRACT_ADDRESS,
        store_url=settings.STORE_URL,
        collection_name=settings.COLLECTION_NAME,
    )

@router.get("/state", response_model=FlowSnapshot)
async def get_state(flow: VerificationFlow = Depends(get_flow)):
    return flow.snapshot()

@router.post("/connect", response_model=FlowSnapshot)
async def connect(flow: VerificationFlow = Depends(get_flow)):
    await flow.connect()
    return flow.snapshot()

@router.post("/wallet", response_model=FlowSnapshot)
async def report_wallet(body: WalletReport, flow: VerificationFlow = Depends(get_flow)):
    """Address change pushed by the front end's wallet modal subscription."""
    await flow.wallet.report(body.address)
    return flow.snapshot()

@router.post("/verify", response_model=FlowSnapshot)
async def verify(flow: VerificationFlow = Depends(get_flow)):
    await flow.verify_now()
    return flow.snapshot()

@router.post("/disconnect", response_model=FlowSnapshot)
async def disconnect(flow: VerificationFlow = Depends(get_flow)):
    await flow.disconnect()
    return flow.snapshot()

@router.get("/store-url", response_model=StoreUrlResponse)
async def store_url(flow: VerificationFlow = Depends(get_flow)):
    try:
        url = await flow.store_url()
    except NotVerifiedError as e:
        raise HTTPException(status.HTTP_403_FORBIDDEN, str(e))
    return StoreUrlResponse(url=url)
