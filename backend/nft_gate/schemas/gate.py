from typing import Optional
from pydantic import BaseModel, Field
from nft_gate.schemas.session import ADDRESS_HEX

# Empty string is how the wallet modal reports a disconnect
WALLET_ADDRESS_PATTERN = f"^({ADDRESS_HEX})?$"

class WalletReport(BaseModel):
    address: Optional[str] = Field(default=None, pattern=WALLET_ADDRESS_PATTERN)

class FlowSnapshot(BaseModel):
    step: str
    wallet: Optional[str] = None
    token_count: int = 0
    expires_at: Optional[int] = None
    error: str = ""

class StoreUrlResponse(BaseModel):
    url: str

class PublicConfig(BaseModel):
    project_id: str
    chain_id: int
    contract_address: str
    store_url: str
    collection_name: str
