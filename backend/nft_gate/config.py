from typing import Annotated
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic import field_validator

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env")

    # King of Apes collection on Base
    NFT_CONTRACT_ADDRESS: str = "0xF98082c5978B57AdD900E5544fcaE56AdAA871Fa"
    CHAIN_ID: int = 8453
    COLLECTION_NAME: str = "King of Apes"
    STORE_URL: str = "https://kingofapes.shop"
    SESSION_DURATION_HOURS: int = 24

    # Wallet modal project id, handed to the front end
    PROJECT_ID: str = "916c2c0116b80bc0aa50ad643876189b"

    # Tried in order until one answers
    RPC_URLS: Annotated[list[str], NoDecode] = [
        "https://mainnet.base.org",
        "https://base.llamarpc.com",
        "https://base.blockpi.network/v1/rpc/public",
    ]
    RPC_TIMEOUT_SEC: float = 10.0

    DATABASE_URL: str = "sqlite+aiosqlite:///./nft_gate.db"
    SESSION_KEY: str = "koa_session"
    # Idle flows beyond this are dropped; their sessions stay in the database
    MAX_CLIENT_FLOWS: int = 1000

    CORS_ORIGINS: Annotated[list[str], NoDecode] = ["http://localhost:3000"]
    LOG_LEVEL: str = "INFO"

    @field_validator('RPC_URLS', 'CORS_ORIGINS', mode='before')
    @classmethod
    def split_comma_list(cls, v):
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator('DATABASE_URL', mode='before')
    @classmethod
    def convert_database_url(cls, v):
        if isinstance(v, str) and v.startswith("sqlite:///"):
            return v.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
        return v

settings = Settings()
