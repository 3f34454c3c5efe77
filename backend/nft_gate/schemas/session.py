from pydantic import BaseModel, ConfigDict, Field, model_validator

HOUR_MS = 60 * 60 * 1000
ADDRESS_HEX = "0x[0-9a-fA-F]{40}"

class Session(BaseModel):
    """Locally persisted record of a successful ownership check.

    Serialized with the keys the storefront already understands:
    ``wallet``, ``verified``, ``exp`` (epoch millis) and ``nftCount``.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    wallet: str = Field(pattern=f"^{ADDRESS_HEX}$")
    verified: bool
    expires_at: int = Field(alias="exp")
    token_count: int = Field(alias="nftCount", ge=0)

    @model_validator(mode="after")
    def verified_requires_token(self):
        if self.verified and self.token_count < 1:
            raise ValueError("verified session must hold at least one token")
        return self

    @classmethod
    def issue(cls, wallet: str, token_count: int, now_ms: int, duration_hours: int) -> "Session":
        return cls(
            wallet=wallet,
            verified=True,
            expires_at=now_ms + duration_hours * HOUR_MS,
            token_count=token_count,
        )

    def is_expired(self, now_ms: int) -> bool:
        return now_ms >= self.expires_at

    def to_record(self) -> str:
        return self.model_dump_json(by_alias=True)
