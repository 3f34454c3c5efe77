import base64
import json
import httpx
from nft_gate.schemas.session import Session


def encode_access_token(session: Session) -> str:
    """base64(JSON) of the live session; not signed, the store owns integrity checks."""
    payload = {
        "wallet": session.wallet,
        "verified": session.verified,
        "exp": session.expires_at,
        "nftCount": session.token_count,
    }
    raw = json.dumps(payload, separators=(",", ":"))
    return base64.b64encode(raw.encode()).decode()


def decode_access_token(token: str) -> dict:
    return json.loads(base64.b64decode(token.encode()))


def build_store_url(base_url: str, token: str) -> str:
    return str(httpx.URL(base_url).copy_add_param("token", token))
