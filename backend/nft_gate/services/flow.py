import enum
from dataclasses import dataclass
from typing import Callable, ClassVar, Optional, Union
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from nft_gate.config import settings
from nft_gate.core.errors import NotVerifiedError, WalletConnectionError
from nft_gate.schemas.gate import FlowSnapshot
from nft_gate.schemas.session import Session
from nft_gate.services.access_token import build_store_url, encode_access_token
from nft_gate.services.chain_client import ChainClient, TokenBalanceQuery
from nft_gate.services.session_store import SessionStore, now_ms
from nft_gate.services.wallet import WalletConnector


class FlowStep(str, enum.Enum):
    disconnected = "disconnected"
    connected_unverified = "connected_unverified"
    verifying = "verifying"
    verified = "verified"


@dataclass(frozen=True)
class Disconnected:
    step: ClassVar[FlowStep] = FlowStep.disconnected
    wallet: ClassVar[Optional[str]] = None


@dataclass(frozen=True)
class ConnectedUnverified:
    step: ClassVar[FlowStep] = FlowStep.connected_unverified
    wallet: str


@dataclass(frozen=True, eq=False)
class Verifying:
    # identity comparison: each attempt is its own state object
    step: ClassVar[FlowStep] = FlowStep.verifying
    wallet: str


@dataclass(frozen=True)
class Verified:
    step: ClassVar[FlowStep] = FlowStep.verified
    session: Session

    @property
    def wallet(self) -> str:
        return self.session.wallet


FlowState = Union[Disconnected, ConnectedUnverified, Verifying, Verified]

CONNECT_FAILED = "Could not connect wallet. Please try again."
CONNECT_FIRST = "Please connect your wallet first"
VERIFY_FAILED = "Error verifying NFT ownership. Please try again."
SESSION_EXPIRED = "Your session has expired. Please verify again."

_NOTHING_PARKED = object()


def _same_address(a: Optional[str], b: Optional[str]) -> bool:
    return (a or "").lower() == (b or "").lower()


class VerificationFlow:
    """Connect → verify → success state machine for one client.

    Runs on the event loop only. The ``Verifying`` state is the single-flight
    guard, and wallet changes reported mid-query are parked until the query
    has resolved.
    """

    def __init__(
        self,
        wallet: WalletConnector,
        chain_client: ChainClient,
        store: SessionStore,
        clock: Callable[[], int] = now_ms,
    ):
        self.wallet = wallet
        self.chain_client = chain_client
        self.store = store
        self.clock = clock
        self.state: FlowState = Disconnected()
        self.error = ""
        self._parked = _NOTHING_PARKED
        self._unsubscribe = None

    async def start(self):
        if self._unsubscribe is not None:
            return
        session = await self.store.load()
        if session and session.verified:
            logger.info(f"Restored session for {session.wallet}")
            self.state = Verified(session)
        elif session:
            self.state = ConnectedUnverified(session.wallet)
        self._unsubscribe = self.wallet.subscribe(self.handle_wallet_change)

    def stop(self):
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def connect(self):
        self.error = ""
        try:
            await self.wallet.open()
        except WalletConnectionError as e:
            logger.warning(f"Wallet connection failed: {e}")
            self.error = CONNECT_FAILED

    async def handle_wallet_change(self, address: Optional[str]):
        if isinstance(self.state, Verifying):
            self._parked = address
            return
        await self._apply_address(address)

    async def _apply_address(self, address: Optional[str]):
        known = self.state.wallet
        if address and not _same_address(address, known):
            if isinstance(self.state, Verified):
                # session belongs to the previous wallet
                await self.store.clear()
            logger.info(f"New wallet connected: {address}")
            self.state = ConnectedUnverified(address)
            self.error = ""
        elif not address and known:
            logger.info("Wallet disconnected")
            await self.disconnect()

    async def verify_now(self):
        if isinstance(self.state, Verifying):
            logger.debug(f"Verification already running for {self.state.wallet}")
            return
        if isinstance(self.state, Verified):
            return
        wallet = self.state.wallet
        if not wallet:
            self.error = CONNECT_FIRST
            return

        attempt = Verifying(wallet)
        self.state = attempt
        self.error = ""
        logger.info(f"Checking NFT ownership for: {wallet}")
        try:
            result = await self.chain_client.query_ownership(TokenBalanceQuery(
                contract_address=settings.NFT_CONTRACT_ADDRESS,
                wallet_address=wallet,
                endpoints=tuple(settings.RPC_URLS),
            ))
            if self.state is not attempt:
                logger.info(f"Dropping stale verification result for {wallet}")
                return
            await self._settle(attempt, result.balance)
        finally:
            if self.state is attempt:
                self.state = ConnectedUnverified(wallet)
            if not isinstance(self.state, Verifying):
                parked, self._parked = self._parked, _NOTHING_PARKED
                if parked is not _NOTHING_PARKED:
                    await self._apply_address(parked)

    async def _settle(self, attempt: Verifying, balance: Optional[int]):
        wallet = attempt.wallet
        if balance is None:
            self.state = ConnectedUnverified(wallet)
            self.error = VERIFY_FAILED
            return
        if balance == 0:
            self.state = ConnectedUnverified(wallet)
            self.error = f"No {settings.COLLECTION_NAME} NFT found in your wallet."
            return

        session = Session.issue(wallet, balance, self.clock(), settings.SESSION_DURATION_HOURS)
        try:
            await self.store.save(session)
        except SQLAlchemyError as e:
            logger.error(f"Could not persist session for {wallet}: {e}")
            if self.state is attempt:
                self.state = ConnectedUnverified(wallet)
                self.error = VERIFY_FAILED
            return
        if self.state is not attempt:
            # disconnected while the record was being written
            await self.store.clear()
            return
        self.state = Verified(session)
        logger.info(f"NFT found, access granted to {wallet} ({balance} held)")

    async def disconnect(self):
        await self.store.clear()
        self.state = Disconnected()
        self.error = ""
        self._parked = _NOTHING_PARKED
        await self.wallet.disconnect()

    async def store_url(self) -> str:
        if not isinstance(self.state, Verified):
            raise NotVerifiedError("Verify NFT ownership before entering the store")
        session = self.state.session
        if session.is_expired(self.clock()):
            await self.store.clear()
            self.state = ConnectedUnverified(session.wallet)
            self.error = SESSION_EXPIRED
            raise NotVerifiedError(SESSION_EXPIRED)
        return build_store_url(settings.STORE_URL, encode_access_token(session))

    def snapshot(self) -> FlowSnapshot:
        session = self.state.session if isinstance(self.state, Verified) else None
        return FlowSnapshot(
            step=self.state.step.value,
            wallet=self.state.wallet,
            token_count=session.token_count if session else 0,
            expires_at=session.expires_at if session else None,
            error=self.error,
        )
