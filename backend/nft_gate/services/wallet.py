from typing import Awaitable, Callable, Optional, Protocol
from loguru import logger

AddressCallback = Callable[[Optional[str]], Awaitable[None]]


class WalletConnector(Protocol):
    """The four wallet operations the verification flow relies on."""

    async def open(self) -> None:
        """Begin the connect interaction; raises WalletConnectionError on failure."""

    def get_address(self) -> Optional[str]:
        """Currently connected address, or None."""

    async def disconnect(self) -> None:
        """Drop the wallet connection."""

    def subscribe(self, callback: AddressCallback) -> Callable[[], None]:
        """Deliver address changes to ``callback``; returns an unsubscribe function."""


class ReportedWallet:
    """Wallet whose state is pushed by the front end's wallet modal.

    The browser owns the actual connection; it reports every address change
    through the API and this object fans it out to subscribers.
    """

    def __init__(self, client_id: str):
        self.client_id = client_id
        self._address: Optional[str] = None
        self._subscribers: list[AddressCallback] = []

    async def open(self) -> None:
        logger.info(f"Client {self.client_id} asked to open the wallet modal")

    def get_address(self) -> Optional[str]:
        return self._address

    async def disconnect(self) -> None:
        self._address = None

    def subscribe(self, callback: AddressCallback) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)
        return unsubscribe

    async def report(self, address: Optional[str]) -> None:
        self._address = address or None
        for callback in list(self._subscribers):
            await callback(self._address)
