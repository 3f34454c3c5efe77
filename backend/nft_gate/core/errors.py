class GateError(Exception):
    pass

class WalletConnectionError(GateError):
    """Wallet capability unavailable or the user rejected the connection."""

class NotVerifiedError(GateError):
    """Store access requested without a live verified session."""
