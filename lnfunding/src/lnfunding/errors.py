"""
Exception types.
"""


class LnFundingError(Exception):
    """Base exception for funding transaction resolution."""

    pass


class BackendError(LnFundingError):
    """Raised when the blockchain backend returns an error response."""

    def __init__(self, method: str, code: int | str, message: str):
        self.method = method
        self.code = code
        self.message = message
        super().__init__(f"RPC error {code} in {method}: {message}")
