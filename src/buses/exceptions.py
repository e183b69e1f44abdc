from typing import Optional


class ProviderError(Exception):
    """Any failure reported by, or while talking to, the bus inventory provider.

    The provider's error code and message are carried through as-is and are
    not interpreted further.
    """

    def __init__(self, message: str, error_code: Optional[int] = None, status_code: Optional[int] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)
