"""
Storage exceptions
"""

from typing import Optional


class StorageError(Exception):
    """Raised when the durable store cannot be opened, read or written

    Attributes:
        message: Human-readable error message
        key: Storage key of the failed operation (if any)
    """

    def __init__(self, message: str, key: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.key = key

    def __str__(self) -> str:
        if self.key:
            return f"{self.message} (key: {self.key})"
        return self.message
