"""
Error Definitions

Exception types raised by the codecs, the packet model and the
session statistics tracker.
"""


class VoIPError(Exception):
    """Base class for all voip_sim errors."""


class ConfigurationError(VoIPError, ValueError):
    """Raised for an unknown codec type or an unusable configuration."""


class AddressingError(VoIPError):
    """Raised when a packet's sender id is outside the configured user range."""

    def __init__(self, sender_id: int, num_users: int):
        super().__init__(
            f"Sender id {sender_id} out of range for {num_users} configured users"
        )
        self.sender_id = sender_id
        self.num_users = num_users


class SizeMismatchError(VoIPError, ValueError):
    """Raised when a buffer does not have the size the active codec expects."""

    def __init__(self, expected: int, actual: int, what: str = "buffer"):
        super().__init__(f"Expected {what} of {expected} bytes, got {actual}")
        self.expected = expected
        self.actual = actual
