"""
Exception classes for the peer registry.

Client errors (the request itself is at fault):
- DecodeError: Bytes are not a well-formed descriptor
- ValidationError: Descriptor is well-formed but semantically invalid
- InvalidMetricError: A metric triple is out of range or inverted
- MissingIdentifierError: No strategy produced a peer identifier
- MalformedBodyError: Request body is present but not a JSON object
- PeerNotFoundError: No record exists for the resolved identifier

Server errors:
- StorageError: The storage backend failed
- CorruptRecordError: A stored record can no longer be decoded or validated
"""


class RegistryError(Exception):
    """Base class for all peer registry errors."""


class DecodeError(RegistryError):
    """
    Raised when bytes cannot be decoded into a descriptor.

    Attributes:
        reason: Parser message describing what was wrong
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"invalid payload format: {reason}")


class ValidationError(RegistryError):
    """
    Raised when a descriptor fails strict validation.

    Attributes:
        field: Dotted wire path of the offending field (e.g. "address.ip")
        message: Human-readable explanation
    """

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.message = message
        super().__init__(message)


class InvalidMetricError(ValidationError):
    """Raised when a metric triple is non-finite, out of range, or inverted."""


class MissingIdentifierError(RegistryError):
    """Raised when a request carries no peer identifier anywhere."""

    def __init__(self) -> None:
        super().__init__("missing peerId")


class MalformedBodyError(RegistryError):
    """
    Raised when the identifier fallback reaches a body that is not valid JSON.

    Attributes:
        reason: Parser message
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__("invalid payload format")


class PeerNotFoundError(RegistryError):
    """
    Raised when no stored record matches a peer identifier.

    Attributes:
        peer_id: The identifier that was looked up
    """

    def __init__(self, peer_id: str) -> None:
        self.peer_id = peer_id
        super().__init__(f"value not found: {peer_id}")


class StorageError(RegistryError):
    """
    Raised when the storage backend fails.

    Attributes:
        operation: Storage operation that failed ("get", "put", "delete", "list")
        key: Key or prefix involved
    """

    def __init__(self, operation: str, key: str, reason: str = "") -> None:
        self.operation = operation
        self.key = key
        detail = f": {reason}" if reason else ""
        super().__init__(f"storage {operation} failed for {key!r}{detail}")


class CorruptRecordError(RegistryError):
    """
    Raised when a record already in storage fails to decode or validate.

    Attributes:
        key: Storage key of the record
        reason: Underlying decode or validation message
    """

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"stored value for key {key} is invalid: {reason}")
