"""Errors raised through the vendor-client interface."""

from __future__ import annotations

import enum


class VendorErrorKind(enum.Enum):
    """Failure kinds reported by a vendor client or client factory."""

    VISITOR_CODE_INVALID = "VISITOR_CODE_INVALID"
    FEATURE_NOT_FOUND = "FEATURE_NOT_FOUND"
    CONFIG = "CONFIG"
    UNEXPECTED = "UNEXPECTED"


class VendorError(Exception):
    """
    Failure from the Kameleoon layer.

    Attributes:
        kind: The VendorErrorKind of the failure
        message: The vendor's message, without the kind prefix
    """

    def __init__(self, kind: VendorErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"
