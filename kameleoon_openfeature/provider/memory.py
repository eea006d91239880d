"""In-memory Kameleoon client and factory for tests and local development."""

from __future__ import annotations

from typing import Any

from .exceptions import VendorError, VendorErrorKind
from .models import DataRecord, Variation

# Longest visitor code Kameleoon accepts
MAX_VISITOR_CODE_LENGTH = 255


def _check_visitor_code(visitor_code: str) -> None:
    if not visitor_code:
        raise VendorError(VendorErrorKind.VISITOR_CODE_INVALID, "Visitor code is empty")
    if len(visitor_code) > MAX_VISITOR_CODE_LENGTH:
        raise VendorError(
            VendorErrorKind.VISITOR_CODE_INVALID,
            f"Visitor code is longer than {MAX_VISITOR_CODE_LENGTH} characters",
        )


class InMemoryKameleoonClient:
    """Client serving preset variations and recording the data it receives."""

    def __init__(self, ready: bool = True) -> None:
        self._variations: dict[str, Variation] = {}
        self._data: dict[str, list[DataRecord]] = {}
        self._ready = ready

    def set_variation(self, flag_key: str, variation: Variation) -> None:
        """Serve `variation` for every visitor requesting `flag_key`."""
        self._variations[flag_key] = variation

    def set_ready(self, ready: bool) -> None:
        self._ready = ready

    def get_data(self, visitor_code: str) -> list[DataRecord]:
        """Data records received so far for a visitor."""
        return list(self._data.get(visitor_code, []))

    def add_data(self, visitor_code: str, *records: DataRecord) -> None:
        _check_visitor_code(visitor_code)
        self._data.setdefault(visitor_code, []).extend(records)

    def get_variation(self, visitor_code: str, flag_key: str) -> Variation:
        _check_visitor_code(visitor_code)
        variation = self._variations.get(flag_key)
        if variation is None:
            raise VendorError(
                VendorErrorKind.FEATURE_NOT_FOUND,
                f"Feature flag '{flag_key}' not found",
            )
        return variation

    def wait_init(self) -> bool:
        return self._ready


class InMemoryClientFactory:
    """Factory handing out one InMemoryKameleoonClient per site code."""

    def __init__(self) -> None:
        self._clients: dict[str, InMemoryKameleoonClient] = {}

    def create(
        self,
        site_code: str,
        config: Any = None,
        config_path: str | None = None,
    ) -> InMemoryKameleoonClient:
        if not site_code:
            raise VendorError(VendorErrorKind.CONFIG, "Site code is empty")
        return self._clients.setdefault(site_code, InMemoryKameleoonClient())

    def forget(self, site_code: str) -> None:
        self._clients.pop(site_code, None)
