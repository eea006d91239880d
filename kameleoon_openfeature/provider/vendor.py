"""
Kameleoon client interface used by the provider.

WHAT IT DOES:
    - Defines the narrow client interface the resolver depends on
      (add_data, get_variation, wait_init) and the client factory interface
    - Adapts the Kameleoon SDK client to that interface:
        * our data records -> kameleoon.data.Conversion / CustomData
        * SDK variations   -> Variation / Variable (variable order preserved)
        * SDK exceptions   -> VendorError with a VendorErrorKind
    - Caches one adapted client per site code

USAGE:
    factory = KameleoonClientFactory()
    client = factory.create("abc123", config_path="/etc/kameleoon/client.json")
    if client.wait_init():
        variation = client.get_variation("visitor-123", "new-checkout")

    factory.forget("abc123")
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import inspect
import threading
from contextlib import contextmanager
from typing import Any, Iterator, Protocol

from kameleoon import KameleoonClientFactory as SdkClientFactory
from kameleoon.data import Conversion, CustomData
from kameleoon.exceptions import FeatureError, KameleoonError, VisitorCodeInvalid

from kameleoon_openfeature.logger import logger

from .exceptions import VendorError, VendorErrorKind
from .models import ConversionRecord, CustomDataRecord, DataRecord, Variable, Variation

# =============================================================================
# STEP 1: INTERFACES
# =============================================================================


class VendorClient(Protocol):
    """Kameleoon client operations used during resolution."""

    def add_data(self, visitor_code: str, *records: DataRecord) -> None: ...

    def get_variation(self, visitor_code: str, flag_key: str) -> Variation: ...

    def wait_init(self) -> bool: ...


class ClientFactory(Protocol):
    """Creates and forgets vendor clients by site code."""

    def create(
        self,
        site_code: str,
        config: Any = None,
        config_path: str | None = None,
    ) -> VendorClient: ...

    def forget(self, site_code: str) -> None: ...


# =============================================================================
# STEP 2: SDK TRANSLATION HELPERS
# =============================================================================


def _sdk_error_kind(error: BaseException) -> VendorErrorKind | None:
    """Map a Kameleoon SDK exception to a VendorErrorKind (None if not from the SDK)."""
    if isinstance(error, VisitorCodeInvalid):
        return VendorErrorKind.VISITOR_CODE_INVALID
    if isinstance(error, FeatureError):
        return VendorErrorKind.FEATURE_NOT_FOUND
    if isinstance(error, KameleoonError):
        return VendorErrorKind.UNEXPECTED
    return None


@contextmanager
def _translate_sdk_errors() -> Iterator[None]:
    """Re-raise Kameleoon SDK exceptions as VendorError; others pass through."""
    try:
        yield
    except VendorError:
        raise
    except Exception as e:
        kind = _sdk_error_kind(e)
        if kind is None:
            raise
        raise VendorError(kind, str(e)) from e


def to_sdk_data(record: DataRecord) -> Any:
    """Convert a data record to its Kameleoon SDK counterpart."""
    if isinstance(record, ConversionRecord):
        return Conversion(record.goal_id, record.revenue)
    if isinstance(record, CustomDataRecord):
        return CustomData(record.index, *record.values)
    raise TypeError(f"Unsupported data record: {type(record).__name__}")


def decode_variation(sdk_variation: Any) -> Variation:
    """
    Decode a Kameleoon SDK variation.

    Variables are copied in the SDK's iteration order.
    """
    sdk_variables = getattr(sdk_variation, "variables", None) or {}
    variables = {
        name: Variable(
            key=getattr(variable, "key", name),
            type=getattr(variable, "type", ""),
            value=getattr(variable, "value", None),
        )
        for name, variable in sdk_variables.items()
    }
    return Variation(
        key=sdk_variation.key,
        variables=variables,
        id=getattr(sdk_variation, "id", None),
        experiment_id=getattr(sdk_variation, "experiment_id", None),
    )


def _run_awaitable(awaitable: Any) -> Any:
    """
    Wait for an awaitable from synchronous code.

    Inside a running event loop the awaitable is run on a worker thread
    with its own loop, since the current loop cannot be blocked on.
    """

    async def _wait() -> Any:
        return await awaitable

    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(_wait())

    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as executor:
        return executor.submit(asyncio.run, _wait()).result()


# =============================================================================
# STEP 3: SDK CLIENT ADAPTER
# =============================================================================


class KameleoonClientAdapter:
    """
    Kameleoon SDK client exposed through the VendorClient interface.

    Does not own the SDK client: its lifecycle belongs to the SDK's factory.
    """

    def __init__(self, sdk_client: Any) -> None:
        self._client = sdk_client

    @property
    def sdk_client(self) -> Any:
        return self._client

    def add_data(self, visitor_code: str, *records: DataRecord) -> None:
        """
        Send data records for a visitor.

        Raises:
            VendorError: VISITOR_CODE_INVALID if Kameleoon rejects the visitor code
        """
        sdk_data = [to_sdk_data(record) for record in records]
        with _translate_sdk_errors():
            self._client.add_data(visitor_code, *sdk_data)

    def get_variation(self, visitor_code: str, flag_key: str) -> Variation:
        """
        Get the variation assigned to a visitor for a feature flag.

        Raises:
            VendorError: FEATURE_NOT_FOUND if the flag is unknown or disabled,
                VISITOR_CODE_INVALID if the visitor code is rejected
        """
        with _translate_sdk_errors():
            sdk_variation = self._client.get_variation(visitor_code, flag_key)
        return decode_variation(sdk_variation)

    def wait_init(self) -> bool:
        """Block until the SDK client finished loading its configuration."""
        with _translate_sdk_errors():
            result = self._client.wait_init()
            if inspect.isawaitable(result):
                result = _run_awaitable(result)
        return bool(result)


# =============================================================================
# STEP 4: CLIENT FACTORY
# =============================================================================


class KameleoonClientFactory:
    """
    Creates Kameleoon clients, one per site code.

    THREAD SAFETY:
        Uses double-check locking so concurrent create() calls for the same
        site code share one client.

    USAGE:
        factory = KameleoonClientFactory()
        client = factory.create("abc123", config=config)
        same = factory.create("abc123")   # cached
        factory.forget("abc123")          # next create() builds a new one
    """

    def __init__(self) -> None:
        self._clients: dict[str, KameleoonClientAdapter] = {}
        self._lock = threading.Lock()

    def create(
        self,
        site_code: str,
        config: Any = None,
        config_path: str | None = None,
    ) -> KameleoonClientAdapter:
        """
        Get or create the client for a site code.

        Args:
            site_code: The Kameleoon site code
            config: Optional KameleoonClientConfig
            config_path: Optional path to an SDK configuration file

        Returns:
            The cached or newly created client

        Raises:
            VendorError: CONFIG kind if the site code is empty or the SDK
                rejects the configuration
        """
        if not site_code:
            raise VendorError(VendorErrorKind.CONFIG, "Site code is empty")

        # Fast path: client already exists
        client = self._clients.get(site_code)
        if client is not None:
            return client

        with self._lock:
            client = self._clients.get(site_code)
            if client is None:
                client = KameleoonClientAdapter(
                    self._create_sdk_client(site_code, config, config_path)
                )
                self._clients[site_code] = client
                logger.info("kameleoon_client_created", site_code=site_code)

        return client

    def forget(self, site_code: str) -> None:
        """Drop the cached client of a site code, here and in the SDK."""
        with self._lock:
            self._clients.pop(site_code, None)

        try:
            SdkClientFactory.forget(site_code)
        except Exception as e:
            logger.warning(
                "kameleoon_client_forget_failed",
                site_code=site_code,
                error=str(e),
            )

    @staticmethod
    def _create_sdk_client(site_code: str, config: Any, config_path: str | None) -> Any:
        kwargs: dict[str, Any] = {}
        if config is not None:
            kwargs["config"] = config
        if config_path:
            kwargs["config_path"] = config_path

        try:
            return SdkClientFactory.create(site_code, **kwargs)
        except KameleoonError as e:
            raise VendorError(VendorErrorKind.CONFIG, str(e)) from e


# Shared by providers created without an explicit factory, so providers for
# the same site code share one client
default_client_factory = KameleoonClientFactory()
