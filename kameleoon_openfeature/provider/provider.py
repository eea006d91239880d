"""
OpenFeature provider backed by Kameleoon.

USAGE:
    from openfeature import api
    from openfeature.evaluation_context import EvaluationContext
    from kameleoon_openfeature.provider import KameleoonProvider

    provider = KameleoonProvider("abc123", config_path="/etc/kameleoon/client.json")
    api.set_provider(provider)

    client = api.get_client()
    context = EvaluationContext(targeting_key="visitor-123")
    title = client.get_string_value("new-checkout", "Checkout", context)

LIFECYCLE:
    NOT_READY --init() succeeds--> READY --shutdown()--> NOT_READY

    While NOT_READY, every fetch returns the default value with
    PROVIDER_NOT_READY, or PROVIDER_FATAL if the Kameleoon client could not
    be created at all.
"""

from __future__ import annotations

from typing import Any

from openfeature.evaluation_context import EvaluationContext
from openfeature.exception import ErrorCode
from openfeature.flag_evaluation import FlagResolutionDetails, Reason
from openfeature.provider import AbstractProvider, Metadata

from kameleoon_openfeature.logger import logger

from .config import ClientSettings
from .resolver import KameleoonResolver, Resolver
from .types import (
    ALLOWED_BOOLEAN,
    ALLOWED_FLOAT,
    ALLOWED_INTEGER,
    ALLOWED_NUMBER,
    ALLOWED_OBJECT,
    ALLOWED_STRING,
    ValueType,
)
from . import vendor
from .vendor import ClientFactory, VendorClient

PROVIDER_NOT_READY_MESSAGE = "The provider is not ready to resolve flags."


class KameleoonProvider(AbstractProvider):
    """
    OpenFeature provider resolving flags with a Kameleoon client.

    WHAT IT DOES:
        - Creates the Kameleoon client at construction (never raises)
        - Tracks readiness: init() waits for the client to load
        - Exposes typed fetch operations, each accepting a fixed set of
          value types, and the OpenFeature resolve_*_details methods

    Attributes:
        NAME: Provider name reported in metadata
    """

    NAME = "Kameleoon Provider"

    def __init__(
        self,
        site_code: str,
        config: Any = None,
        config_path: str | None = None,
        client_factory: ClientFactory | None = None,
    ) -> None:
        """
        Create the provider and its Kameleoon client.

        Args:
            site_code: The Kameleoon site code
            config: Optional KameleoonClientConfig
            config_path: Optional path to an SDK configuration file
            client_factory: Factory creating the client
                (default: the shared KameleoonClientFactory)
        """
        self._site_code = site_code
        self._client_factory = client_factory or vendor.default_client_factory
        self._client: VendorClient | None = None
        self._ready_state = False
        self._make_kameleoon_client(site_code, config, config_path)
        self._resolver: Resolver = KameleoonResolver(self._client)
        self._metadata = Metadata(name=self.NAME)

    @classmethod
    def from_env(cls, client_factory: ClientFactory | None = None) -> KameleoonProvider:
        """
        Create a provider from the KAMELEOON_* environment variables.

        Example:
            provider = KameleoonProvider.from_env()
            provider.init()
        """
        settings = ClientSettings.from_env()
        try:
            config = settings.to_kameleoon_config()
        except Exception as e:
            logger.error("kameleoon_config_invalid", site_code=settings.site_code, error=str(e))
            config = None
        return cls(
            settings.site_code,
            config=config,
            config_path=settings.config_path,
            client_factory=client_factory,
        )

    def _make_kameleoon_client(self, site_code: str, config: Any, config_path: str | None) -> None:
        try:
            self._client = self._client_factory.create(
                site_code, config=config, config_path=config_path
            )
        except Exception as e:
            logger.error(
                "kameleoon_client_creation_failed",
                site_code=site_code,
                error=str(e),
            )
            self._client = None

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def client(self) -> VendorClient | None:
        return self._client

    @property
    def ready_state(self) -> bool:
        return self._ready_state

    @property
    def metadata(self) -> Metadata:
        return self._metadata

    def get_metadata(self) -> Metadata:
        return self._metadata

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def init(self) -> bool:
        """
        Wait for the Kameleoon client to initialize.

        Returns:
            True if the provider is now READY, False otherwise (no client,
            client not initialized, or wait_init() raised)
        """
        try:
            success = False if self._client is None else self._client.wait_init()
        except Exception as e:
            logger.warning("kameleoon_client_init_failed", site_code=self._site_code, error=str(e))
            success = False

        self._ready_state = bool(success)
        if self._ready_state:
            logger.info("kameleoon_provider_ready", site_code=self._site_code)
        return self._ready_state

    def initialize(self, evaluation_context: EvaluationContext) -> None:
        """OpenFeature initialization hook."""
        self.init()

    def shutdown(self) -> None:
        """
        Release the Kameleoon client and return to NOT_READY.

        The factory forgets the site's client, so a new provider for the same
        site code gets a fresh client. Call init() on a new provider instead
        of reusing this one.
        """
        self._client_factory.forget(self._site_code)
        self._ready_state = False
        self._client = None
        logger.info("kameleoon_provider_shutdown", site_code=self._site_code)

    # -------------------------------------------------------------------------
    # Typed fetch operations
    # -------------------------------------------------------------------------

    def fetch_boolean_value(
        self,
        flag_key: str,
        default_value: bool,
        evaluation_context: EvaluationContext | None = None,
    ) -> FlagResolutionDetails[bool]:
        return self._fetch_value(ALLOWED_BOOLEAN, flag_key, default_value, evaluation_context)

    def fetch_string_value(
        self,
        flag_key: str,
        default_value: str,
        evaluation_context: EvaluationContext | None = None,
    ) -> FlagResolutionDetails[str]:
        return self._fetch_value(ALLOWED_STRING, flag_key, default_value, evaluation_context)

    def fetch_number_value(
        self,
        flag_key: str,
        default_value: int | float,
        evaluation_context: EvaluationContext | None = None,
    ) -> FlagResolutionDetails[int | float]:
        return self._fetch_value(ALLOWED_NUMBER, flag_key, default_value, evaluation_context)

    def fetch_integer_value(
        self,
        flag_key: str,
        default_value: int,
        evaluation_context: EvaluationContext | None = None,
    ) -> FlagResolutionDetails[int]:
        return self._fetch_value(ALLOWED_INTEGER, flag_key, default_value, evaluation_context)

    def fetch_float_value(
        self,
        flag_key: str,
        default_value: float,
        evaluation_context: EvaluationContext | None = None,
    ) -> FlagResolutionDetails[float]:
        return self._fetch_value(ALLOWED_FLOAT, flag_key, default_value, evaluation_context)

    def fetch_object_value(
        self,
        flag_key: str,
        default_value: Any,
        evaluation_context: EvaluationContext | None = None,
    ) -> FlagResolutionDetails[Any]:
        return self._fetch_value(ALLOWED_OBJECT, flag_key, default_value, evaluation_context)

    def _fetch_value(
        self,
        allowed_types: frozenset[ValueType],
        flag_key: str,
        default_value: Any,
        evaluation_context: EvaluationContext | None,
    ) -> FlagResolutionDetails[Any]:
        if self._ready_state:
            return self._resolver.resolve(
                allowed_types, flag_key, default_value, evaluation_context
            )

        error_code = (
            ErrorCode.PROVIDER_FATAL if self._client is None else ErrorCode.PROVIDER_NOT_READY
        )
        return FlagResolutionDetails(
            value=default_value,
            error_code=error_code,
            error_message=PROVIDER_NOT_READY_MESSAGE,
            reason=Reason.ERROR,
        )

    # -------------------------------------------------------------------------
    # OpenFeature resolution
    # -------------------------------------------------------------------------

    def resolve_boolean_details(
        self,
        flag_key: str,
        default_value: bool,
        evaluation_context: EvaluationContext | None = None,
    ) -> FlagResolutionDetails[bool]:
        return self.fetch_boolean_value(flag_key, default_value, evaluation_context)

    def resolve_string_details(
        self,
        flag_key: str,
        default_value: str,
        evaluation_context: EvaluationContext | None = None,
    ) -> FlagResolutionDetails[str]:
        return self.fetch_string_value(flag_key, default_value, evaluation_context)

    def resolve_integer_details(
        self,
        flag_key: str,
        default_value: int,
        evaluation_context: EvaluationContext | None = None,
    ) -> FlagResolutionDetails[int]:
        return self.fetch_integer_value(flag_key, default_value, evaluation_context)

    def resolve_float_details(
        self,
        flag_key: str,
        default_value: float,
        evaluation_context: EvaluationContext | None = None,
    ) -> FlagResolutionDetails[float]:
        return self.fetch_float_value(flag_key, default_value, evaluation_context)

    def resolve_object_details(
        self,
        flag_key: str,
        default_value: Any,
        evaluation_context: EvaluationContext | None = None,
    ) -> FlagResolutionDetails[Any]:
        return self.fetch_object_value(flag_key, default_value, evaluation_context)
