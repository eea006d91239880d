"""
Kameleoon provider for OpenFeature.

USAGE:
    from openfeature import api
    from openfeature.evaluation_context import EvaluationContext
    from kameleoon_openfeature.provider import KameleoonProvider, DataType, ConversionType

    provider = KameleoonProvider("abc123", config=config)
    provider.init()
    api.set_provider(provider)

    context = EvaluationContext(
        targeting_key="visitor-123",
        attributes={
            DataType.CONVERSION: {ConversionType.GOAL_ID: 42},
            "variableKey": "title",
        },
    )
    title = api.get_client().get_string_value("new-checkout", "Checkout", context)

    # Or from the environment
    provider = KameleoonProvider.from_env()

ENVIRONMENT VARIABLES:
    KAMELEOON_SITE_CODE: Site code (required by from_env)
    KAMELEOON_CLIENT_ID / KAMELEOON_CLIENT_SECRET: API credentials
    KAMELEOON_CONFIG_PATH: SDK configuration file (optional)
    KAMELEOON_ENVIRONMENT: Feature flag environment (optional)
"""

from .config import ClientSettings
from .data_converter import DataConverter
from .exceptions import VendorError, VendorErrorKind
from .memory import InMemoryClientFactory, InMemoryKameleoonClient
from .models import ConversionRecord, CustomDataRecord, Variable, Variation
from .provider import KameleoonProvider
from .resolver import KameleoonResolver, Resolver
from .types import (
    VARIABLE_KEY,
    ConversionType,
    CustomDataType,
    DataType,
    ValueType,
)
from .vendor import (
    ClientFactory,
    KameleoonClientAdapter,
    KameleoonClientFactory,
    VendorClient,
)

__all__ = [
    # High-level API
    "KameleoonProvider",
    "ClientSettings",
    # Context attributes
    "VARIABLE_KEY",
    "DataType",
    "ConversionType",
    "CustomDataType",
    # Resolution
    "DataConverter",
    "Resolver",
    "KameleoonResolver",
    "ValueType",
    # Vendor client
    "VendorClient",
    "ClientFactory",
    "KameleoonClientAdapter",
    "KameleoonClientFactory",
    "InMemoryKameleoonClient",
    "InMemoryClientFactory",
    "VendorError",
    "VendorErrorKind",
    # Records
    "ConversionRecord",
    "CustomDataRecord",
    "Variable",
    "Variation",
]
