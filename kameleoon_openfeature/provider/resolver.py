"""
Flag resolution against a Kameleoon client.

RESOLUTION STEPS (first failure wins):
    1. The context must be an EvaluationContext with a non-empty string
       targeting key (the Kameleoon visitor code)    -> TARGETING_KEY_MISSING
    2. Context data is sent with client.add_data()   -> INVALID_CONTEXT
    3. The variation is fetched with get_variation() -> FLAG_NOT_FOUND
    4. The variable is picked by the "variableKey" attribute, or is the
       first variable of the variation
    5. A missing variable or value                   -> FLAG_NOT_FOUND
    6. The value type must be one of the allowed types -> TYPE_MISMATCH

    Any other failure resolves to GENERAL. Every error returns the
    caller's default value; nothing is raised to the caller.
"""

from __future__ import annotations

from typing import Any

from openfeature.evaluation_context import EvaluationContext
from openfeature.exception import ErrorCode
from openfeature.flag_evaluation import FlagResolutionDetails, Reason

from kameleoon_openfeature.logger import evaluation_scope, logger

from .data_converter import DataConverter
from .exceptions import VendorError, VendorErrorKind
from .models import Variable
from .types import VARIABLE_KEY, ValueType
from .vendor import VendorClient

TARGETING_KEY_MISSING_MESSAGE = "The TargetingKey is required in context and cannot be omitted."
TYPE_MISMATCH_MESSAGE = "The type of value received is different from the requested value."

# Error code for each vendor failure kind; other kinds resolve to GENERAL
VENDOR_ERROR_CODES: dict[VendorErrorKind, ErrorCode] = {
    VendorErrorKind.VISITOR_CODE_INVALID: ErrorCode.INVALID_CONTEXT,
    VendorErrorKind.FEATURE_NOT_FOUND: ErrorCode.FLAG_NOT_FOUND,
}


class Resolver:
    """Interface for evaluating a flag from provided data."""

    def resolve(
        self,
        allowed_types: frozenset[ValueType],
        flag_key: str,
        default_value: Any,
        evaluation_context: EvaluationContext | None = None,
    ) -> FlagResolutionDetails[Any]:
        raise NotImplementedError("Subclasses must implement the resolve method")


class KameleoonResolver(Resolver):
    """Resolves flags with a Kameleoon client."""

    def __init__(self, client: VendorClient | None) -> None:
        self._client = client

    def resolve(
        self,
        allowed_types: frozenset[ValueType],
        flag_key: str,
        default_value: Any,
        evaluation_context: EvaluationContext | None = None,
    ) -> FlagResolutionDetails[Any]:
        """
        Resolve a flag for the visitor of the evaluation context.

        Args:
            allowed_types: Value types the caller accepts
            flag_key: The feature flag key
            default_value: Returned on any error
            evaluation_context: Must carry the visitor code as targeting key

        Returns:
            STATIC details with the variable value, or ERROR details with
            the default value and an error code
        """
        visitor_code = _get_targeting_key(evaluation_context)
        if not visitor_code:
            return _make_resolution_error(
                default_value,
                ErrorCode.TARGETING_KEY_MISSING,
                TARGETING_KEY_MISSING_MESSAGE,
            )

        with evaluation_scope(flag_key, visitor_code):
            return self._resolve_for_visitor(
                allowed_types, flag_key, default_value, evaluation_context, visitor_code
            )

    def _resolve_for_visitor(
        self,
        allowed_types: frozenset[ValueType],
        flag_key: str,
        default_value: Any,
        evaluation_context: EvaluationContext,
        visitor_code: str,
    ) -> FlagResolutionDetails[Any]:
        variant = None
        try:
            # Targeting data from the context, keyed by visitor code
            self._client.add_data(visitor_code, *DataConverter.to_kameleoon(evaluation_context))

            variation = self._client.get_variation(visitor_code, flag_key)
            variant = variation.key
            variables = variation.variables or {}

            # Without a variableKey in the context, the variation is expected
            # to hold a single variable.
            variable_key = _get_variable_key(evaluation_context, variables)
            variable = variables.get(variable_key) if variable_key else None
            value = variable.value if variable is not None else None

            if value is None or not variable_key:
                return _make_resolution_error(
                    default_value,
                    ErrorCode.FLAG_NOT_FOUND,
                    _make_error_description(variant, variable_key),
                    variant=variant,
                )

            if variable.value_type not in allowed_types:
                return _make_resolution_error(
                    default_value,
                    ErrorCode.TYPE_MISMATCH,
                    TYPE_MISMATCH_MESSAGE,
                    variant=variant,
                )

            logger.debug("kameleoon_flag_resolved", variant=variant, variable_key=variable_key)
            return FlagResolutionDetails(value=value, reason=Reason.STATIC, variant=variant)

        except VendorError as e:
            error_code = VENDOR_ERROR_CODES.get(e.kind)
            if error_code is None:
                return _make_resolution_error(
                    default_value, ErrorCode.GENERAL, e.message, variant=variant
                )
            return _make_resolution_error(default_value, error_code, e.message)

        except Exception as e:
            return _make_resolution_error(default_value, ErrorCode.GENERAL, str(e), variant=variant)


def _get_targeting_key(evaluation_context: Any) -> str | None:
    if not isinstance(evaluation_context, EvaluationContext):
        return None
    targeting_key = evaluation_context.targeting_key
    return targeting_key if isinstance(targeting_key, str) else None


def _get_variable_key(
    evaluation_context: EvaluationContext,
    variables: dict[str, Variable],
) -> str | None:
    variable_key = (evaluation_context.attributes or {}).get(VARIABLE_KEY)
    if variable_key is None or variable_key == "":
        return next(iter(variables), None)
    # Non-string keys are looked up by their text form
    return str(variable_key)


def _make_error_description(variant: str, variable_key: str | None) -> str:
    if not variable_key:
        return f"The variation '{variant}' has no variables"
    return f"The value for provided variable key '{variable_key}' isn't found in variation '{variant}'"


def _make_resolution_error(
    default_value: Any,
    error_code: ErrorCode,
    error_message: str,
    variant: str | None = None,
) -> FlagResolutionDetails[Any]:
    logger.warning(
        "kameleoon_flag_resolution_error",
        error_code=error_code.value,
        error_message=error_message,
        variant=variant,
    )
    return FlagResolutionDetails(
        value=default_value,
        error_code=error_code,
        error_message=error_message,
        reason=Reason.ERROR,
        variant=variant,
    )
