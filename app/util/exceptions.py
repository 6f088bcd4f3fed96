"""
Standard exception handling utilities for the metadata engine.

This module provides consistent logging for the failure modes the engine
tolerates: upstream API calls and response validation.
None of these helpers raise; callers decide whether to continue or re-raise.
"""
from typing import Any

from pydantic import ValidationError

from app.util.log import logger


def handle_external_api_error(
    error: BaseException,
    service: str,
    operation: str,
    **context: Any
) -> None:
    """
    Standard logging for external API failures.

    Args:
        error: The caught exception
        service: Name of the external service (e.g., "TheTVDB")
        operation: What operation was being attempted (e.g., "fetch images")
        **context: Additional context to log (e.g., series_id=..., category=...)

    Example:
        try:
            images = await client.get_series_images(series_id, "poster", "en")
        except (TvdbError, ClientError) as e:
            handle_external_api_error(e, "TheTVDB", "fetch images", series_id=series_id)
            return None
    """
    logger.error(
        f"{service} {operation} failed",
        error=str(error),
        error_type=type(error).__name__,
        service=service,
        operation=operation,
        **context
    )


def handle_validation_error(
    error: ValidationError,
    data_source: str,
    **context: Any
) -> None:
    """
    Standard logging for data validation failures.

    Args:
        error: The caught ValidationError
        data_source: Where the invalid data came from (e.g., "TheTVDB images response")
        **context: Additional context to log

    Example:
        try:
            response = TvdbImagesResponse.model_validate(data)
        except ValidationError as e:
            handle_validation_error(e, "TheTVDB images response", series_id=series_id)
            return None
    """
    logger.error(
        f"{data_source} validation failed",
        error=str(error),
        error_type=type(error).__name__,
        data_source=data_source,
        **context
    )
