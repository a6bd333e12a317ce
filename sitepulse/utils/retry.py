# ==============================================================================
# Retry Configuration
# ==============================================================================
"""
Shared retry configuration for sink writes.

Transient sink failures (SinkUnavailableError) are retried with exponential
backoff; anything else fails immediately. The attempt count is configurable
(TELEMETRY_WRITE_RETRY_ATTEMPTS) because telemetry writes sit behind a
bounded queue and should not hold it for long.
"""

import logging

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from sitepulse.base.sinks import SinkUnavailableError

# ==============================================================================
# Retry Constants
# ==============================================================================

# Light retry: 3 attempts, backoff 0.5s, 1s (~1.5s total)
RETRY_ATTEMPTS = 3
RETRY_WAIT_MIN = 0.5  # seconds
RETRY_WAIT_MAX = 8  # seconds (cap for exponential backoff)

# Valkey retry configuration (used by redis-py client)
VALKEY_RETRIES = 3


# ==============================================================================
# Logging Callbacks
# ==============================================================================


def log_retry_attempt(logger: logging.Logger, attempts: int = RETRY_ATTEMPTS):
    """
    Create a callback that logs retry attempts.

    Args:
        logger: Logger instance to use for logging
        attempts: Total attempts, for the log message

    Returns:
        Callback function for tenacity's before_sleep parameter
    """

    def _log_retry(retry_state: RetryCallState) -> None:
        exception = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "Retry attempt %d/%d after error: %s",
            retry_state.attempt_number,
            attempts,
            exception,
        )

    return _log_retry


# ==============================================================================
# Retry Controllers
# ==============================================================================


def sink_retrying(logger: logging.Logger, attempts: int = RETRY_ATTEMPTS) -> AsyncRetrying:
    """
    Create an AsyncRetrying controller for sink operations.

    Args:
        logger: Logger instance for retry logging
        attempts: Maximum attempts (1 disables retries)

    Returns:
        Tenacity AsyncRetrying; the last exception is re-raised

    Example:
        async for attempt in sink_retrying(logger):
            with attempt:
                await sink.append(collection, record)
    """
    return AsyncRetrying(
        stop=stop_after_attempt(max(attempts, 1)),
        wait=wait_exponential(multiplier=RETRY_WAIT_MIN, min=RETRY_WAIT_MIN, max=RETRY_WAIT_MAX),
        retry=retry_if_exception_type(SinkUnavailableError),
        before_sleep=log_retry_attempt(logger, attempts),
        reraise=True,
    )
