import logging
from typing import Any, Mapping, Optional

import notifiers.logging
from sanic.log import logger

from prlint import config
from prlint.metric import error_counter


def get_log_handlers(logger):
    if config.TELEGRAM_TOKEN is None or config.DISABLE_ERROR_REPORTING:
        return []
    handler = notifiers.logging.NotificationHandler(
        "telegram",
        defaults={
            "token": config.TELEGRAM_TOKEN,
            "chat_id": config.TELEGRAM_CHAT_ID,
        },
    )
    handler.setLevel(logging.WARNING)
    logger.addHandler(handler)
    return [handler]


def capture_exception(
    exc: BaseException, context: str, extra: Optional[Mapping[str, Any]] = None
) -> None:
    """Send an exception to the error sink.

    The exception is logged with its traceback, which reaches the notification
    handler when one is installed, and counted under ``context``.
    """
    error_counter.labels(context=context).inc()
    if extra:
        logger.error("Exception in %s (extra: %r)", context, dict(extra), exc_info=exc)
    else:
        logger.error("Exception in %s", context, exc_info=exc)
