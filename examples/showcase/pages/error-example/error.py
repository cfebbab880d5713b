import html
import logging

logger = logging.getLogger("showcase.errors")


def error(error: BaseException, retry) -> str:
    logger.warning("error-example failed on attempt %d: %s", retry.failed_attempt, error)
    message = str(error) or "An error occurred"
    return (
        f'<div class="error-fallback">{html.escape(message)}'
        '<button class="retry">Try again</button></div>'
    )
