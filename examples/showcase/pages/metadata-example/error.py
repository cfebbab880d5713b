import html


def error(error: BaseException, retry) -> str:
    return (
        f'<div class="error">Could not load this example: {html.escape(str(error))}'
        f'<button data-attempt="{retry.failed_attempt}">Try again</button></div>'
    )
