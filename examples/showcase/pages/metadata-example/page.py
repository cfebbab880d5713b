metadata = {
    "title": "Metadata example",
    "description": "This is my example of writing static metadata",
}

EXAMPLES = [("1", "One"), ("2", "Two"), ("3", "Three"), ("4", "Four")]


def page() -> str:
    items = "".join(
        f'<li><a href="/metadata-example/{key}">{title}</a></li>' for key, title in EXAMPLES
    )
    return f"<h1>Metadata Examples</h1><ul>{items}</ul>"
