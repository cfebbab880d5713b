"""Root layout: document shell around every page."""

import html

metadata = {
    "title": "Trellis showcase",
    "description": "Routing, layouts, loading and error states",
}


def layout(children: str, metadata) -> str:
    title = html.escape(metadata.title or "") if metadata else ""
    description = html.escape(metadata.description or "") if metadata else ""
    return (
        "<!doctype html><html><head>"
        f"<title>{title}</title>"
        f'<meta name="description" content="{description}">'
        f'</head><body><div id="root">{children}</div></body></html>'
    )
