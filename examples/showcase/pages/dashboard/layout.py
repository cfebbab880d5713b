"""This layout only applies to /dashboard and the pages below it."""

config = {
    "heading": "dashboard",
    "links": [("/dashboard", "Dashboard Home"), ("/dashboard/analytics", "Dashboard Analytics")],
}


def layout(children: str, heading: str, links) -> str:
    items = "".join(f'<li><a href="{href}">{label}</a></li>' for href, label in links)
    return (
        '<div class="flex"><aside class="sidebar">'
        f"<h2>{heading}</h2><nav><ul>{items}</ul></nav></aside>"
        f'<div class="dashboard-content">{children}</div></div>'
    )
