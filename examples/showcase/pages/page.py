LINKS = [
    ("/about", "About"),
    ("/products", "Products"),
    ("/dashboard", "Dashboard"),
    ("/metadata-example", "Metadata example"),
    ("/loading-example", "Loading example"),
    ("/error-example", "Error example"),
    ("/optional-catch-all-route", "Optional catch-all"),
    ("/profile?name=betty&name=sofia&name=sandra", "Profile"),
]


def page() -> str:
    items = "".join(f'<li><a href="{href}">{label}</a></li>' for href, label in LINKS)
    return f"<h1>Home</h1><ul>{items}</ul>"
