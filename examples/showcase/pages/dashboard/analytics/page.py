def page() -> str:
    return "<h1>Dashboard Analytics</h1>"
