def page() -> str:
    return "<h1>Dashboard Home</h1>"
