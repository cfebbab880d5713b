def loading() -> str:
    return '<div class="skeleton">Loading...</div>'
