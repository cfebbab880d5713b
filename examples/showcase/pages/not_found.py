def not_found() -> str:
    return (
        "<div><h1>The page you are looking for was not found!</h1>"
        '<a href="/" class="button">go to Homepage</a></div>'
    )
