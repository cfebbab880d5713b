from trellis import InlineTemplate, Template
from trellis.navigation import NavigationContext


def page(navigation: NavigationContext) -> InlineTemplate:
    if navigation.search_params.get("home") is not None:
        navigation.navigate("/")
    return Template.inline(
        "<div><h1>Profile component</h1>"
        '<p class="path">{{ path }}</p>'
        '<ul class="names">{% for name in names %}<li>{{ name }}</li>{% end %}</ul>'
        '<a href="/profile?home=1">Navigate to home page</a></div>',
        path=navigation.path,
        names=navigation.search_params.get_all("name"),
    )
