from cineflix.application import create_app
from cineflix.core.config import get_settings

app = create_app(get_settings())
