"""ASGI entry point: ``hypercorn galleria.asgi:app``."""

from galleria.app_factory import create_app
from galleria.lib import observability

app = observability.instrument_app(create_app())
