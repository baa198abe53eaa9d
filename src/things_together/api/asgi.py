"""ASGI entrypoint for the shared things app."""

from things_together.api.app import create_app
from things_together.containers import build_container

app = create_app(build_container())
