"""ASGI entrypoint for the journaling API."""

from verg.api.app import create_app
from verg.containers import build_container

app = create_app(build_container())
