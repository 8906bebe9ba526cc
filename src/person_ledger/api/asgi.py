"""ASGI entrypoint for the person ledger API."""

from person_ledger.api.app import create_app
from person_ledger.containers import build_container

app = create_app(build_container())
