"""ASGI entrypoint for the user accounts API."""

from user_accounts.api.app import create_app
from user_accounts.containers import build_container

app = create_app(build_container())
