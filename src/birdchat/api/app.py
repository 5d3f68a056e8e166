"""ASGI entrypoint (uvicorn birdchat.api.app:app).

Built from environment config with no message handler: webhooks are
accepted and logged, nothing is replied.
"""

from .factory import create_app

app = create_app()
