"""
Entrypoint for running the API in development: python -m api
In production, serve api.__main__:app through a WSGI server (gunicorn/uwsgi).
"""
import os
import sys

from utils.exceptions import ConfigurationError
from . import create_app

try:
    # Respect APP_ENV for configuration selection (handled in get_config())
    app = create_app()
except ConfigurationError as exc:
    sys.exit(f"Refusing to start: {exc}")

if __name__ == "__main__":
    host = os.getenv("FLASK_RUN_HOST", "0.0.0.0")
    port = int(os.getenv("PORT", os.getenv("FLASK_RUN_PORT", "8000")))
    debug = os.getenv("FLASK_DEBUG", str(app.config.get("DEBUG", False))).lower() in ("1", "true", "yes")
    app.run(host=host, port=port, debug=debug)
