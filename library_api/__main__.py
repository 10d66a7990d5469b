"""
Entrypoint for running the API in development:  python -m library_api
In production run create_app() behind a WSGI server instead.
"""
import logging
import os

from . import create_app
from .supervisor import ProcessSupervisor

# Respect APP_ENV for configuration selection (handled in get_config())
app = create_app()

if __name__ == "__main__":
    supervisor = ProcessSupervisor(
        exit_on_error=app.config["EXIT_ON_UNHANDLED"],
        logger=logging.getLogger("library_api.supervisor"),
    ).install()
    host = os.getenv("FLASK_RUN_HOST", "0.0.0.0")
    port = int(os.getenv("PORT", os.getenv("FLASK_RUN_PORT", "3000")))
    try:
        # The reloader forks and would bypass the installed hooks
        app.run(host=host, port=port, debug=app.debug, use_reloader=False)
    finally:
        supervisor.uninstall()
