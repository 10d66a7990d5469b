import logging

from flasgger import Swagger
from flask import Flask, request
from flask_cors import CORS

from .config import get_config
from .errors import register_error_handlers
from models import storage  # DBStorage singleton (scoped_session)

logger = logging.getLogger(__name__)

# Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "Digital Library API",
        "version": "1.0.0",
        "description": "Catalog of categories and books. Writes require an administrator signed in with Google.",
    },
    "basePath": "/",
    "schemes": ["http", "https"],
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,   # include all endpoints
            "model_filter": lambda tag: True,   # include all models
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str):
    logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger().setLevel(level.upper())


def create_app(config_name: str | None = None, **overrides) -> Flask:
    """Application factory: one isolated app per call (tests build their own)."""
    app = Flask(__name__)
    app.config.from_object(get_config(config_name))
    app.config.update(overrides)

    configure_logging(app.config["LOG_LEVEL"])

    storage.configure(app.config["DATABASE_URL"], echo=app.config["SQL_ECHO"])
    storage.reload()

    origins = app.config["CORS_ORIGINS"]
    if origins != "*":
        origins = [o.strip() for o in origins.split(",") if o.strip()]
    CORS(app, resources={r"/*": {"origins": origins}}, supports_credentials=origins != "*")

    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    register_error_handlers(app)

    from .auth import bp as auth_bp, init_oauth
    from .books import bp as books_bp
    from .categories import bp as categories_bp
    from .commands import register_commands
    from .health import bp as health_bp

    init_oauth(app)
    app.register_blueprint(health_bp)
    app.register_blueprint(categories_bp, url_prefix="/api")
    app.register_blueprint(books_bp, url_prefix="/api")
    app.register_blueprint(auth_bp)
    register_commands(app)

    if app.debug:
        @app.before_request
        def log_request():
            logger.debug("%s %s", request.method, request.path)

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        storage.close()

    @app.route("/")
    def root():
        return {
            "success": True,
            "message": "Welcome to the Digital Library API",
            "version": app.config["VERSION"],
            "docs": "/apidocs/",
            "endpoints": {
                "health": "/health",
                "categories": "/api/categories",
                "books": "/api/books",
                "auth": "/auth/status",
            },
        }, 200

    logger.info("Library API created (%s)", app.config["APP_ENV"])
    return app
