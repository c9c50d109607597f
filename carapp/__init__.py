"""Car-service booking and community backend."""
from __future__ import annotations

import logging
from collections.abc import Mapping

from flask import Flask

from .config import Config
from .errors import register_error_handlers
from .extensions import cors, db
from .routes import register_routes
from .security import TokenService


def create_app(config_object=None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)

    app.config.from_object(Config)
    if isinstance(config_object, Mapping):
        app.config.from_mapping(config_object)
    elif config_object is not None:
        app.config.from_object(config_object)
    app.config.from_envvar("APP_SETTINGS", silent=True)

    app.logger.setLevel(getattr(logging, str(app.config["LOG_LEVEL"]).upper(), logging.INFO))

    db.init_app(app)

    # The frontend sends the bearer token in the Authorization header.
    cors.init_app(
        app,
        origins=app.config["CORS_ORIGINS"],
        supports_credentials=True,
        allow_headers=["Content-Type", "Authorization"],
        methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    )

    # Fails fast on a missing or short SECRET_KEY.
    app.extensions["token_service"] = TokenService(
        app.config["SECRET_KEY"], app.config["TOKEN_TTL_SECONDS"]
    )

    register_error_handlers(app)
    register_routes(app)

    return app
