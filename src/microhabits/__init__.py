"""MicroHabits application factory."""

from __future__ import annotations

from importlib import import_module
from typing import Iterable

from flask import Flask, jsonify

from . import cli as _cli
from .config import BaseConfig, DevConfig, TestConfig
from .errors import AuthError, HabitNotFoundError, InvalidInputError, RateLimitedError, StoreError
from .logging_config import get_logger, setup_logging

_CONFIG_MAP = {
    "development": DevConfig,
    "testing": TestConfig,
    "default": BaseConfig,
}

logger = get_logger("app")


def _resolve_config(name: str | None) -> type[BaseConfig]:
    """Return the config class for the provided environment name."""

    if not name:
        return BaseConfig
    return _CONFIG_MAP.get(name.lower(), BaseConfig)


def _blueprint_paths() -> Iterable[str]:
    yield "microhabits.blueprints.auth"
    yield "microhabits.blueprints.habits"


def create_app(config_name: str | None = None, *, config: BaseConfig | None = None) -> Flask:
    """Create and configure the Flask application instance."""

    app = Flask(__name__, instance_relative_config=True)
    config_obj = config or _resolve_config(config_name)()
    app.config.from_object(config_obj)
    app.config["MICROHABITS_CONFIG"] = config_obj

    setup_logging(config_obj)
    _register_blueprints(app)
    _register_error_handlers(app)

    # Imported lazily so importing the package does not build an engine.
    from .extensions import init_db

    init_db(app)
    _cli.init_app(app)
    return app


def _register_blueprints(app: Flask) -> None:
    """Import and register all blueprints declared in `_blueprint_paths`."""

    for dotted_path in _blueprint_paths():
        module = import_module(dotted_path)
        app.register_blueprint(getattr(module, "bp"))


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(InvalidInputError)
    def _invalid_input(exc: InvalidInputError):
        return jsonify({"error": str(exc), "fields": exc.fields}), 400

    @app.errorhandler(RateLimitedError)
    def _rate_limited(exc: RateLimitedError):
        response = jsonify({"error": str(exc), "wait_seconds": exc.wait_seconds})
        response.headers["Retry-After"] = str(exc.wait_seconds)
        return response, 429

    @app.errorhandler(AuthError)
    def _auth_error(exc: AuthError):
        return jsonify({"error": str(exc)}), exc.status

    @app.errorhandler(HabitNotFoundError)
    def _not_found(exc: HabitNotFoundError):
        return jsonify({"error": str(exc)}), 404

    @app.errorhandler(StoreError)
    def _store_error(exc: StoreError):
        logger.error("Store failure surfaced to client", extra={"error": str(exc)})
        return jsonify({"error": str(exc) or "Service unavailable"}), 503


__all__ = ["BaseConfig", "DevConfig", "TestConfig", "create_app"]
