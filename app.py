"""Application factory."""

import os
import uuid
from http import HTTPStatus

import click
from flask import Flask, g, request
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from werkzeug.exceptions import HTTPException

from config import Config
from models import db
from routes.auth import auth_bp
from routes.users import users_bp
from services.errors import (
    Conflict,
    Forbidden,
    InvalidCredentials,
    InvalidToken,
    NotFound,
    ServiceError,
    UnexpectedError,
    ValidationFailure,
)
from utils.responses import error, success

migrate = Migrate()
jwt = JWTManager()

# Error kind -> HTTP status, consulted only by the ServiceError handler below.
ERROR_STATUS = {
    ValidationFailure: HTTPStatus.BAD_REQUEST,
    Conflict: HTTPStatus.CONFLICT,
    NotFound: HTTPStatus.NOT_FOUND,
    InvalidCredentials: HTTPStatus.UNAUTHORIZED,
    InvalidToken: HTTPStatus.UNAUTHORIZED,
    Forbidden: HTTPStatus.FORBIDDEN,
    UnexpectedError: HTTPStatus.INTERNAL_SERVER_ERROR,
}


def status_for(exc: ServiceError) -> HTTPStatus:
    for kind in type(exc).__mro__:
        if kind in ERROR_STATUS:
            return ERROR_STATUS[kind]
    return HTTPStatus.INTERNAL_SERVER_ERROR


def create_app(config_class: type[Config] = Config) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Core subsystems
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)

    # CORS
    CORS(
        app,
        resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}},
        supports_credentials=True,
    )

    # Blueprints
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(users_bp, url_prefix="/users")

    # Health
    @app.route("/health", methods=["GET"])
    def health_check():
        return success("ok")

    _register_error_handlers(app)
    _register_commands(app)

    return app


def _register_error_handlers(app: Flask) -> None:
    """Register envelope-shaped error handlers with request IDs."""

    @app.before_request
    def _assign_request_id():  # pragma: no cover
        g.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

    @app.after_request
    def _add_request_id_header(response):  # pragma: no cover
        request_id = g.get("request_id")
        if request_id:
            response.headers.setdefault("X-Request-ID", request_id)
        return response

    @app.errorhandler(ServiceError)
    def _handle_service_error(exc: ServiceError):
        return error(exc.message, status_for(exc), exc.errors)

    @app.errorhandler(HTTPException)
    def _handle_http_exception(exc: HTTPException):
        return error(exc.description or exc.name, exc.code or 500)

    @app.errorhandler(Exception)
    def _handle_unexpected(exc: Exception):  # pragma: no cover
        app.logger.exception("Unhandled application error", exc_info=exc)
        return error(UnexpectedError.default_message, HTTPStatus.INTERNAL_SERVER_ERROR)

    @jwt.unauthorized_loader
    def _missing_token(reason: str):
        return error(f"Unauthorized: {reason}", HTTPStatus.UNAUTHORIZED)

    @jwt.invalid_token_loader
    def _invalid_token(reason: str):
        return error(f"Unauthorized: {reason}", HTTPStatus.UNAUTHORIZED)

    @jwt.expired_token_loader
    def _expired_token(jwt_header, jwt_payload):
        return error("Unauthorized: Token has expired", HTTPStatus.UNAUTHORIZED)


def _register_commands(app: Flask) -> None:
    @app.cli.command("purge-expired-tokens")
    def purge_expired_tokens_command():
        """Delete expired verification and refresh tokens."""
        from services.auth_service import purge_expired_tokens

        removed = purge_expired_tokens()
        click.echo(
            f"Removed {removed['verification_tokens']} verification tokens "
            f"and {removed['refresh_tokens']} refresh tokens."
        )


if __name__ == "__main__":
    application = create_app()
    application.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))
