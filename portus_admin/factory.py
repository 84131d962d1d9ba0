"""Application factory for the admin user-management app."""

from typing import Any, Mapping, Optional

from flask import Flask, Response, jsonify
from werkzeug.exceptions import HTTPException, Forbidden, Unauthorized, \
    BadRequest, MethodNotAllowed, InternalServerError, NotFound

from . import app_logging
from .auth import Auth
from .routes import admin, ui
from .services import datastore


def create_web_app(config: Optional[Mapping[str, Any]] = None) -> Flask:
    """
    Initialize and configure the admin user-management application.

    Parameters
    ----------
    config : mapping or None
        Overrides for values in :mod:`.config`. Applied before the
        extensions are initialized, so e.g. the database URI can be changed
        here.

    """
    app = Flask('portus_admin')
    app.config.from_pyfile('config.py')
    if config:
        app.config.update(config)

    app_logging.setup_logger(app.config['LOGLEVEL'], app.config['LOGFILE'])

    datastore.init_app(app)
    Auth(app)   # Resolves ``request.auth`` for each request.
    app.register_blueprint(admin)
    app.register_blueprint(ui)

    if app.config['CREATE_DB']:
        with app.app_context():
            datastore.create_all()

    register_error_handlers(app)
    return app


def register_error_handlers(app: Flask) -> None:
    """Register error handlers for the Flask app."""
    app.errorhandler(Forbidden)(jsonify_exception)
    app.errorhandler(Unauthorized)(jsonify_exception)
    app.errorhandler(BadRequest)(jsonify_exception)
    app.errorhandler(InternalServerError)(jsonify_exception)
    app.errorhandler(NotFound)(jsonify_exception)
    app.errorhandler(MethodNotAllowed)(jsonify_exception)


def jsonify_exception(error: HTTPException) -> Response:
    """Render exceptions as JSON."""
    exc_resp = error.get_response()
    response: Response = jsonify(reason=error.description)
    response.status_code = exc_resp.status_code
    return response
