"""Web Server Gateway Interface entry-point."""

from portus_admin.factory import create_web_app

__flask_app__ = create_web_app()


def application(environ, start_response):    # type: ignore
    """WSGI application."""
    for key, value in environ.items():
        # ``SERVER_NAME`` from the WSGI server is often just a container ID;
        # it is only ever taken from the configuration.
        if key != 'SERVER_NAME' and key in __flask_app__.config:
            __flask_app__.config[key] = str(value)
    return __flask_app__(environ, start_response)
