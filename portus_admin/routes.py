"""Provides Flask integration for the admin user-management interface."""

import logging
from datetime import timedelta
from http import HTTPStatus as status
from typing import Any, Dict, Mapping

from flask import Blueprint, Response, current_app, flash, jsonify, \
    make_response, redirect, request

from .controllers import authentication, users

logger = logging.getLogger(__name__)

admin = Blueprint('admin', __name__, url_prefix='/admin/users')
ui = Blueprint('ui', __name__, url_prefix='/users')


def user_params() -> Dict[str, Any]:
    """
    Get submitted user data from the request.

    Accepts a JSON body (``{"user": {...}}`` or a flat object), or form data
    with keys like ``user[email]`` (or plain ``email``).
    """
    if request.is_json:
        body = request.get_json(silent=True) or {}
        if not isinstance(body, dict):
            return {}
        nested = body.get('user')
        return dict(nested) if isinstance(nested, dict) else body
    params: Dict[str, Any] = {}
    for key, value in request.form.items():
        if key.startswith('user[') and key.endswith(']'):
            params[key[5:-1]] = value
        else:
            params.setdefault(key, value)
    return params


def render(data: dict, code: int, headers: dict) -> Response:
    """Render controller output as JSON, or as a redirect."""
    if code in (status.FOUND, status.SEE_OTHER) and 'Location' in headers:
        response = make_response(redirect(headers.pop('Location'), code=code))
        response.headers.extend(headers)
        return response
    response = jsonify(data)
    response.status_code = code
    response.headers.extend(headers)
    return response


def set_cookies(response: Response, data: dict) -> None:
    """
    Update a :class:`.Response` with cookies in controller data.

    Contollers seeking to update cookies must include a 'cookies' key
    in their response data.
    """
    cookies = data.pop('cookies', None)
    if cookies is None:
        return None
    for cookie_key, (cookie_value, expires) in cookies.items():
        cookie_name = current_app.config[f'{cookie_key.upper()}_NAME']
        max_age = timedelta(seconds=expires)
        logger.debug('Set cookie %s, max_age %s', cookie_name, max_age)
        response.set_cookie(cookie_name, cookie_value, max_age=max_age,
                            httponly=True, samesite='Lax')


@admin.route('', methods=['GET'])
def list_users() -> Response:
    """List users, one page at a time."""
    return render(*users.list_users(request.auth, request.args))


@admin.route('/new', methods=['GET'])
def new_user() -> Response:
    """Fields for a new user."""
    return render(*users.new_user(request.auth))


@admin.route('', methods=['POST'])
def create_user() -> Response:
    """Create a new user."""
    return render(*users.create_user(request.auth, user_params()))


@admin.route('/<int:user_id>/edit', methods=['GET'])
def edit_user(user_id: int) -> Response:
    """Get a user for editing."""
    return render(*users.edit_user(request.auth, str(user_id)))


@admin.route('/<int:user_id>', methods=['PUT', 'PATCH'])
def update_user(user_id: int) -> Response:
    """Update a user."""
    data, code, headers = users.update_user(request.auth, str(user_id),
                                            user_params())
    for field, reasons in data.get('errors', {}).items():
        for reason in reasons:
            flash(f'{field} {reason}', 'error')
    return render(data, code, headers)


@admin.route('/<int:user_id>/toggle_admin', methods=['PUT', 'PATCH', 'POST'])
def toggle_admin(user_id: int) -> Response:
    """Grant or revoke admin privileges."""
    return render(*users.toggle_admin(request.auth, str(user_id)))


@admin.route('/<int:user_id>', methods=['DELETE'])
def destroy_user(user_id: int) -> Response:
    """Delete a user."""
    return render(*users.destroy_user(request.auth, str(user_id)))


@ui.route('/sign_in', methods=['GET', 'POST'])
def login() -> Response:
    """Exchange a username and password for an auth token."""
    params = request.get_json(silent=True) if request.is_json \
        else request.form
    if not isinstance(params, Mapping):
        params = {}
    data, code, headers = authentication.login(
        request.method, params, request.args.get('next_page')
    )
    cookies = {'cookies': data.pop('cookies', None)}
    response = render(data, code, headers)
    set_cookies(response, cookies)
    return response


@ui.route('/sign_out', methods=['GET', 'DELETE'])
def logout() -> Response:
    """Expire the auth token cookie."""
    data, code, headers = authentication.logout(
        current_app.config.get('LOGIN_URL', '/users/sign_in')
    )
    cookies = {'cookies': data.pop('cookies', None)}
    response = render(data, code, headers)
    set_cookies(response, cookies)
    return response
