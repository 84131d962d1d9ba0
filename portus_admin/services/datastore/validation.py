"""
Field rules for user records.

Submitted data is run through a wtforms form, which also acts as the
allow-list: only the fields declared here are ever read from the submitted
data, so anything else (e.g. ``admin``) is ignored.
"""

from typing import Any, Dict, Mapping, Tuple, Optional

from werkzeug.datastructures import MultiDict
from wtforms import Form, StringField, PasswordField
from wtforms.validators import DataRequired, Length, Regexp, EqualTo, \
    Optional as IfPresent

USERNAME_PATTERN = r'^[a-z0-9]+([._-][a-z0-9]+)*$'
EMAIL_PATTERN = r'^[^@\s]+@[^@\s]+\.[^@\s]+$'

USERNAME_RULES = [
    Length(min=4, max=30, message='must be between 4 and 30 characters'),
    Regexp(USERNAME_PATTERN,
           message='only lowercase letters, digits, and . _ - are allowed')
]
EMAIL_RULES = [
    Length(max=255, message='is too long'),
    Regexp(EMAIL_PATTERN, message='is invalid')
]
PASSWORD_RULES = [
    Length(min=8, max=128, message='must be between 8 and 128 characters')
]
CONFIRMATION_RULES = [
    EqualTo('password', message="doesn't match password")
]

BLANK = "can't be blank"

FieldError = Tuple[str, str]


def _strip(value: Optional[str]) -> Optional[str]:
    return value.strip() if isinstance(value, str) else value


def _lower(value: Optional[str]) -> Optional[str]:
    return value.lower() if isinstance(value, str) else value


class NewUserForm(Form):
    """Data required to create a user."""

    username = StringField('Username', filters=[_strip],
                           validators=[DataRequired(BLANK)] + USERNAME_RULES)
    email = StringField('Email', filters=[_strip, _lower],
                        validators=[DataRequired(BLANK)] + EMAIL_RULES)
    password = PasswordField('Password',
                             validators=[DataRequired(BLANK)]
                             + PASSWORD_RULES)
    password_confirmation = PasswordField(
        'Password confirmation',
        validators=[DataRequired(BLANK)] + CONFIRMATION_RULES
    )


class UserChangesForm(Form):
    """Data that may be changed on an existing user; every field optional."""

    username = StringField('Username', filters=[_strip],
                           validators=[IfPresent()] + USERNAME_RULES)
    email = StringField('Email', filters=[_strip, _lower],
                        validators=[IfPresent()] + EMAIL_RULES)
    password = PasswordField('Password',
                             validators=[IfPresent()] + PASSWORD_RULES)
    password_confirmation = PasswordField(
        'Password confirmation',
        validators=[IfPresent()] + CONFIRMATION_RULES
    )


PERMITTED_FIELDS = ('username', 'email', 'password', 'password_confirmation')


def _first_error(form: Form) -> FieldError:
    # Report fields in declaration order, so the outcome is stable.
    for field in form:
        if field.errors:
            return field.name, str(field.errors[0])
    return 'base', 'is invalid'


def _as_formdata(fields: Mapping[str, Any]) -> MultiDict:
    return MultiDict([(key, '' if value is None else str(value))
                      for key, value in fields.items()
                      if key in PERMITTED_FIELDS])


def check_new(fields: Mapping[str, Any]) \
        -> Tuple[Dict[str, str], Optional[FieldError]]:
    """
    Validate data for a new user.

    Parameters
    ----------
    fields : mapping
        Submitted data. Keys outside :data:`PERMITTED_FIELDS` are ignored.

    Returns
    -------
    dict
        Cleaned ``username``, ``email`` and ``password``.
    tuple or None
        ``(field, reason)`` for the first failing field, if any.

    """
    form = NewUserForm(_as_formdata(fields))
    if not form.validate():
        return {}, _first_error(form)
    return {'username': form.username.data, 'email': form.email.data,
            'password': form.password.data}, None


def check_changes(fields: Mapping[str, Any]) \
        -> Tuple[Dict[str, str], Optional[FieldError]]:
    """
    Validate a partial update. Only fields present in ``fields`` are returned.

    A password change needs a matching ``password_confirmation`` if one is
    submitted.
    """
    formdata = _as_formdata(fields)
    form = UserChangesForm(formdata)
    if not form.validate():
        return {}, _first_error(form)
    changes = {}
    for name in ('username', 'email', 'password'):
        value = getattr(form, name).data
        if name in formdata and value:
            changes[name] = value
    return changes, None
