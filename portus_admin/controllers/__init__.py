"""Request controllers for the admin user-management application."""

from . import authentication, users
