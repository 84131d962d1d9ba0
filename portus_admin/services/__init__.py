"""Integrations with persistence and external collaborators."""

from . import datastore, activity, credentials, directory
