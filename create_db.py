"""Create all tables in the user database, and an initial admin."""

import os

from portus_admin.factory import create_web_app
from portus_admin.services import datastore

app = create_web_app()
with app.app_context():
    datastore.create_all()
    username = os.environ.get('ADMIN_USERNAME')
    if username and not datastore.username_exists(username):
        password = os.environ['ADMIN_PASSWORD']
        datastore.create_user({
            'username': username,
            'email': os.environ['ADMIN_EMAIL'],
            'password': password,
            'password_confirmation': password
        }, admin=True)
