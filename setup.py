"""Install the Portus admin user-management service."""

from setuptools import setup, find_packages

setup(
    name='portus-admin',
    version='0.1.0',
    packages=find_packages(exclude=['*test*']),
    package_data={'portus_admin': ['config.py']},
    install_requires=[
        "flask",
        "flask-sqlalchemy",
        "sqlalchemy",
        "werkzeug",
        "wtforms",
        "pyjwt",
        "pytz",
        "requests",
        "python-json-logger",
    ],
    extras_require={
        "test": [
            "pytest",
            "hypothesis",
        ]
    },
    zip_safe=False
)
