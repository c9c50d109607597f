"""Business logic behind the HTTP routes.

Functions here take an explicit :class:`~carapp.security.AuthContext`, work
inside the current Flask-SQLAlchemy session and raise
:mod:`carapp.errors` types on failure.
"""
