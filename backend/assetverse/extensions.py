# Overview: Flask extension instances for database and migrations.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

db = SQLAlchemy()
migrate = Migrate()


def get_payment_gateway():
    """Payment gateway attached to the running app by create_app()."""
    from flask import current_app
    return current_app.extensions["payment_gateway"]
