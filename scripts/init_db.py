#!/usr/bin/env python3
"""Create all database tables for the configured DATABASE_URL."""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from carapp import create_app
from carapp.extensions import db


def init_database():
    app = create_app()
    with app.app_context():
        db.create_all()
        print(f"Tables created in {app.config['SQLALCHEMY_DATABASE_URI']}")


if __name__ == "__main__":
    init_database()
