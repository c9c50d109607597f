#!/usr/bin/env python3
"""Seed an empty database with demo users, cars, centers and appointments."""
import sys
from datetime import timedelta
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from werkzeug.security import generate_password_hash

from carapp import create_app
from carapp.extensions import db
from carapp.models import (Appointment, AppointmentStatus, AuthAccount, Car, Role,
                           ServiceCenter, User, utc_now)

DEMO_PASSWORD = "titok123"


def seed_data():
    app = create_app()

    with app.app_context():
        db.create_all()

        if User.query.count() > 0:
            print("Users already present, skipping seed.")
            return

        users = [
            User(name="Anna", email="anna@example.com", role=Role.ADMIN),
            User(name="Bence", email="bence@example.com", role=Role.USER),
            User(name="Csilla", email="csilla@example.com", role=Role.USER),
        ]
        db.session.add_all(users)
        db.session.flush()
        for user in users:
            db.session.add(
                AuthAccount(user_id=user.user_id, password_hash=generate_password_hash(DEMO_PASSWORD))
            )

        anna, bence, csilla = users
        corsa = Car(owner=anna, brand="Opel", model="Corsa D", year=2008)
        eclass = Car(owner=bence, brand="Mercedes", model="E-Class", year=2006)
        golf = Car(owner=csilla, brand="Volkswagen", model="Golf 4", year=2003)
        db.session.add_all([corsa, eclass, golf])

        rapid = ServiceCenter(name="RapidAuto Service", city="Budapest", address="Fehervari ut 12.")
        platinum = ServiceCenter(name="Platinum Garage", city="Gyor", address="Szent Istvan ut 5.")
        bosch = ServiceCenter(name="Muszaki+ Bosch Car Service", city="Debrecen", address="Nagyerdo krt. 8.")
        db.session.add_all([rapid, platinum, bosch])

        today = utc_now().replace(second=0, microsecond=0)
        db.session.add_all([
            Appointment(
                car=corsa,
                requester=anna,
                center=rapid,
                scheduled_at=(today + timedelta(days=7)).replace(hour=10, minute=0),
                description="Oil change and inspection",
                status=AppointmentStatus.PENDING,
            ),
            Appointment(
                car=eclass,
                requester=bence,
                center=platinum,
                scheduled_at=(today + timedelta(days=10)).replace(hour=9, minute=30),
                description="Brake pad replacement",
                status=AppointmentStatus.CONFIRMED,
            ),
        ])

        db.session.commit()
        print(f"Seeded {len(users)} users (password: {DEMO_PASSWORD}), 3 cars, 3 centers, 2 appointments.")


if __name__ == "__main__":
    seed_data()
