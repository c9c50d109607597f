"""Database models for the car-service backend."""
from __future__ import annotations

import enum
from datetime import datetime, timezone

from .extensions import db


def utc_now() -> datetime:
    """Return the current time as a naive UTC datetime (the stored form)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


class Role(enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"

    @property
    def is_admin(self) -> bool:
        return self is Role.ADMIN


class AppointmentStatus(enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class ReactionType(enum.Enum):
    LIKE = "LIKE"
    LOVE = "LOVE"
    LAUGH = "LAUGH"
    WOW = "WOW"
    SAD = "SAD"
    ANGRY = "ANGRY"


class ForumCategory(enum.Enum):
    GENERAL = "GENERAL"
    SERVICE = "SERVICE"
    QUESTION = "QUESTION"
    TIP = "TIP"


class User(db.Model):
    __tablename__ = "users"

    user_id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    role = db.Column(
        db.Enum(Role, name="user_role", native_enum=False, validate_strings=True),
        nullable=False,
        default=Role.USER,
    )
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(db.DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    auth_account = db.relationship(
        "AuthAccount", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    cars = db.relationship("Car", back_populates="owner", cascade="all, delete-orphan")
    appointments = db.relationship(
        "Appointment", back_populates="requester", cascade="all, delete-orphan"
    )
    votes = db.relationship("ServiceVote", back_populates="voter", cascade="all, delete-orphan")
    posts = db.relationship("Post", back_populates="author", cascade="all, delete-orphan")
    comments = db.relationship("Comment", back_populates="author", cascade="all, delete-orphan")
    reactions = db.relationship(
        "PostReaction", back_populates="user", cascade="all, delete-orphan"
    )

    def to_dict_basic(self) -> dict[str, object]:
        return {
            "id": self.user_id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
        }


class AuthAccount(db.Model):
    """Password credentials, kept apart from the serializable user row."""

    __tablename__ = "auth_accounts"

    user_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), primary_key=True)
    password_hash = db.Column(db.String(255), nullable=False)
    last_login_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(db.DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    user = db.relationship("User", back_populates="auth_account")


class Car(db.Model):
    __tablename__ = "cars"

    car_id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False)
    brand = db.Column(db.String(100), nullable=False)
    model = db.Column(db.String(100), nullable=False)
    year = db.Column(db.Integer, nullable=False)

    owner = db.relationship("User", back_populates="cars")
    appointments = db.relationship(
        "Appointment", back_populates="car", cascade="all, delete-orphan"
    )

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.car_id,
            "brand": self.brand,
            "model": self.model,
            "year": self.year,
            "owner_id": self.owner_id,
            "owner_name": self.owner.name if self.owner else None,
        }


class ServiceCenter(db.Model):
    __tablename__ = "service_centers"

    center_id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    city = db.Column(db.String(100), nullable=False)
    address = db.Column(db.String(255), nullable=False)
    # Optional map provider place identifier.
    place_id = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.center_id,
            "name": self.name,
            "city": self.city,
            "address": self.address,
            "place_id": self.place_id,
        }


class Appointment(db.Model):
    """A booked service slot for one car at one center."""

    __tablename__ = "appointments"
    __table_args__ = (
        db.UniqueConstraint("car_id", "scheduled_at", name="uq_appointment_car_slot"),
    )

    appointment_id = db.Column(db.Integer, primary_key=True)
    car_id = db.Column(db.Integer, db.ForeignKey("cars.car_id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False)
    center_id = db.Column(
        db.Integer, db.ForeignKey("service_centers.center_id"), nullable=False
    )
    scheduled_at = db.Column(db.DateTime, nullable=False)
    description = db.Column(db.Text, nullable=False)
    status = db.Column(
        db.Enum(
            AppointmentStatus,
            name="appointment_status",
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
        default=AppointmentStatus.PENDING,
    )
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(db.DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    car = db.relationship("Car", back_populates="appointments")
    requester = db.relationship("User", back_populates="appointments")
    center = db.relationship("ServiceCenter")

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.appointment_id,
            "car_id": self.car_id,
            "car": {
                "id": self.car.car_id,
                "brand": self.car.brand,
                "model": self.car.model,
                "year": self.car.year,
            } if self.car else None,
            "user_id": self.user_id,
            "center_id": self.center_id,
            "center": self.center.to_dict() if self.center else None,
            "scheduled_at": _iso(self.scheduled_at),
            "description": self.description,
            "status": self.status.value,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class ServiceVote(db.Model):
    """One user's 1-5 rating of a center for a calendar month."""

    __tablename__ = "service_votes"
    __table_args__ = (
        db.UniqueConstraint(
            "user_id", "center_id", "vote_year", "vote_month", name="uq_vote_user_center_period"
        ),
    )

    vote_id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False)
    center_id = db.Column(
        db.Integer, db.ForeignKey("service_centers.center_id"), nullable=False
    )
    rating = db.Column(db.Integer, nullable=False)
    vote_year = db.Column(db.Integer, nullable=False)
    vote_month = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(db.DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    voter = db.relationship("User", back_populates="votes")
    center = db.relationship("ServiceCenter")

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.vote_id,
            "user_id": self.user_id,
            "center_id": self.center_id,
            "rating": self.rating,
            "year": self.vote_year,
            "month": self.vote_month,
        }


class Post(db.Model):
    __tablename__ = "forum_posts"

    post_id = db.Column(db.Integer, primary_key=True)
    author_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False)
    title = db.Column(db.String(120))
    content = db.Column(db.String(5000), nullable=False)
    category = db.Column(
        db.Enum(ForumCategory, name="forum_category", native_enum=False, validate_strings=True),
        nullable=False,
        default=ForumCategory.GENERAL,
    )
    # Only meaningful for SERVICE posts.
    rating = db.Column(db.Integer)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(db.DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    author = db.relationship("User", back_populates="posts")
    comments = db.relationship("Comment", back_populates="post", cascade="all, delete-orphan")
    reactions = db.relationship(
        "PostReaction", back_populates="post", cascade="all, delete-orphan"
    )

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.post_id,
            "author_id": self.author_id,
            "author_name": self.author.name if self.author else None,
            "title": self.title,
            "content": self.content,
            "category": self.category.value,
            "rating": self.rating,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class Comment(db.Model):
    __tablename__ = "forum_comments"

    comment_id = db.Column(db.Integer, primary_key=True)
    post_id = db.Column(db.Integer, db.ForeignKey("forum_posts.post_id"), nullable=False)
    author_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False)
    content = db.Column(db.String(2000), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    post = db.relationship("Post", back_populates="comments")
    author = db.relationship("User", back_populates="comments")

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.comment_id,
            "post_id": self.post_id,
            "author_id": self.author_id,
            "author_name": self.author.name if self.author else None,
            "content": self.content,
            "created_at": _iso(self.created_at),
        }


class PostReaction(db.Model):
    """A user's single live reaction on a forum post."""

    __tablename__ = "post_reactions"
    __table_args__ = (
        db.UniqueConstraint("post_id", "user_id", name="uq_reaction_post_user"),
    )

    reaction_id = db.Column(db.Integer, primary_key=True)
    post_id = db.Column(db.Integer, db.ForeignKey("forum_posts.post_id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False)
    type = db.Column(
        db.Enum(ReactionType, name="reaction_type", native_enum=False, validate_strings=True),
        nullable=False,
    )
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(db.DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    post = db.relationship("Post", back_populates="reactions")
    user = db.relationship("User", back_populates="reactions")
