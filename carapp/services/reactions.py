"""Forum post reactions: one live reaction per user and post."""
from __future__ import annotations

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..errors import NotFound, ValidationError
from ..extensions import db
from ..models import Post, PostReaction, ReactionType, utc_now
from ..security import AuthContext


def parse_reaction_type(value: object) -> ReactionType:
    if isinstance(value, ReactionType):
        return value
    if isinstance(value, str):
        try:
            return ReactionType[value.strip().upper()]
        except KeyError:
            pass
    allowed = ", ".join(kind.value for kind in ReactionType)
    raise ValidationError(f"type must be one of: {allowed}")


def _require_post(post_id: int) -> None:
    exists = db.session.query(Post.post_id).filter(Post.post_id == post_id).first()
    if exists is None:
        raise NotFound("Post not found")


def _find_reaction(post_id: int, user_id: int) -> PostReaction | None:
    return PostReaction.query.filter_by(post_id=post_id, user_id=user_id).first()


def reaction_summary(post_id: int, auth: AuthContext | None = None) -> dict[str, object]:
    """Counts per reaction kind, plus the caller's own reaction if any."""
    _require_post(post_id)

    counts = {kind.value: 0 for kind in ReactionType}
    rows = (
        db.session.query(PostReaction.type, func.count(PostReaction.reaction_id))
        .filter(PostReaction.post_id == post_id)
        .group_by(PostReaction.type)
        .all()
    )
    for kind, count in rows:
        counts[kind.value] = int(count)

    mine = None
    if auth is not None:
        reaction = _find_reaction(post_id, auth.user_id)
        if reaction is not None:
            mine = reaction.type.value

    return {"post_id": post_id, "counts": counts, "my_reaction": mine}


def react(auth: AuthContext, post_id: int, reaction_type: object) -> dict[str, object]:
    kind = parse_reaction_type(reaction_type)
    _require_post(post_id)

    existing = _find_reaction(post_id, auth.user_id)
    if existing is not None:
        existing.type = kind
        existing.updated_at = utc_now()
        db.session.commit()
        return reaction_summary(post_id, auth)

    now = utc_now()
    db.session.add(
        PostReaction(post_id=post_id, user_id=auth.user_id, type=kind, created_at=now, updated_at=now)
    )
    try:
        db.session.commit()
    except IntegrityError:
        # Another request from the same user won the insert; overwrite its type.
        db.session.rollback()
        current_app.logger.warning(
            "Reaction insert raced for user %s post %s; updating instead", auth.user_id, post_id
        )
        winner = _find_reaction(post_id, auth.user_id)
        if winner is None:
            raise
        winner.type = kind
        winner.updated_at = utc_now()
        db.session.commit()

    return reaction_summary(post_id, auth)


def remove_reaction(auth: AuthContext, post_id: int) -> dict[str, object]:
    """Delete the caller's reaction; a missing reaction is not an error."""
    _require_post(post_id)
    existing = _find_reaction(post_id, auth.user_id)
    if existing is not None:
        db.session.delete(existing)
        db.session.commit()
    return reaction_summary(post_id, auth)
