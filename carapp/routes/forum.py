"""Forum posts, comments and reactions."""
from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from ..errors import Forbidden, NotFound, ValidationError
from ..extensions import db
from ..models import Comment, ForumCategory, Post, utc_now
from ..security import AuthContext, auth_optional, auth_required
from ..services import reactions
from .common import json_payload, optional_int, optional_text, query_int

bp = Blueprint("forum", __name__)

MAX_TITLE_LENGTH = 120
MAX_CONTENT_LENGTH = 5000
MAX_COMMENT_LENGTH = 2000
MAX_PAGE_SIZE = 50


def _get_post(post_id: int) -> Post:
    post = db.session.get(Post, post_id)
    if post is None:
        raise NotFound("Post not found")
    return post


def _require_author_or_admin(auth: AuthContext, author_id: int) -> None:
    if author_id != auth.user_id and not auth.is_admin:
        raise Forbidden("Only the author or an administrator may do this")


def _post_fields(payload: dict[str, object]) -> dict[str, object]:
    title = optional_text(payload, "title")
    content = optional_text(payload, "content")
    if not content:
        raise ValidationError("content is required")
    if title and len(title) > MAX_TITLE_LENGTH:
        raise ValidationError(f"title must be at most {MAX_TITLE_LENGTH} characters")
    if len(content) > MAX_CONTENT_LENGTH:
        raise ValidationError(f"content must be at most {MAX_CONTENT_LENGTH} characters")

    raw_category = optional_text(payload, "category")
    if raw_category is None:
        category = ForumCategory.GENERAL
    else:
        try:
            category = ForumCategory[raw_category.upper()]
        except KeyError as exc:
            raise ValidationError("unknown category") from exc

    rating = optional_int(payload, "rating")
    if rating is not None:
        rating = max(1, min(5, rating))

    return {"title": title, "content": content, "category": category, "rating": rating}


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------


@bp.get("/forum/posts")
def list_posts() -> tuple[dict[str, object], int]:
    """Newest posts first, paginated.
    ---
    tags:
      - Forum
    parameters:
      - name: page
        in: query
        type: integer
        default: 1
      - name: limit
        in: query
        type: integer
        maximum: 50
    responses:
      200:
        description: Posts with pagination metadata
    """
    page = max(1, query_int("page") or 1)
    limit = min(MAX_PAGE_SIZE, max(1, query_int("limit") or current_app.config["FORUM_PAGE_SIZE"]))

    query = Post.query.order_by(Post.created_at.desc(), Post.post_id.desc())
    total = query.count()
    # Any page past the end is empty.
    offset = min((page - 1) * limit, total)
    posts = query.limit(limit).offset(offset).all()

    return jsonify({
        "posts": [post.to_dict() for post in posts],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": (total + limit - 1) // limit,
        },
    }), 200


@bp.get("/forum/posts/<int:post_id>")
def get_post(post_id: int) -> tuple[dict[str, object], int]:
    return jsonify({"post": _get_post(post_id).to_dict()}), 200


@bp.post("/forum/posts")
@auth_required
def create_post(auth: AuthContext) -> tuple[dict[str, object], int]:
    """Publish a forum post.
    ---
    tags:
      - Forum
    responses:
      201:
        description: Post created
      400:
        description: Invalid payload
      401:
        description: Not authenticated
    """
    post = Post(author_id=auth.user_id, **_post_fields(json_payload()))
    db.session.add(post)
    db.session.commit()
    return jsonify({"post": post.to_dict()}), 201


@bp.put("/forum/posts/<int:post_id>")
@auth_required
def update_post(post_id: int, auth: AuthContext) -> tuple[dict[str, object], int]:
    post = _get_post(post_id)
    _require_author_or_admin(auth, post.author_id)
    for field, value in _post_fields(json_payload()).items():
        setattr(post, field, value)
    post.updated_at = utc_now()
    db.session.commit()
    return jsonify({"post": post.to_dict()}), 200


@bp.delete("/forum/posts/<int:post_id>")
@auth_required
def delete_post(post_id: int, auth: AuthContext):
    """Delete a post with its comments and reactions (author or ADMIN)."""
    post = _get_post(post_id)
    _require_author_or_admin(auth, post.author_id)
    db.session.delete(post)
    db.session.commit()
    return "", 204


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


@bp.get("/forum/posts/<int:post_id>/comments")
def list_comments(post_id: int) -> tuple[dict[str, object], int]:
    _get_post(post_id)
    comments = (
        Comment.query.filter_by(post_id=post_id)
        .order_by(Comment.created_at.desc(), Comment.comment_id.desc())
        .all()
    )
    return jsonify({"comments": [comment.to_dict() for comment in comments]}), 200


@bp.post("/forum/posts/<int:post_id>/comments")
@auth_required
def add_comment(post_id: int, auth: AuthContext) -> tuple[dict[str, object], int]:
    _get_post(post_id)
    content = optional_text(json_payload(), "content")
    if not content:
        raise ValidationError("content is required")
    if len(content) > MAX_COMMENT_LENGTH:
        raise ValidationError(f"content must be at most {MAX_COMMENT_LENGTH} characters")

    comment = Comment(post_id=post_id, author_id=auth.user_id, content=content)
    db.session.add(comment)
    db.session.commit()
    return jsonify({"comment": comment.to_dict()}), 201


def _delete_comment(comment_id: int, auth: AuthContext, post_id: int | None = None):
    comment = db.session.get(Comment, comment_id)
    if comment is None:
        raise NotFound("Comment not found")
    if post_id is not None and comment.post_id != post_id:
        raise ValidationError("comment does not belong to this post")
    _require_author_or_admin(auth, comment.author_id)
    db.session.delete(comment)
    db.session.commit()
    return "", 204


@bp.delete("/forum/posts/<int:post_id>/comments/<int:comment_id>")
@auth_required
def delete_comment_nested(post_id: int, comment_id: int, auth: AuthContext):
    return _delete_comment(comment_id, auth, post_id=post_id)


@bp.delete("/forum/comments/<int:comment_id>")
@auth_required
def delete_comment(comment_id: int, auth: AuthContext):
    return _delete_comment(comment_id, auth)


# ---------------------------------------------------------------------------
# Reactions
# ---------------------------------------------------------------------------


@bp.get("/forum/posts/<int:post_id>/reactions")
@auth_optional
def get_reactions(post_id: int, auth: AuthContext | None) -> tuple[dict[str, object], int]:
    """Reaction counts for a post and, when logged in, the caller's own.
    ---
    tags:
      - Forum
    responses:
      200:
        description: counts per reaction type and my_reaction
      404:
        description: Post not found
    """
    return jsonify(reactions.reaction_summary(post_id, auth)), 200


@bp.put("/forum/posts/<int:post_id>/react")
@auth_required
def react_to_post(post_id: int, auth: AuthContext) -> tuple[dict[str, object], int]:
    """Set or replace the caller's reaction on a post.
    ---
    tags:
      - Forum
    parameters:
      - name: type
        in: query
        type: string
        enum: [LIKE, LOVE, LAUGH, WOW, SAD, ANGRY]
    responses:
      200:
        description: Refreshed reaction summary
      400:
        description: Unknown reaction type
      401:
        description: Not authenticated
      404:
        description: Post not found
    """
    reaction_type = request.args.get("type") or json_payload().get("type")
    return jsonify(reactions.react(auth, post_id, reaction_type)), 200


@bp.delete("/forum/posts/<int:post_id>/react")
@auth_required
def remove_reaction(post_id: int, auth: AuthContext) -> tuple[dict[str, object], int]:
    return jsonify(reactions.remove_reaction(auth, post_id)), 200
