# services/users.py
"""
Credential store: the only code that reads or writes `users` rows.

Uniqueness of username and email is enforced by the table's unique indexes.
`find_conflict` is a courtesy pre-check for friendlier errors; `create` is
what actually decides, mapping an insert-time violation to DuplicateIdentity
with the colliding field looked up again from the table.
"""
from __future__ import annotations

from typing import Optional

from flask import current_app
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from db import db
from errors import DuplicateIdentity
from models.user import User

__all__ = ["UserStore"]


class UserStore:

    def get(self, user_id: int) -> Optional[User]:
        return db.session.get(User, user_id)

    def find_by_email(self, email: str) -> Optional[User]:
        return User.query.filter_by(email=email.lower()).first()

    def find_by_google_id(self, google_id: str) -> Optional[User]:
        return User.query.filter_by(google_id=google_id).first()

    def username_taken(self, username: str) -> bool:
        return db.session.query(User.id).filter_by(username=username).first() is not None

    def find_conflict(self, *, email: str, username: str) -> Optional[str]:
        """Return "email" or "username" if either is in use (email wins), else None."""
        rows = (
            db.session.query(User.email, User.username)
            .filter(or_(User.email == email.lower(), User.username == username))
            .all()
        )
        if any(r.email == email.lower() for r in rows):
            return "email"
        if any(r.username == username for r in rows):
            return "username"
        return None

    def create(
        self,
        *,
        username: str,
        email: str,
        password_hash: str = "",
        profile_pic: str | None = None,
        google_id: str | None = None,
    ) -> User:
        user = User(
            username=username,
            email=email.lower(),
            password_hash=password_hash,
            profile_pic=profile_pic,
            google_id=google_id,
        )
        db.session.add(user)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            field = self._collided_field(user)
            current_app.logger.info("[users] insert lost a uniqueness race on %s", field)
            raise DuplicateIdentity(field)
        return user

    def update_password(self, user: User, password_hash: str) -> None:
        user.password_hash = password_hash
        db.session.commit()

    def link_google(self, user: User, *, google_id: str | None, picture: str | None) -> None:
        changed = False
        if google_id and not user.google_id:
            user.google_id = google_id
            changed = True
        if picture and not user.profile_pic:
            user.profile_pic = picture
            changed = True
        if changed:
            db.session.commit()

    def _collided_field(self, user: User) -> str:
        if self.find_by_email(user.email) is not None:
            return "email"
        if self.username_taken(user.username):
            return "username"
        if user.google_id and self.find_by_google_id(user.google_id) is not None:
            return "google_id"
        # Nothing visible collides; report on email, the key the caller supplied
        return "email"
