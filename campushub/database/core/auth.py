"""
Authentication and session lifecycle.

`SessionManager` registers accounts, checks credentials, mints and rotates
access/refresh token pairs, and runs the password-reset flow. It holds no
per-request state: everything it needs (database, token signer, settings)
is injected by the composition root.
"""

import logging
from typing import Any, Dict, Optional

from campushub.database.connection import Database
from campushub.database.core.serializers import profile_view, user_view
from campushub.database.daos import PasswordResetDao, ProfileDao, UserDao
from campushub.database.entities import UserRole, UserStatus, utcnow
from campushub.errors import (
    AccountInactive,
    AccountPending,
    DuplicateAccount,
    EmailDomainNotAllowed,
    IncorrectPassword,
    InvalidCredentials,
    InvalidOrExpiredToken,
    InvalidToken,
    NotFoundError,
    TokenExpired,
    ValidationError,
)
from campushub.security import ACCESS, REFRESH, RESET, TokenSigner, hash_password, verify_password

log = logging.getLogger(__name__)

SELF_REGISTER_ROLES = frozenset({UserRole.FELLOW, UserRole.MENTOR, UserRole.COMMUNITY_ADMIN, UserRole.USER})
INSTITUTIONAL_ROLES = frozenset({UserRole.FELLOW, UserRole.COMMUNITY_ADMIN, UserRole.USER})


def email_domain(email: str) -> str:
    return email.rsplit("@", 1)[-1].lower()


class SessionManager:
    """
    Parameters
    ----------
    db : Database
        Pooled database handle.
    signer : TokenSigner
        Signs and verifies access, refresh and reset tokens.
    bcrypt_rounds : int
        Work factor for new password hashes.
    institution_domain : str
        Email domain required for institutional roles.
    expose_reset_token : bool
        Return reset tokens to the caller instead of only logging them.
    """

    def __init__(self, db: Database, signer: TokenSigner, bcrypt_rounds: int = 10,
                 institution_domain: str = "hacettepe.edu.tr", expose_reset_token: bool = False):
        self.db = db
        self.signer = signer
        self.bcrypt_rounds = bcrypt_rounds
        self.institution_domain = institution_domain.lower()
        self.expose_reset_token = expose_reset_token
        # compared against when the email is unknown so both failures cost the same
        self._dummy_hash = hash_password("campushub-dummy-password", bcrypt_rounds)

    @classmethod
    def from_settings(cls, db: Database, settings) -> "SessionManager":
        return cls(
            db,
            TokenSigner.from_settings(settings),
            bcrypt_rounds=settings.BCRYPT_ROUNDS,
            institution_domain=settings.INSTITUTION_EMAIL_DOMAIN,
            expose_reset_token=settings.EXPOSE_RESET_TOKEN,
        )

    # --- registration / login ---
    def register(self, name: str, email: str, password: str, role: Optional[UserRole] = None,
                 role_data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Create a PENDING account together with its role profile.

        The user row and the profile rows are written in one transaction;
        if any of them fails nothing is persisted.

        Returns
        -------
        dict
            {'user': {...}, 'access_token': str, 'refresh_token': str}

        Raises
        ------
        ValidationError
            Role not open to self-registration, missing role fields, or an
            email outside the institutional domain.
        DuplicateAccount
            Email already registered.
        """
        role = UserRole(role) if role else UserRole.FELLOW
        role_data = dict(role_data or {})
        email = email.strip().lower()

        if role not in SELF_REGISTER_ROLES:
            raise ValidationError(f"Role {role.value} cannot self-register")
        if role in INSTITUTIONAL_ROLES and email_domain(email) != self.institution_domain:
            raise EmailDomainNotAllowed(
                f"Fellows, Community Admins, and Users must register with @{self.institution_domain} email address"
            )
        if role == UserRole.MENTOR and not role_data.get("title"):
            raise ValidationError("Mentors must provide a title")
        if role == UserRole.COMMUNITY_ADMIN and not role_data.get("community_name"):
            raise ValidationError("Community admins must provide a community name")

        password_hash = hash_password(password, self.bcrypt_rounds)

        with self.db.transaction() as session:
            users = UserDao(session)
            if users.get_by_email(email) is not None:
                raise DuplicateAccount()

            user = users.create(name=name.strip(), email=email, password_hash=password_hash, role=role,
                                status=UserStatus.PENDING)
            profiles = ProfileDao(session)
            if role == UserRole.MENTOR:
                profiles.create_mentor(
                    user.id,
                    title=role_data["title"],
                    company=role_data.get("company") or "",
                    expertise=role_data.get("expertise") or [],
                    bio=role_data.get("bio") or "",
                    experience=role_data.get("experience") or "",
                )
            elif role == UserRole.COMMUNITY_ADMIN:
                profiles.create_community_admin(
                    user.id,
                    community_name=role_data["community_name"],
                    description=role_data.get("bio") or "",
                    category=role_data.get("category") or "Social",
                )
            elif role == UserRole.FELLOW:
                profiles.create_fellow(
                    user.id,
                    team=role_data.get("team"),
                    department=role_data.get("department"),
                    bio=role_data.get("bio"),
                    interests=role_data.get("interests") or [],
                )
            view = user_view(user)

        log.info(f"New user registered: {email} ({role.value})")
        return {"user": view, **self.signer.issue_pair(view["id"])}

    def login(self, email: str, password: str) -> Dict[str, Any]:
        """
        Check credentials and issue a token pair.

        Unknown email and wrong password raise the same `InvalidCredentials`.
        PENDING accounts raise `AccountPending`, any other non-ACTIVE status
        `AccountInactive`.
        """
        email = email.strip().lower()
        with self.db.transaction() as session:
            users = UserDao(session)
            user = users.get_by_email(email)
            if user is None:
                verify_password(password, self._dummy_hash)
                log.warning(f"Login failed for {email}")
                raise InvalidCredentials()
            if not verify_password(password, user.password_hash):
                log.warning(f"Login failed for {email}")
                raise InvalidCredentials()
            if user.status == UserStatus.PENDING:
                raise AccountPending()
            if user.status != UserStatus.ACTIVE:
                raise AccountInactive()

            users.set_last_login(user, utcnow())
            view = user_view(user)

        log.info(f"User logged in: {email}")
        return {"user": view, **self.signer.issue_pair(view["id"])}

    # --- tokens ---
    def refresh(self, refresh_token: str) -> Dict[str, str]:
        """Rotate a refresh token into a new pair. The old token stays valid until it expires."""
        try:
            claims = self.signer.verify(refresh_token, REFRESH)
        except (InvalidToken, TokenExpired):
            raise InvalidToken("Invalid refresh token")

        with self.db.session() as session:
            user = UserDao(session).get_by_id(claims["userId"])
            if user is None or user.status != UserStatus.ACTIVE:
                raise InvalidToken("Invalid refresh token")
            user_id = user.id
        return self.signer.issue_pair(user_id)

    def authenticate(self, access_token: str) -> Dict[str, Any]:
        """
        Resolve an access token to its ACTIVE user.

        Raises
        ------
        InvalidToken, TokenExpired
            Token does not verify, or the user no longer exists.
        AccountInactive
            User exists but is not ACTIVE.
        """
        claims = self.signer.verify(access_token, ACCESS)
        with self.db.session() as session:
            user = UserDao(session).get_by_id(claims["userId"])
            if user is None:
                raise InvalidToken("User not found")
            if user.status != UserStatus.ACTIVE:
                raise AccountInactive()
            return user_view(user)

    def get_current_user(self, user_id: int) -> Dict[str, Any]:
        with self.db.session() as session:
            user = UserDao(session).get_with_profile(user_id)
            if user is None:
                raise NotFoundError("User not found")
            return profile_view(user)

    # --- passwords ---
    def forgot_password(self, email: str) -> Dict[str, Any]:
        """
        Issue a reset token if `email` belongs to an account.

        Always succeeds so callers cannot probe which emails exist. A new
        token replaces any token issued earlier for the same user.
        """
        email = email.strip().lower()
        with self.db.transaction() as session:
            user = UserDao(session).get_by_email(email)
            if user is None:
                return {"reset_token": None}
            token = self.signer.sign(user.id, RESET)
            expires_at = utcnow() + self.signer.ttls[RESET]
            PasswordResetDao(session).upsert(user.id, token, expires_at)

        log.info(f"Password reset requested for user {user.id}")
        log.debug(f"Reset token for {email}: {token}")
        return {"reset_token": token if self.expose_reset_token else None}

    def reset_password(self, token: str, new_password: str) -> None:
        """
        Consume a reset token.

        The token must verify, be of type `reset`, be unexpired, and still be
        the token on file for its user (a newer `forgot_password` call
        supersedes it).
        """
        try:
            claims = self.signer.verify(token, RESET)
        except (InvalidToken, TokenExpired):
            raise InvalidOrExpiredToken()

        user_id = claims["userId"]
        password_hash = hash_password(new_password, self.bcrypt_rounds)
        with self.db.transaction() as session:
            resets = PasswordResetDao(session)
            if resets.find_active(user_id, token, utcnow()) is None:
                raise InvalidOrExpiredToken()
            users = UserDao(session)
            user = users.get_by_id(user_id)
            if user is None:
                raise InvalidOrExpiredToken()
            users.set_password_hash(user, password_hash)
            resets.delete_for_user(user_id)

        log.info(f"Password reset successful for user {user_id}")

    def change_password(self, user_id: int, current_password: str, new_password: str) -> None:
        with self.db.transaction() as session:
            users = UserDao(session)
            user = users.get_by_id(user_id)
            if user is None:
                raise NotFoundError("User not found")
            if not verify_password(current_password, user.password_hash):
                raise IncorrectPassword()
            users.set_password_hash(user, hash_password(new_password, self.bcrypt_rounds))

        log.info(f"User {user_id} changed password")
