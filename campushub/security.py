"""
Password hashing (bcrypt) and token signing (PyJWT).
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt
import jwt

from campushub.errors import InvalidToken, TokenExpired, ValidationError

# bcrypt only looks at the first 72 bytes
MAX_PASSWORD_BYTES = 72

ACCESS = "access"
REFRESH = "refresh"
RESET = "reset"


def hash_password(password: str, rounds: int = 10) -> str:
    raw = password.encode("utf-8")
    if len(raw) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return bcrypt.hashpw(raw, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    raw = password.encode("utf-8")
    if len(raw) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(raw, password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


class TokenSigner:
    """
    Mints and verifies the three kinds of signed tokens.

    Access and reset tokens share `secret`; refresh tokens use
    `refresh_secret`. Every token carries a `type` claim so one kind can
    never be replayed as another.

    Parameters
    ----------
    secret : str
        Key for access and reset tokens.
    refresh_secret : str
        Key for refresh tokens.
    algorithm : str
        JWT algorithm (symmetric, e.g. `HS256`).
    access_ttl, refresh_ttl, reset_ttl : timedelta
        Lifetimes of each token kind.
    """

    def __init__(self, secret: str, refresh_secret: str, algorithm: str = "HS256",
                 access_ttl: timedelta = timedelta(days=7),
                 refresh_ttl: timedelta = timedelta(days=30),
                 reset_ttl: timedelta = timedelta(hours=1)):
        self.secret = secret
        self.refresh_secret = refresh_secret
        self.algorithm = algorithm
        self.ttls = {ACCESS: access_ttl, REFRESH: refresh_ttl, RESET: reset_ttl}

    @classmethod
    def from_settings(cls, settings) -> "TokenSigner":
        return cls(
            secret=settings.JWT_SECRET,
            refresh_secret=settings.JWT_REFRESH_SECRET,
            algorithm=settings.JWT_ALGORITHM,
            access_ttl=timedelta(minutes=settings.JWT_EXPIRES_IN_MINUTES),
            refresh_ttl=timedelta(minutes=settings.JWT_REFRESH_EXPIRES_IN_MINUTES),
            reset_ttl=timedelta(minutes=settings.RESET_TOKEN_EXPIRES_IN_MINUTES),
        )

    def _key(self, kind: str) -> str:
        return self.refresh_secret if kind == REFRESH else self.secret

    def sign(self, user_id: int, kind: str = ACCESS) -> str:
        now = datetime.now(timezone.utc)
        claims = {
            "userId": user_id,
            "type": kind,
            "iat": now,
            "exp": now + self.ttls[kind],
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(claims, self._key(kind), algorithm=self.algorithm)

    def verify(self, token: str, kind: str = ACCESS) -> Dict[str, Any]:
        """
        Decode `token` and check it is of the expected kind.

        Raises
        ------
        TokenExpired
            Signature is valid but `exp` has passed.
        InvalidToken
            Malformed, wrongly signed, or of another kind.
        """
        try:
            claims = jwt.decode(token, self._key(kind), algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise TokenExpired()
        except jwt.InvalidTokenError:
            raise InvalidToken()
        if claims.get("type") != kind or not isinstance(claims.get("userId"), int):
            raise InvalidToken()
        return claims

    def issue_pair(self, user_id: int) -> Dict[str, str]:
        return {"access_token": self.sign(user_id, ACCESS), "refresh_token": self.sign(user_id, REFRESH)}
