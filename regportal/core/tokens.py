"""Signed bearer and password-reset tokens."""
import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from ..config import settings

BEARER_PREFIX = "token"
RESET_PREFIX = "reset"

_BASE36_ALPHABET = string.digits + string.ascii_lowercase


def random_base36(length: int = 9) -> str:
    """Random base-36 string used as the token id."""
    return "".join(secrets.choice(_BASE36_ALPHABET) for _ in range(length))


class TokenIssuer:
    """Issue and verify HMAC-signed, expiring JWTs.
    
    The ``type`` claim carries the token kind (``token`` for sessions,
    ``reset`` for password resets) and ``sub`` the user id.
    """
    
    def __init__(self, secret_key: str = None, algorithm: str = None):
        self._secret_key = secret_key
        self._algorithm = algorithm
    
    @property
    def secret_key(self) -> str:
        return self._secret_key or settings.auth.secret_key
    
    @property
    def algorithm(self) -> str:
        return self._algorithm or settings.auth.algorithm
    
    def issue(self, claims: Dict[str, Any], expires_delta: timedelta) -> str:
        """Sign ``claims`` into a token that expires after ``expires_delta``."""
        now = datetime.now(timezone.utc)
        to_encode = claims.copy()
        to_encode.update({
            "iat": now,
            "exp": now + expires_delta,
            "jti": random_base36(),
        })
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)
    
    def verify(self, token: str) -> Optional[Dict[str, Any]]:
        """Verify and decode a token, or return None if it is not valid."""
        if not token:
            return None
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            return None
    
    def issue_bearer_token(self, user_id: int, remember_me: bool = False) -> str:
        if remember_me:
            expires = timedelta(days=settings.auth.remember_me_expire_days)
        else:
            expires = timedelta(minutes=settings.auth.access_token_expire_minutes)
        return self.issue({"sub": str(user_id), "type": BEARER_PREFIX}, expires)
    
    def issue_reset_token(self, user_id: int) -> str:
        expires = timedelta(minutes=settings.auth.reset_token_expire_minutes)
        return self.issue({"sub": str(user_id), "type": RESET_PREFIX}, expires)
    
    def parse_user_id(self, token: str, expected_prefix: str) -> Optional[int]:
        """Return the user id of a valid token of the expected kind."""
        payload = self.verify(token)
        if payload is None or payload.get("type") != expected_prefix:
            return None
        
        try:
            return int(payload["sub"])
        except (KeyError, TypeError, ValueError):
            return None


# Global token issuer instance
token_issuer = TokenIssuer()
