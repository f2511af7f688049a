"""Password hashing."""
import base64
import hashlib

import bcrypt

from ..config import settings


class PasswordHasher:
    """bcrypt hasher with a per-user random salt embedded in the digest.
    
    The plaintext is SHA-256 pre-hashed so that passwords longer than
    bcrypt's 72-byte input limit stay fully significant.
    """
    
    def __init__(self, rounds: int = None):
        self.rounds = rounds
    
    @staticmethod
    def _prehash(plaintext: str) -> bytes:
        digest = hashlib.sha256(plaintext.encode("utf-8")).digest()
        return base64.b64encode(digest)
    
    def hash(self, plaintext: str) -> str:
        """Hash password using bcrypt."""
        salt = bcrypt.gensalt(rounds=self.rounds or settings.auth.bcrypt_rounds)
        return bcrypt.hashpw(self._prehash(plaintext), salt).decode("utf-8")
    
    def verify(self, plaintext: str, digest: str) -> bool:
        """Verify password against hash."""
        if not plaintext or not digest:
            return False
        try:
            return bcrypt.checkpw(self._prehash(plaintext), digest.encode("utf-8"))
        except ValueError:
            # Not a bcrypt digest
            return False


# Global hasher instance
password_hasher = PasswordHasher()
