"""
Password hashes and password-reset tokens.

Passwords are stored as bcrypt hashes. A reset token is a random hex
string that is emailed to the account owner; the database keeps only its
sha256 digest, so reading the ``app_user`` table is not enough to reset a
password.
"""

import hashlib
import secrets

import bcrypt

from backend.database.config.config import settings

MIN_PASSWORD_LENGTH = 6
RESET_TOKEN_BYTES = 32


class EncryptionDec:
    """
    Credential helper used by the auth and user services.

    Parameters
    ----------
    rounds : int, optional
        bcrypt cost factor. Defaults to ``settings.BCRYPT_ROUNDS``.
    """

    def __init__(self, rounds: int | None = None):
        self.rounds = rounds or settings.BCRYPT_ROUNDS

    def hash_password(self, text: str) -> str:
        return bcrypt.hashpw(text.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def check_passwords(self, plain_text: str, passwd: str) -> bool:
        """
        Compare a submitted password with a stored hash.

        Returns
        -------
        bool
            False on a mismatch, and also when ``passwd`` is not a bcrypt hash.
        """
        try:
            return bcrypt.checkpw(plain_text.encode("utf-8"), passwd.encode("utf-8"))
        except ValueError:
            return False

    def is_valid_password(self, password: str) -> bool:
        return len(password) >= MIN_PASSWORD_LENGTH

    def generate_reset_token(self) -> str:
        """
        >>> len(EncryptionDec().generate_reset_token())
        64
        """
        return secrets.token_hex(RESET_TOKEN_BYTES)

    def hash_token(self, token: str) -> str:
        return hashlib.sha256(token.encode("utf-8")).hexdigest()
