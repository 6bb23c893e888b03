"""
Credential handling.

encrypt_decrypt
    ``EncryptionDec``: bcrypt password hashes (cost from
    ``settings.BCRYPT_ROUNDS``), the minimum password length rule, and
    single-use password-reset tokens stored as sha256 digests.
"""
