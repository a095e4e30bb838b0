import logging

from opvault.core.models import KeyMac, Profile
from .primitives import decode64, pbkdf2_sha512


logger = logging.getLogger(__name__)

KEK_SIZE = 64


def derive_kek(profile: Profile, password: bytes | str) -> KeyMac:
    """
    Derive the key-encryption-key from the passphrase.

    PBKDF2-HMAC-SHA512 over the profile salt and iteration count, 64 bytes of
    output split into cipher and MAC halves. This is the only deliberately slow
    step of opening a vault.
    """
    if isinstance(password, str):
        password = password.encode("utf-8")

    salt = decode64(profile.salt, "profile salt")
    logger.debug("deriving KEK with %d PBKDF2 iterations", profile.iterations)
    return KeyMac.from_bytes(pbkdf2_sha512(password, salt, profile.iterations, KEK_SIZE))
