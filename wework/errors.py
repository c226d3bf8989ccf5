"""
WeWork Callback Error Taxonomy

Every failure the callback engine can produce has its own type so the
HTTP boundary can map it to a status code without string matching.

    WeWorkError
    ├── SignatureInvalid            → 403
    ├── DecryptionFailed            → 500
    │   ├── DecodeError
    │   ├── AlignmentError
    │   ├── PaddingError
    │   ├── TooShortError
    │   ├── LengthMismatchError
    │   └── TenantMismatchError
    └── XMLParseError               → 400
        ├── EnvelopeParseError
        └── MessageParseError
"""


class WeWorkError(Exception):
    """Base class for callback engine failures."""
    pass


class SignatureInvalid(WeWorkError):
    """msg_signature does not match the computed signature."""

    def __init__(self, message: str = "invalid signature"):
        super().__init__(message)


# ============================================================================
# CIPHER FAILURES
# ============================================================================

class DecryptionFailed(WeWorkError):
    """Ciphertext could not be turned back into a message body."""
    pass


class DecodeError(DecryptionFailed):
    """Ciphertext is not valid base64."""
    pass


class AlignmentError(DecryptionFailed):
    """Decoded ciphertext is empty or not block aligned."""
    pass


class PaddingError(DecryptionFailed):
    """Padding tail is malformed."""
    pass


class TooShortError(DecryptionFailed):
    """Plaintext cannot hold the random prefix and length field."""
    pass


class LengthMismatchError(DecryptionFailed):
    """Declared message length runs past the end of the plaintext."""
    pass


class TenantMismatchError(DecryptionFailed):
    """Trailing corp ID differs from the configured one."""
    pass


# ============================================================================
# XML FAILURES
# ============================================================================

class XMLParseError(WeWorkError):
    """Inbound XML could not be parsed."""
    pass


class EnvelopeParseError(XMLParseError):
    """POST body is not a valid encrypted envelope."""
    pass


class MessageParseError(XMLParseError):
    """Decrypted body is not a valid message document."""
    pass


class ConfigError(ValueError):
    """Configuration or key material is unusable."""
    pass
