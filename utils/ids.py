"""
utils/ids.py
------------
Identifier generation for entities that are not keyed by an
auto-increment column.
"""

import re
import secrets

_UUID4 = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$")


def generate_uuid4() -> str:
    """
    Build a random (version 4, RFC 4122 variant) UUID string.

    The 16 bytes come from the `secrets` CSPRNG because provider UUIDs
    end up in authentication redirects.

    Returns:
        Lowercase hex in 8-4-4-4-12 form, e.g.
        ``'3f0c5e1a-9b2d-4c7e-8a11-52f0d6b4e9c3'``.
    """
    raw = bytearray(secrets.token_bytes(16))
    raw[6] = (raw[6] & 0x0F) | 0x40  # version 4
    raw[8] = (raw[8] & 0x3F) | 0x80  # variant 10xx
    h = raw.hex()
    return f"{h[0:8]}-{h[8:12]}-{h[12:16]}-{h[16:20]}-{h[20:32]}"


def is_uuid4(value: object) -> bool:
    """True for a lowercase, hyphenated version-4 UUID string."""
    return isinstance(value, str) and _UUID4.fullmatch(value) is not None
