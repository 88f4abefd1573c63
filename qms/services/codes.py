"""Human-readable record codes. Uniqueness is enforced by the database."""

import secrets
import time


def make_equipment_code() -> str:
    """EQ-<last 6 digits of epoch millis>-<3 random digits>, e.g. EQ-482913-057."""
    millis = int(time.time() * 1000) % 1_000_000
    return f"EQ-{millis:06d}-{secrets.randbelow(1000):03d}"
