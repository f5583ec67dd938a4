# Overview: Public sale identifier generation.

"""
Public sale identifiers: PREFIX-YYYY-NNNNNN (e.g. "SJPOS-2026-482913").

The number is drawn uniformly from 100000..999999, so ids are partitioned by
calendar year with 900,000 values per year. This module does not check for
collisions; sales.public_id is UNIQUE and sales_service retries on a clash.
"""

from __future__ import annotations

import random
from datetime import datetime

from flask import current_app, has_app_context

from app.time_utils import utcnow


DEFAULT_PREFIX = "SJPOS"
PUBLIC_NUMBER_MIN = 100000
PUBLIC_NUMBER_MAX = 999999

_system_random = random.SystemRandom()


def _configured_prefix() -> str:
    if has_app_context():
        return current_app.config.get("PUBLIC_ID_PREFIX") or DEFAULT_PREFIX
    return DEFAULT_PREFIX


def generate_public_id(
    prefix: str | None = None,
    *,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> str:
    """Mint a public sale id. `now` and `rng` are injectable for tests."""
    prefix = prefix or _configured_prefix()
    year = (now or utcnow()).year
    number = (rng or _system_random).randint(PUBLIC_NUMBER_MIN, PUBLIC_NUMBER_MAX)
    return f"{prefix}-{year}-{number}"
