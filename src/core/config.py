"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ContactConfig:
    """Phone number normalization settings."""

    default_country_code: str = "91"
    national_number_length: int = 10


@dataclass(frozen=True)
class ReplyConfig:
    """Outbound reply settings consumed by the processor and scheduler."""

    secondary_delay_seconds: float = 3.0
    send_timeout_seconds: float = 15.0
    match_policy: str = "first"
