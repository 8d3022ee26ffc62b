from __future__ import annotations

import os
from dataclasses import dataclass

from move_authority.movement.validator import ValidatorProfile


@dataclass(frozen=True, slots=True)
class Settings:
    validator_profile: ValidatorProfile
    log_level: str
    # Crossing this only logs; enforcement belongs to an external policy.
    suspicious_warn_threshold: int
    observation_stream_maxlen: int
    lock_ttl_ms: int


def settings_from_env() -> Settings:
    return Settings(
        validator_profile=ValidatorProfile(os.environ.get("MOVE_AUTHORITY_VALIDATOR", ValidatorProfile.standard.value)),
        log_level=os.environ.get("MOVE_AUTHORITY_LOG_LEVEL", "INFO").upper(),
        suspicious_warn_threshold=int(os.environ.get("MOVE_AUTHORITY_SUSPICIOUS_WARN_THRESHOLD", "10")),
        observation_stream_maxlen=int(os.environ.get("MOVE_AUTHORITY_OBSERVATION_STREAM_MAXLEN", "1000")),
        lock_ttl_ms=int(os.environ.get("MOVE_AUTHORITY_LOCK_TTL_MS", "5000")),
    )
