"""
Test package for the endorse ranking engine.
"""

import logging

from endorse.models import BusinessCause, Stance, UserCause

ORIGIN = (40.0, -75.0)

# Set up test logging
logging.basicConfig(
    level=logging.WARNING,  # Reduce noise in tests
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


def support(value_id: str) -> UserCause:
    return UserCause(value_id=value_id, stance=Stance.SUPPORT)


def avoid(value_id: str) -> UserCause:
    return UserCause(value_id=value_id, stance=Stance.AVOID)


def biz_cause(value_id: str, stance: str) -> BusinessCause:
    return BusinessCause(value_id=value_id, stance=Stance(stance))
