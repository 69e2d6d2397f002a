"""Dispatch policy: whether an assigned delivery may be handed to another driver.

Re-dispatch is off unless ``MARKETPLACE_ALLOW_REASSIGNMENT`` is truthy or a
policy is installed with ``set_policy()``. Even when allowed, only deliveries
that have not been picked up can change hands.
"""

import os
from dataclasses import dataclass

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class DispatchPolicy:
    allow_reassignment: bool = False

    @classmethod
    def from_env(cls) -> "DispatchPolicy":
        value = os.getenv("MARKETPLACE_ALLOW_REASSIGNMENT", "false")
        return cls(allow_reassignment=value.strip().lower() in _TRUTHY)


_current_policy: DispatchPolicy | None = None


def get_policy() -> DispatchPolicy:
    global _current_policy
    if _current_policy is None:
        _current_policy = DispatchPolicy.from_env()
    return _current_policy


def set_policy(policy: DispatchPolicy) -> None:
    global _current_policy
    _current_policy = policy


def reset_policy() -> None:
    global _current_policy
    _current_policy = None
