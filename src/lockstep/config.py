import os
from dataclasses import dataclass
from typing import Optional

_TRUTHY = frozenset(["1", "true", "yes", "on"])


@dataclass
class FlagFromEnvironment:
    """A boolean setting read from an environment variable unless it was
    explicitly set in code."""

    _envvar: str
    _name: str
    _value: Optional[bool]

    def __init__(self, envvar: str, name: str, value: Optional[bool] = None):
        self._envvar = envvar
        self._name = name
        self._value = value

    def __bool__(self):
        return self.value

    @property
    def name(self) -> str:
        return self._envvar if self._value is None else self._name

    @property
    def from_envvar(self) -> bool:
        return self._value is None

    @property
    def value(self) -> bool:
        if self._value is not None:
            return self._value
        return (os.environ.get(self._envvar) or "").strip().lower() in _TRUTHY

    @value.setter
    def value(self, value: bool):
        self._value = value

    def reset(self):
        """Go back to reading the value from the environment."""
        self._value = None


TRACE = FlagFromEnvironment("LOCKSTEP_TRACE", "trace")
"""Print the source of procedures at each compilation stage."""

ABORT_ON_VIOLATION = FlagFromEnvironment(
    "LOCKSTEP_ABORT_ON_VIOLATION", "abort_on_violation"
)
"""Abort the process instead of raising when the lockstep protocol is
broken."""
