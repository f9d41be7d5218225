from __future__ import annotations

from typing import Any

MASK = "********"


class OpaqueEnvelope:
    """Holds a secret string that only ``unwrap()`` will hand back.

    ``str()``, ``repr()``, formatting and pickling all refuse to reveal the
    contents, so an envelope that ends up in a log line or an exception
    message prints as a mask.
    """

    __slots__ = ("_value", "_scrub_output")

    def __init__(self, value: str, *, scrub_output: bool = True) -> None:
        object.__setattr__(self, "_value", str(value))
        object.__setattr__(self, "_scrub_output", bool(scrub_output))

    def unwrap(self) -> str:
        return self._value

    @property
    def scrub_output(self) -> bool:
        """Whether echoes of the value in tool output should be masked too."""
        return self._scrub_output

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("OpaqueEnvelope is immutable.")

    def __str__(self) -> str:
        return MASK

    def __repr__(self) -> str:
        return f"OpaqueEnvelope({MASK})"

    def __format__(self, format_spec: str) -> str:
        return MASK

    def __bool__(self) -> bool:
        return bool(self._value)

    def __reduce__(self) -> Any:
        raise TypeError("OpaqueEnvelope cannot be serialized.")
