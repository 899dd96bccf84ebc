"""Exception types raised by skypass."""

from __future__ import annotations

from typing import Optional


class ParseError(ValueError):
    """Malformed element-set text for a single object.

    Attributes:
        name: Object name (line 0), if known.
        index: Position of the object in its batch, if known.
        reason: Human-readable description of the defect.
    """

    def __init__(
        self,
        reason: str,
        name: Optional[str] = None,
        index: Optional[int] = None,
    ) -> None:
        self.reason = reason
        self.name = name
        self.index = index
        super().__init__(self._format())

    def _format(self) -> str:
        label = self.name or "UNKNOWN"
        if self.index is not None:
            return f"object #{self.index} ({label}): {self.reason}"
        return f"{label}: {self.reason}"

    def for_object(self, name: Optional[str], index: Optional[int]) -> ParseError:
        """Return a copy labelled with the object's name and batch index."""
        return ParseError(
            self.reason,
            name=self.name or name,
            index=index if index is not None else self.index,
        )


class ConfigurationError(ValueError):
    """Invalid observer position or search settings, raised before a scan."""
