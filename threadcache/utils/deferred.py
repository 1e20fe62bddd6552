"""
Deferred parsing of a raw value.
"""
from typing import Callable, Generic, Optional, TypeVar

R = TypeVar("R")
P = TypeVar("P")


class DeferredParse(Generic[R, P]):
    """
    Holds a raw value and parses it on first read.

    Assigning a new raw value resets the parsed state; the parser runs at
    most once per assignment and the raw form is dropped once parsed.
    """

    def __init__(self, parser: Callable[[Optional[R]], Optional[P]], raw: Optional[R] = None):
        self.parser = parser
        self._raw: Optional[R] = None
        self._value: Optional[P] = None
        self._parsed: Optional[bool] = None
        if raw is not None:
            self.raw = raw

    @property
    def raw(self) -> Optional[R]:
        """The unparsed value, None once parsed."""
        return self._raw

    @raw.setter
    def raw(self, raw: R) -> None:
        self._parsed = False
        self._raw = raw
        self._value = None

    @property
    def value(self) -> Optional[P]:
        if not self._parsed:
            self._parsed = True
            self._value = self.parser(self._raw)
            self._raw = None
        return self._value

    @property
    def has_value(self) -> bool:
        """True once a raw value has been assigned."""
        return self._parsed is not None
