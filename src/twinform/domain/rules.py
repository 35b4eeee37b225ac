"""Validation rules.

Two kinds of rule exist:

- :class:`FieldRule` checks a single field value and returns messages for
  that field's path. Every field rule except :class:`Presence` passes on
  blank values; ``Presence`` is the only way to require a value.
- :class:`FormRule` checks the whole form and returns ``(path, message)``
  pairs relative to the form it is declared on.

Rules read the form through ``form.get(name)`` only. They never touch the
domain object.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Callable, Collection, Mapping
from decimal import Decimal, InvalidOperation
from typing import Any, ClassVar


def is_blank(value: Any) -> bool:
    """``None``, whitespace-only strings and empty containers are blank."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, frozenset, dict)):
        return len(value) == 0
    return False


# ---------------------------------------------------------------------------
# Field rules
# ---------------------------------------------------------------------------


class FieldRule(ABC):
    """Abstract base for rules bound to one field."""

    default_message: ClassVar[str] = "is invalid"
    skips_blank: ClassVar[bool] = True

    def __init__(self, *, message: str | None = None) -> None:
        self.message = message or self.default_message

    def validate(self, value: Any, form: Any) -> list[str]:
        """Return the error messages for *value* (empty when valid)."""
        if self.skips_blank and is_blank(value):
            return []
        return self.check(value, form)

    @abstractmethod
    def check(self, value: Any, form: Any) -> list[str]:
        """Rule body, called with non-blank values unless ``skips_blank`` is off."""
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r})"


class Presence(FieldRule):
    default_message = "can't be blank"
    skips_blank = False

    def check(self, value: Any, form: Any) -> list[str]:
        return [self.message] if is_blank(value) else []


class Length(FieldRule):
    """Length bounds for strings and sized collections."""

    def __init__(
        self,
        *,
        minimum: int | None = None,
        maximum: int | None = None,
        is_: int | None = None,
        message: str | None = None,
    ) -> None:
        super().__init__(message=message)
        self.minimum = minimum
        self.maximum = maximum
        self.is_ = is_

    def check(self, value: Any, form: Any) -> list[str]:
        if not isinstance(value, (str, Collection)):
            return [self.message]
        size = len(value)
        if self.is_ is not None and size != self.is_:
            return [self._custom or f"is the wrong length (should be {self.is_} characters)"]
        if self.minimum is not None and size < self.minimum:
            return [self._custom or f"is too short (minimum is {self.minimum} characters)"]
        if self.maximum is not None and size > self.maximum:
            return [self._custom or f"is too long (maximum is {self.maximum} characters)"]
        return []

    @property
    def _custom(self) -> str | None:
        return None if self.message == self.default_message else self.message


class Format(FieldRule):
    """Value (as string) must fully match *pattern*."""

    def __init__(self, pattern: str | re.Pattern[str], *, message: str | None = None) -> None:
        super().__init__(message=message)
        self.pattern = re.compile(pattern) if isinstance(pattern, str) else pattern

    def check(self, value: Any, form: Any) -> list[str]:
        return [] if self.pattern.fullmatch(str(value)) else [self.message]


class Inclusion(FieldRule):
    default_message = "is not included in the list"

    def __init__(self, choices: Collection[Any], *, message: str | None = None) -> None:
        super().__init__(message=message)
        self.choices = choices

    def check(self, value: Any, form: Any) -> list[str]:
        return [] if value in self.choices else [self.message]


class Numericality(FieldRule):
    """Value must be numeric, optionally integral and within open bounds.

    Strings are accepted when they parse as a number, so the rule works on
    uncoerced input as well.
    """

    default_message = "is not a number"

    def __init__(
        self,
        *,
        integer_only: bool = False,
        greater_than: float | None = None,
        less_than: float | None = None,
        message: str | None = None,
    ) -> None:
        super().__init__(message=message)
        self.integer_only = integer_only
        self.greater_than = greater_than
        self.less_than = less_than

    def check(self, value: Any, form: Any) -> list[str]:
        number = _to_decimal(value)
        if number is None:
            return [self.message]
        if self.integer_only and number != number.to_integral_value():
            return ["must be an integer"]
        if self.greater_than is not None and not number > Decimal(str(self.greater_than)):
            return [f"must be greater than {self.greater_than}"]
        if self.less_than is not None and not number < Decimal(str(self.less_than)):
            return [f"must be less than {self.less_than}"]
        return []


def _to_decimal(value: Any) -> Decimal | None:
    if isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


class Predicate(FieldRule):
    """Ad-hoc field rule: ``fn(value)`` must be truthy."""

    def __init__(self, fn: Callable[[Any], bool], *, message: str | None = None) -> None:
        super().__init__(message=message)
        self.fn = fn

    def check(self, value: Any, form: Any) -> list[str]:
        return [] if self.fn(value) else [self.message]


# ---------------------------------------------------------------------------
# Form rules
# ---------------------------------------------------------------------------


class FormRule(ABC):
    """Abstract base for rules that look at the whole form."""

    @abstractmethod
    def validate(self, form: Any) -> list[tuple[str, str]]:
        """Return ``(path, message)`` pairs relative to *form*."""
        ...


class Confirmation(FormRule):
    """``<field>_confirmation`` must equal ``<field>``.

    The error is reported on the confirmation field. The confirmation is
    usually declared ``virtual`` so it never reaches the domain object.
    """

    def __init__(self, field: str, *, message: str | None = None) -> None:
        self.field = field
        self.confirmation = f"{field}_confirmation"
        self.message = message or f"doesn't match {field}"

    def validate(self, form: Any) -> list[tuple[str, str]]:
        if form.get(self.confirmation) != form.get(self.field):
            return [(self.confirmation, self.message)]
        return []


class Custom(FormRule):
    """Arbitrary check, e.g. a uniqueness lookup the caller implements.

    ``fn(form)`` returns ``True``/``None`` on success, ``False`` for a
    failure with the rule's message, a string message, or a mapping of
    path → message.
    """

    def __init__(
        self,
        fn: Callable[[Any], bool | str | Mapping[str, str] | None],
        *,
        path: str = "base",
        message: str = "is invalid",
    ) -> None:
        self.fn = fn
        self.path = path
        self.message = message

    def validate(self, form: Any) -> list[tuple[str, str]]:
        outcome = self.fn(form)
        if outcome is None or outcome is True:
            return []
        if outcome is False:
            return [(self.path, self.message)]
        if isinstance(outcome, str):
            return [(self.path, outcome)]
        return [(str(path), str(message)) for path, message in outcome.items()]
