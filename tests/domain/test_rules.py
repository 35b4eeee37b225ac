"""Tests for field and form validation rules."""

from __future__ import annotations

from typing import Any

import pytest

from twinform.domain.rules import (
    Confirmation,
    Custom,
    Format,
    Inclusion,
    Length,
    Numericality,
    Predicate,
    Presence,
    is_blank,
)


class _FakeForm:
    def __init__(self, **values: Any) -> None:
        self._values = values

    def get(self, name: str) -> Any:
        return self._values.get(name)


FORM = _FakeForm()


class TestIsBlank:
    @pytest.mark.parametrize("value", [None, "", "   ", [], {}, ()])
    def test_blank(self, value: Any) -> None:
        assert is_blank(value)

    @pytest.mark.parametrize("value", [0, False, "x", [None], {"a": 1}])
    def test_not_blank(self, value: Any) -> None:
        assert not is_blank(value)


class TestPresence:
    def test_blank_fails(self) -> None:
        assert Presence().validate("  ", FORM) == ["can't be blank"]

    def test_zero_passes(self) -> None:
        assert Presence().validate(0, FORM) == []

    def test_custom_message(self) -> None:
        assert Presence(message="is required").validate(None, FORM) == ["is required"]


class TestLength:
    def test_too_long(self) -> None:
        assert Length(maximum=3).validate("abcd", FORM) == [
            "is too long (maximum is 3 characters)"
        ]

    def test_too_short(self) -> None:
        assert Length(minimum=3).validate("ab", FORM) == [
            "is too short (minimum is 3 characters)"
        ]

    def test_exact(self) -> None:
        assert Length(is_=2).validate("abc", FORM) == [
            "is the wrong length (should be 2 characters)"
        ]
        assert Length(is_=2).validate("ab", FORM) == []

    def test_blank_skipped(self) -> None:
        assert Length(minimum=3).validate("", FORM) == []

    def test_collections(self) -> None:
        assert Length(maximum=1).validate([1, 2], FORM) != []

    def test_custom_message_overrides(self) -> None:
        assert Length(maximum=1, message="too wordy").validate("ab", FORM) == ["too wordy"]

    def test_unsized_value(self) -> None:
        assert Length(maximum=1).validate(12, FORM) == ["is invalid"]


class TestFormat:
    def test_full_match_required(self) -> None:
        rule = Format(r"\d{4}")
        assert rule.validate("1973", FORM) == []
        assert rule.validate("1973a", FORM) == ["is invalid"]


class TestInclusion:
    def test_choices(self) -> None:
        rule = Inclusion({"vinyl", "cd"})
        assert rule.validate("cd", FORM) == []
        assert rule.validate("tape", FORM) == ["is not included in the list"]


class TestNumericality:
    def test_string_numbers_accepted(self) -> None:
        assert Numericality().validate("12.5", FORM) == []

    def test_not_a_number(self) -> None:
        assert Numericality().validate("twelve", FORM) == ["is not a number"]

    def test_bool_is_not_a_number(self) -> None:
        assert Numericality().validate(True, FORM) == ["is not a number"]

    def test_integer_only(self) -> None:
        assert Numericality(integer_only=True).validate(2.5, FORM) == ["must be an integer"]
        assert Numericality(integer_only=True).validate("3", FORM) == []

    def test_bounds(self) -> None:
        rule = Numericality(greater_than=0, less_than=10)
        assert rule.validate(0, FORM) == ["must be greater than 0"]
        assert rule.validate(10, FORM) == ["must be less than 10"]
        assert rule.validate(5, FORM) == []


class TestPredicate:
    def test_predicate(self) -> None:
        rule = Predicate(lambda value: value.islower(), message="must be lowercase")
        assert rule.validate("quiet", FORM) == []
        assert rule.validate("LOUD", FORM) == ["must be lowercase"]


class TestConfirmation:
    def test_match(self) -> None:
        form = _FakeForm(password="a", password_confirmation="a")
        assert Confirmation("password").validate(form) == []

    def test_mismatch_reported_on_confirmation(self) -> None:
        form = _FakeForm(password="a", password_confirmation="b")
        assert Confirmation("password").validate(form) == [
            ("password_confirmation", "doesn't match password")
        ]


class TestCustom:
    def test_true_and_none_pass(self) -> None:
        assert Custom(lambda form: True).validate(FORM) == []
        assert Custom(lambda form: None).validate(FORM) == []

    def test_false_uses_message_and_path(self) -> None:
        rule = Custom(lambda form: False, path="email", message="is already taken")
        assert rule.validate(FORM) == [("email", "is already taken")]

    def test_string_outcome(self) -> None:
        assert Custom(lambda form: "nope").validate(FORM) == [("base", "nope")]

    def test_mapping_outcome(self) -> None:
        rule = Custom(lambda form: {"title": "is taken", "artist.name": "is unknown"})
        assert rule.validate(FORM) == [("title", "is taken"), ("artist.name", "is unknown")]
