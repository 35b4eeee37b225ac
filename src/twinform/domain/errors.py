"""Exception hierarchy and the per-validation ErrorCollection.

Only setup and configuration problems are raised. Validation and coercion
errors are data: they live in an :class:`ErrorCollection` that is replaced
on every ``validate()`` call.
"""

from __future__ import annotations

from collections.abc import Iterator


class TwinformError(Exception):
    """Base class for every exception raised by twinform."""


class ConfigurationError(TwinformError):
    """A form definition or construction problem (programmer error)."""


def join_path(prefix: str, name: str | int, *, separator: str = ".") -> str:
    """Join a field path prefix and a segment.

    Examples:
        >>> join_path("", "title")
        'title'
        >>> join_path("songs", 1)
        'songs.1'
    """
    if not prefix:
        return str(name)
    return f"{prefix}{separator}{name}"


class ErrorCollection:
    """Mapping from field path to an ordered list of messages.

    Paths are dotted (``"artist.name"``, ``"songs.0.title"``) using the
    configured separator. A message is recorded at most once per path.
    """

    def __init__(self, *, separator: str = ".") -> None:
        self._separator = separator
        self._messages: dict[str, list[str]] = {}

    @property
    def separator(self) -> str:
        return self._separator

    def add(self, path: str, message: str) -> None:
        """Record *message* under *path*."""
        bucket = self._messages.setdefault(path, [])
        if message not in bucket:
            bucket.append(message)

    def merge(self, prefix: str, other: ErrorCollection) -> None:
        """Copy every entry of *other* under *prefix*."""
        for path, messages in other.items():
            target = join_path(prefix, path, separator=self._separator)
            for message in messages:
                self.add(target, message)

    def items(self) -> Iterator[tuple[str, list[str]]]:
        for path, messages in self._messages.items():
            yield path, list(messages)

    @property
    def messages(self) -> dict[str, list[str]]:
        """A copy of the path → messages mapping."""
        return self.to_dict()

    def full_messages(self) -> list[str]:
        """Flat list of ``"<path> <message>"`` strings, in insertion order."""
        return [
            f"{path} {message}"
            for path, messages in self._messages.items()
            for message in messages
        ]

    def to_dict(self) -> dict[str, list[str]]:
        return {path: list(messages) for path, messages in self._messages.items()}

    def __getitem__(self, path: str) -> list[str]:
        return list(self._messages.get(path, []))

    def __contains__(self, path: object) -> bool:
        return path in self._messages

    def __iter__(self) -> Iterator[str]:
        return iter(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __bool__(self) -> bool:
        return bool(self._messages)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ErrorCollection):
            return NotImplemented
        return self._messages == other._messages

    def __repr__(self) -> str:
        return f"ErrorCollection({self._messages!r})"
