"""Project version formatting and bumping."""

from __future__ import annotations

import enum
import warnings

from packaging.version import InvalidVersion, Version


class Bump(enum.IntEnum):
    """Which release component to increment."""

    MAJOR = 0
    MINOR = 1
    PATCH = 2

    @classmethod
    def parse(cls, value: str) -> "Bump":
        try:
            return cls[value.strip().upper()]
        except KeyError:
            raise ValueError(f"invalid bump kind: {value!r}") from None


def _as_version(version: Version | str) -> Version:
    if isinstance(version, Version):
        return version
    try:
        return Version(version)
    except InvalidVersion as exc:
        raise ValueError(f"invalid version: {version}") from exc


def format_version(version: Version | str) -> str:
    """Return the normalized text form of a version."""
    return str(_as_version(version))


def bump_version(version: Version | str, bump: Bump) -> Version:
    """Return the version bumped by one step of ``bump``.

    Post releases are dropped. A development version becomes its release
    version without incrementing any component.
    """
    current = _as_version(version)
    release = list(current.release)
    if current.dev is not None:
        warnings.warn("dev version will be bumped to release version", stacklevel=2)
    else:
        index = int(bump)
        if len(release) <= index:
            release.extend([0] * (index + 1 - len(release)))
        release[index] += 1
        release[index + 1 :] = [0] * (len(release) - index - 1)

    text = ".".join(str(part) for part in release)
    if current.epoch:
        text = f"{current.epoch}!{text}"
    if current.pre is not None:
        letter, number = current.pre
        text += f"{letter}{number}"
    if current.local is not None:
        text += f"+{current.local}"
    return Version(text)