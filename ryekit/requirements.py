"""Building and adjusting PEP 508 requirements."""

from __future__ import annotations

import copy
import enum
import os
from dataclasses import dataclass, field
from pathlib import Path, PurePath
from urllib.parse import quote, urlsplit

from packaging.requirements import InvalidRequirement, Requirement
from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import InvalidVersion, Version

PROJECT_ROOT_URL = "file:///${PROJECT_ROOT}"


class RequirementError(Exception):
    """Raised when a requirement cannot be built or adjusted."""


class Pin(enum.Enum):
    """The operator used to pin a newly added dependency."""

    EQUAL = "=="
    TILDE_EQUAL = "~="
    GREATER_THAN_EQUAL = ">="

    @classmethod
    def parse(cls, value: str) -> "Pin":
        """Parse a pin name or one of its aliases."""
        try:
            return _PIN_ALIASES[value.strip().lower()]
        except KeyError:
            raise ValueError(f"invalid pin operator: {value!r}") from None

    def operator(self) -> str:
        """Return the version specifier operator of this pin."""
        return self.value


_PIN_ALIASES = {
    "equal": Pin.EQUAL,
    "exact": Pin.EQUAL,
    "==": Pin.EQUAL,
    "eq": Pin.EQUAL,
    "tilde-equal": Pin.TILDE_EQUAL,
    "tilde": Pin.TILDE_EQUAL,
    "compatible": Pin.TILDE_EQUAL,
    "~=": Pin.TILDE_EQUAL,
    "greater-than-equal": Pin.GREATER_THAN_EQUAL,
    ">=": Pin.GREATER_THAN_EQUAL,
    "ge": Pin.GREATER_THAN_EQUAL,
    "gte": Pin.GREATER_THAN_EQUAL,
}


def _has_version_or_url(requirement: Requirement) -> bool:
    return bool(requirement.url) or len(requirement.specifier) > 0


def _checked_url(text: str, message: str) -> str:
    parts = urlsplit(text)
    if not parts.scheme or not (parts.netloc or parts.path):
        raise RequirementError(message)
    return text


@dataclass
class ReqExtras:
    """Source and feature options that apply to a single requirement."""

    git: str | None = None
    url: str | None = None
    path: os.PathLike | str | None = None
    absolute: bool = False
    tag: str | None = None
    rev: str | None = None
    branch: str | None = None
    features: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.url is not None and (self.git is not None or self.path is not None):
            raise RequirementError("--url cannot be used with --git or --path")
        if self.path is not None and self.git is not None:
            raise RequirementError("--path cannot be used with --git")
        if self.absolute and self.path is None:
            raise RequirementError("--absolute requires --path")
        refs = [x for x in (self.tag, self.rev, self.branch) if x is not None]
        if refs and self.git is None:
            raise RequirementError("--tag, --rev and --branch require --git")
        if len(refs) > 1:
            raise RequirementError("--tag, --rev and --branch are mutually exclusive")

    def has_specifiers(self) -> bool:
        """Return True if anything specific to one requirement is set."""
        return (
            self.path is not None
            or self.url is not None
            or self.git is not None
            or bool(self.features)
        )

    def force_absolute(self) -> None:
        """Always use absolute paths for local references."""
        self.absolute = True

    def apply_to_requirement(
        self,
        requirement: Requirement,
        base_dir: os.PathLike | str | None = None,
        is_hatchling: bool = False,
    ) -> Requirement:
        """Return a copy of ``requirement`` with these options applied."""
        result = copy.deepcopy(requirement)
        new_url: str | None = None
        if self.git is not None:
            ref = self.rev or self.tag or self.branch
            suffix = f"@{ref}" if ref else ""
            text = f"git+{self.git}{suffix}"
            new_url = _checked_url(
                text, f"unable to interpret '{self.git}{suffix}' as git reference"
            )
        elif self.url is not None:
            new_url = _checked_url(self.url, f"unable to parse '{self.url}' as url")
        elif self.path is not None:
            new_url = self._path_url(base_dir, is_hatchling)

        if new_url is not None:
            if _has_version_or_url(result):
                raise RequirementError("requirement already has a version marker")
            result.url = new_url

        extras = set(result.extras)
        for group in self.features:
            for feature in group.split(","):
                feature = feature.strip()
                if feature:
                    extras.add(feature)
        result.extras = extras
        return result

    def _path_url(self, base_dir: os.PathLike | str | None, is_hatchling: bool) -> str:
        base = Path(os.path.abspath(base_dir if base_dir is not None else os.getcwd()))
        path = Path(self.path)
        target = base / path
        # Hatchling cannot resolve the project root placeholder, so it gets
        # an absolute path.
        if self.absolute or is_hatchling:
            return Path(os.path.abspath(target)).as_uri()
        try:
            rel = os.path.relpath(target, base)
        except ValueError:
            raise RequirementError(
                f"unable to create relative path from {base} to {path}"
            ) from None
        if rel == ".":
            return PROJECT_ROOT_URL
        return f"{PROJECT_ROOT_URL}/{quote(PurePath(rel).as_posix(), safe='/')}"


def _parse_version(version: Version | str) -> Version:
    if isinstance(version, Version):
        return version
    try:
        return Version(version)
    except InvalidVersion as exc:
        raise RequirementError(f"invalid version: {version}") from exc


def choose_operator(version: Version | str, default_operator: Pin | str) -> str:
    """Return the operator to pin ``version`` with.

    Local versions always use ``==``; ``~=`` needs at least two release
    components and falls back to ``>=`` otherwise.
    """
    parsed = _parse_version(version)
    operator = (
        default_operator.operator() if isinstance(default_operator, Pin) else default_operator
    )
    if parsed.local is not None:
        return "=="
    if operator == "~=" and len(parsed.release) < 2:
        return ">="
    return operator


def pin_requirement(
    requirement: Requirement, version: Version | str | None, default_operator: Pin | str
) -> Requirement:
    """Return a copy of ``requirement`` pinned to ``version``.

    Nothing is pinned when no version is known or the requirement already
    carries a version or URL.
    """
    result = copy.deepcopy(requirement)
    if version is None or _has_version_or_url(result):
        return result
    parsed = _parse_version(version)
    operator = choose_operator(parsed, default_operator)
    try:
        result.specifier = SpecifierSet(f"{operator}{parsed}")
    except InvalidSpecifier as exc:
        raise RequirementError(f"invalid version specifier: {exc}") from exc
    return result


def format_requirement(requirement: Requirement) -> str:
    """Return the PEP 508 text of a requirement."""
    return str(requirement)


def parse_requirement(text: str, local_hint: bool = False) -> Requirement:
    """Parse a PEP 508 requirement string."""
    try:
        return Requirement(text)
    except InvalidRequirement as exc:
        if local_hint and "://" in text:
            message = (
                f"failed to parse requirement '{text}'. It looks like a URL, maybe "
                "you wanted to use --url or --git"
            )
        else:
            message = f"failed to parse requirement '{text}'"
        raise RequirementError(message) from exc


def make_req(
    requirements: list[str],
    extras: ReqExtras | None = None,
    base_dir: os.PathLike | str | None = None,
) -> list[str]:
    """Build PEP 508 requirement strings from parts."""
    extras = extras if extras is not None else ReqExtras()
    result = []
    for text in requirements:
        try:
            requirement = Requirement(text)
        except InvalidRequirement as exc:
            raise RequirementError(f"unable to parse requirement '{text}'") from exc
        requirement = extras.apply_to_requirement(requirement, base_dir)
        result.append(format_requirement(requirement))
    return result