"""Structural and byte-level comparison of two trigger files."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from wtgcodec.model.document import Document


@dataclass
class SectionDiff:
    """Names added, removed or changed in one block of the file."""

    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    changed: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.changed)


@dataclass
class DocumentDiff:
    versions: tuple[int, int]
    categories: SectionDiff
    triggers: SectionDiff
    variables: SectionDiff
    # Same variables in a different order still encode differently
    variable_order_changed: bool = False

    @property
    def is_empty(self) -> bool:
        return (
            self.versions[0] == self.versions[1]
            and self.categories.is_empty
            and self.triggers.is_empty
            and self.variables.is_empty
            and not self.variable_order_changed
        )


def _by_name(items: list) -> dict:
    # First occurrence wins when names repeat
    result = {}
    for item in items:
        result.setdefault(item.name, item)
    return result


def _compare(old: Mapping[str, object], new: Mapping[str, object]) -> SectionDiff:
    section = SectionDiff()
    section.added = [name for name in new if name not in old]
    section.removed = [name for name in old if name not in new]
    section.changed = [name for name in old if name in new and old[name] != new[name]]
    return section


def diff_documents(old: Document, new: Document) -> DocumentDiff:
    """Compare two Documents by category, trigger and variable name."""
    variables = _compare(old.variables, new.variables)
    common_old = [name for name in old.variables if name in new.variables]
    common_new = [name for name in new.variables if name in old.variables]
    return DocumentDiff(
        versions=(old.version, new.version),
        categories=_compare(_by_name(old.categories), _by_name(new.categories)),
        triggers=_compare(_by_name(old.triggers), _by_name(new.triggers)),
        variables=variables,
        variable_order_changed=common_old != common_new,
    )


def first_byte_difference(old: bytes, new: bytes, ignore: Sequence[tuple[int, int]] = ()) -> int | None:
    """Offset of the first differing byte, or None when identical.

    When one input is a prefix of the other the offset is the shorter length.
    `ignore` holds (start, end) offset ranges of `old` that may differ in
    `new` or be missing from it, such as the variance regions reported by
    `Document.decode`.
    """

    def ignored(offset: int) -> bool:
        return any(start <= offset < end for start, end in ignore)

    for offset, (a, b) in enumerate(zip(old, new)):
        if a != b and not ignored(offset):
            return offset
    shorter = min(len(old), len(new))
    if len(new) > len(old):
        return shorter
    for offset in range(shorter, len(old)):
        if not ignored(offset):
            return offset
    return None
