"""Document outline builder.

Implements the "creating an outline" algorithm of the HTML Standard:
https://html.spec.whatwg.org/multipage/sections.html#outlines

The walk visits every element of a subtree twice (on entry and on exit) and
produces a tree of conceptual sections. As a by-product, each element that
carries an identifier is associated with the section that conceptually
contains it, which is what heading attribution needs: the DOM structure of a
spec rarely mirrors its outline, so the section of an element cannot be read
from its list of ancestors.

Element families, checked in this order:
  hidden              ``[hidden]``; the element and its subtree are skipped
  sectioning content  ``article aside nav section``; adds to the parent outline
  sectioning root     ``blockquote body details dialog fieldset figure td``;
                      starts a separate outline, attached through ``sub_roots``
  heading content     ``h1``-``h6`` and ``hgroup``
"""
from __future__ import annotations

import enum
import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TypeAlias

from bs4.element import Tag

from specoutline.dom import child_elements, collapse_text, is_hidden, node_identifier

log = logging.getLogger(__name__)

HEADING_CONTENT: frozenset[str] = frozenset(
    {"h1", "h2", "h3", "h4", "h5", "h6", "hgroup"}
)
SECTIONING_CONTENT: frozenset[str] = frozenset({"article", "aside", "nav", "section"})
SECTIONING_ROOT: frozenset[str] = frozenset(
    {"blockquote", "body", "details", "dialog", "fieldset", "figure", "td"}
)

# Rank of anything that is not a heading; below every real heading.
NO_RANK = -100


class OutlineError(RuntimeError):
    """Raised when the walk meets nesting it cannot account for."""


class HeadingMarker(enum.Enum):
    IMPLIED = "__implied"


IMPLIED = HeadingMarker.IMPLIED

SectionHeading: TypeAlias = Tag | HeadingMarker | None


# ---------------------------------------------------------------------------
# Section
# ---------------------------------------------------------------------------


@dataclass(eq=False, slots=True)
class Section:
    """A conceptual section of an outline (not a DOM node).

    ``root`` is the sectioning element that created the section, or None for
    sections started by a heading. ``sub_sections`` belong to the same
    outline; ``sub_roots`` hold the top-level sections of nested outlines
    created by sectioning roots. ``parent`` is the section this one was
    appended to, through either list.
    """

    heading: SectionHeading = None
    root: Tag | None = None
    sub_sections: list[Section] = field(default_factory=list["Section"])
    sub_roots: list[Section] = field(default_factory=list["Section"])
    parent: Section | None = field(default=None, repr=False)

    @property
    def is_implied(self) -> bool:
        return self.heading is IMPLIED

    @property
    def heading_element(self) -> Tag | None:
        """The real heading element, None while missing or implied."""
        return self.heading if isinstance(self.heading, Tag) else None

    def add_sub_sections(self, sections: list[Section]) -> None:
        for section in sections:
            section.parent = self
        self.sub_sections.extend(sections)

    def add_sub_roots(self, sections: list[Section]) -> None:
        for section in sections:
            section.parent = self
        self.sub_roots.extend(sections)


class NodeSectionMap:
    """Element -> Section association keyed by element identity.

    bs4 compares tags structurally, so two identical ``<p id=x>`` would
    collide in a plain dict.
    """

    __slots__ = ("_entries",)

    def __init__(self) -> None:
        self._entries: dict[int, tuple[Tag, Section]] = {}

    def __contains__(self, el: Tag) -> bool:
        return id(el) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Tag]:
        return (el for el, _ in self._entries.values())

    def get(self, el: Tag) -> Section | None:
        entry = self._entries.get(id(el))
        return entry[1] if entry is not None else None

    def set(self, el: Tag, section: Section) -> None:
        self._entries[id(el)] = (el, section)


@dataclass(frozen=True, slots=True)
class OutlineResult:
    outline: list[Section]
    node_to_section: NodeSectionMap


# ---------------------------------------------------------------------------
# Heading rank
# ---------------------------------------------------------------------------


def heading_rank(el: SectionHeading) -> int:
    """Rank of a heading: -1 for ``h1`` down to -6 for ``h6``.

    An ``hgroup`` takes the highest rank among its children.
    """
    if not isinstance(el, Tag):
        return NO_RANK
    name = el.name
    if name == "hgroup":
        return max((heading_rank(c) for c in child_elements(el)), default=NO_RANK)
    if name in HEADING_CONTENT:
        return -int(name[1])
    return NO_RANK


# ---------------------------------------------------------------------------
# Flattening
# ---------------------------------------------------------------------------


def flatten_sections(outline: list[Section]) -> list[Section]:
    """All sections of one outline, pre-order, through ``sub_sections``."""
    flat: list[Section] = []
    for section in outline:
        flat.append(section)
        flat.extend(flatten_sections(section.sub_sections))
    return flat


def flatten_all_sections(outline: list[Section]) -> list[Section]:
    """Like ``flatten_sections`` but also descends into nested outlines."""
    flat: list[Section] = []
    for section in outline:
        flat.append(section)
        flat.extend(flatten_all_sections(section.sub_sections))
        flat.extend(flatten_all_sections(section.sub_roots))
    return flat


# ---------------------------------------------------------------------------
# Walker
# ---------------------------------------------------------------------------


class _OutlineWalker:
    """Mutable state of one outline computation."""

    def __init__(self, root: Tag) -> None:
        self.root = root
        self.current_target: Tag | None = None
        self.current_section: Section | None = None
        # Outline targets waiting to be resumed, plus hidden elements and
        # nested headings whose subtrees are being skipped.
        self.stack: list[Tag] = []
        self.outlines: dict[int, list[Section]] = {}
        self.parent_sections: dict[int, Section | None] = {}
        self.node_to_section = NodeSectionMap()

    # -- classification ----------------------------------------------------

    def _is_sectioning_content(self, el: Tag) -> bool:
        return el.name in SECTIONING_CONTENT

    def _is_sectioning_root(self, el: Tag) -> bool:
        # The walk root always gets an outline of its own.
        if el is self.root and el.name not in SECTIONING_CONTENT:
            return True
        return el.name in SECTIONING_ROOT

    def _skipping(self) -> Tag | None:
        """Top of the stack when it is a skipped subtree, else None."""
        if not self.stack:
            return None
        top = self.stack[-1]
        if top.name in HEADING_CONTENT or is_hidden(top):
            return top
        return None

    def _outline_of(self, target: Tag | None) -> list[Section]:
        if target is None:
            raise OutlineError("no current outline target")
        return self.outlines[id(target)]

    def _imply_heading(self) -> None:
        section = self.current_section
        if section is not None and section.heading is None:
            section.heading = IMPLIED

    def _start_outline(self, el: Tag) -> Section:
        self.current_target = el
        section = Section(root=el)
        self.current_section = section
        self.outlines[id(el)] = [section]
        return section

    # -- entry -------------------------------------------------------------

    def enter(self, el: Tag) -> None:
        if self._skipping() is not None:
            return

        if is_hidden(el):
            if el is self.root:
                # Nothing below a hidden root is outlined.
                log.debug("hidden walk root <%s>, outline left implied", el.name)
                self._start_outline(el).heading = IMPLIED
            self.stack.append(el)
            return

        if self._is_sectioning_content(el):
            if self.current_target is not None:
                self._imply_heading()
                self.stack.append(self.current_target)
            section = self._start_outline(el)
            self.node_to_section.set(el, section)
            return

        if self._is_sectioning_root(el):
            if self.current_target is not None:
                self.stack.append(self.current_target)
            self.parent_sections[id(el)] = self.current_section
            self._start_outline(el)
            return

        if el.name in HEADING_CONTENT:
            self._enter_heading(el)

    def _enter_heading(self, el: Tag) -> None:
        outline = self._outline_of(self.current_target)
        current = self.current_section
        if current is None:
            raise OutlineError(f"<{el.name}> entered outside any section")
        last = outline[-1]

        if current.heading is None:
            current.heading = el
            return

        if last.is_implied or heading_rank(el) >= heading_rank(last.heading):
            self.current_section = Section(heading=el)
            outline.append(self.current_section)
            return

        rank = heading_rank(el)
        candidate: Section | None = current
        while candidate is not None:
            if rank < heading_rank(candidate.heading):
                self.current_section = Section(heading=el)
                candidate.add_sub_sections([self.current_section])
                break
            candidate = candidate.parent
        else:
            # The chain ends at the last top-level section, which outranks el.
            raise OutlineError(f"<{el.name}> climbed past the top of the outline")

        # Descendants of the heading are not part of the outline.
        self.stack.append(el)

    # -- exit --------------------------------------------------------------

    def exit(self, el: Tag) -> None:
        self._exit_element(el)

        if node_identifier(el) and el not in self.node_to_section:
            if self.current_section is not None:
                self.node_to_section.set(el, self.current_section)

    def _exit_element(self, el: Tag) -> None:
        if self.stack and self.stack[-1] is el:
            self.stack.pop()
            return

        if self._skipping() is not None:
            return

        if self._is_sectioning_content(el) and self.stack:
            self._imply_heading()
            self.current_target = self.stack.pop()
            outline = self._outline_of(self.current_target)
            self.current_section = outline[-1]
            self.current_section.add_sub_sections(self.outlines[id(el)])
            return

        if self._is_sectioning_root(el) and self.stack:
            self._imply_heading()
            parent = self.parent_sections.get(id(self.current_target))
            if parent is None:
                raise OutlineError(f"<{el.name}> exited without a parent section")
            self.current_section = parent
            parent.add_sub_roots(self.outlines[id(el)])
            self.current_target = self.stack.pop()
            return

        if self._is_sectioning_content(el) or self._is_sectioning_root(el):
            self._imply_heading()

    # -- traversal ---------------------------------------------------------

    def walk(self) -> OutlineResult:
        """Depth-first walk of the subtree in tree order.

        Children of an ``hgroup`` are never visited: the group is a single
        heading and its sub-headings would otherwise create ghost sections.
        """
        self.enter(self.root)
        pending: list[tuple[Tag, Iterator[Tag]]] = [
            (self.root, self._children_of(self.root))
        ]
        while pending:
            el, children = pending[-1]
            child = next(children, None)
            if child is None:
                pending.pop()
                self.exit(el)
                continue
            self.enter(child)
            pending.append((child, self._children_of(child)))

        if self.stack:
            raise OutlineError(
                f"walk ended with {len(self.stack)} element(s) left on the stack"
            )
        outline = self.outlines[id(self.root)]
        for section in flatten_all_sections(outline):
            if section.heading is None:
                raise OutlineError("section left without a heading")
        return OutlineResult(outline=outline, node_to_section=self.node_to_section)

    @staticmethod
    def _children_of(el: Tag) -> Iterator[Tag]:
        if el.name == "hgroup":
            return iter(())
        return iter(child_elements(el))


def build_outline(root: Tag) -> OutlineResult:
    """Create the outline of the subtree rooted at *root*.

    Returns the top-level sections of *root*'s outline and the mapping from
    identified elements (``id`` or ``name``) to their conceptual section.
    """
    return _OutlineWalker(root).walk()


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def section_label(section: Section) -> str:
    heading = section.heading_element
    if heading is None:
        return "(implied)"
    return collapse_text(heading.get_text(" "))


def outline_to_text(outline: list[Section], level: int = 0) -> str:
    """Indented text rendering: one ``"<level> - <title>"`` line per section."""
    lines: list[str] = []
    for section in outline:
        lines.append(f"{level} - {section_label(section)}")
        nested = outline_to_text(section.sub_sections, level + 1)
        if nested:
            lines.append(nested)
    return "\n".join(lines)
