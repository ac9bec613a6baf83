"""Read-only document view over parsed HTML.

The analyzers only talk to the :class:`DocumentView` protocol.  The one
concrete implementation, :class:`HtmlDocument`, is backed by BeautifulSoup
with the stdlib ``html.parser`` tree builder and soupsieve CSS selectors.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from bs4 import BeautifulSoup, NavigableString, Tag

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")

# Opaque element handle handed out by a DocumentView
Element = Tag


@runtime_checkable
class DocumentView(Protocol):
    """DOM capability used by the analyzers.

    Elements are opaque handles; only pass them back into the view.
    """

    source: str

    def select(self, selector: str) -> list[Element]:
        """Return elements matching a CSS selector, in document order."""
        ...

    def select_in(self, element: Element, selector: str) -> list[Element]:
        """Like :meth:`select`, limited to descendants of *element*."""
        ...

    def first(self, selector: str) -> Element | None:
        ...

    def all_elements(self) -> list[Element]:
        ...

    def attr(self, element: Element, name: str) -> str | None:
        """Return an attribute value, or None when absent."""
        ...

    def tag_name(self, element: Element) -> str:
        ...

    def text(self, element: Element, *, strip: bool = True) -> str:
        """Return the element's descendant text."""
        ...

    def own_text(self, element: Element) -> str:
        ...

    def parents(self, element: Element) -> list[Element]:
        """Return ancestor elements, nearest first."""
        ...

    def nearest(self, element: Element, name: str) -> Element | None:
        """Closest ancestor with tag *name*, or None."""
        ...

    def children(self, element: Element, name: str) -> list[Element]:
        """Direct child elements with tag *name*."""
        ...

    def max_depth(self) -> int:
        ...

    def path(self, element: Element) -> str:
        ...

    def describe(self, element: Element) -> str:
        ...


class HtmlDocument:
    """BeautifulSoup-backed :class:`DocumentView`.

    The soup is built once in the constructor and never mutated afterwards.
    """

    def __init__(self, html: str) -> None:
        self.source = html
        self._soup = BeautifulSoup(html.replace("\ufeff", ""), "html.parser")

    def select(self, selector: str) -> list[Tag]:
        return list(self._soup.select(selector))

    def select_in(self, element: Tag, selector: str) -> list[Tag]:
        return list(element.select(selector))

    def first(self, selector: str) -> Tag | None:
        return self._soup.select_one(selector)

    def all_elements(self) -> list[Tag]:
        return list(self._soup.find_all(True))

    def attr(self, element: Tag, name: str) -> str | None:
        value = element.get(name)
        if value is None:
            return None
        if isinstance(value, list):
            # Multi-valued attributes such as class and rel
            return " ".join(value)
        return str(value)

    def tag_name(self, element: Tag) -> str:
        return element.name

    def text(self, element: Tag, *, strip: bool = True) -> str:
        if strip:
            return element.get_text(" ", strip=True)
        return element.get_text()

    def own_text(self, element: Tag) -> str:
        """Text of direct child text nodes only, whitespace-collapsed."""
        parts = [
            str(child)
            for child in element.children
            if type(child) is NavigableString
        ]
        return " ".join(" ".join(parts).split())

    def parents(self, element: Tag) -> list[Tag]:
        return [p for p in element.parents if isinstance(p, Tag) and not isinstance(p, BeautifulSoup)]

    def nearest(self, element: Tag, name: str) -> Tag | None:
        return element.find_parent(name)

    def children(self, element: Tag, name: str) -> list[Tag]:
        return list(element.find_all(name, recursive=False))

    def depth(self, element: Tag) -> int:
        return len(self.parents(element))

    def max_depth(self) -> int:
        """Largest ancestor count of any element; the root element has 0."""
        return max((self.depth(el) for el in self.all_elements()), default=0)

    def path(self, element: Tag) -> str:
        """A short xpath-like location such as ``/html/body/table[2]/tr``."""
        segments: list[str] = []
        node: Tag | None = element
        while node is not None and not isinstance(node, BeautifulSoup):
            name = node.name
            parent = node.parent
            if parent is not None:
                siblings = parent.find_all(name, recursive=False)
                if len(siblings) > 1:
                    # Tag equality is structural; identical siblings need identity
                    index = next(i for i, sib in enumerate(siblings) if sib is node)
                    name = f"{name}[{index + 1}]"
            segments.append(name)
            node = parent if isinstance(parent, Tag) else None
        return "/" + "/".join(reversed(segments))

    def describe(self, element: Tag) -> str:
        """Human label such as ``<img src="logo.png">`` for findings."""
        for key in ("id", "src", "href", "class"):
            value = self.attr(element, key)
            if value:
                return f'<{element.name} {key}="{value[:60]}">'
        return f"<{element.name}>"
