"""HTML fragment rewriting used by the block template tags."""

from __future__ import annotations

import re
from typing import Callable, Iterable, List, Mapping, Optional, Union

from django.utils.html import escape
from lxml import html
from lxml.etree import ParserError

from common.logging import get_logger

logger = get_logger(__name__)

Fragment = Union[str, html.HtmlElement]
AttributeRewriter = Callable[[Mapping[str, Optional[str]]], Mapping[str, Optional[str]]]

INTEGRITY_TAGS: tuple[str, ...] = ("script", "link")

_DOCUMENT_TAG = re.compile(r"<\s*!?\s*(doctype|html|head|body)\b", re.IGNORECASE)


def parse_fragments(markup: str) -> Optional[List[Fragment]]:
    """Parse ``markup`` into lxml fragments, ``None`` when it is not HTML."""

    if not markup or not markup.strip():
        return None
    try:
        return html.fragments_fromstring(markup)
    except (ParserError, TypeError, ValueError) as exc:
        logger.debug("markup.parse_failed", error=str(exc))
        return None


def serialize_fragments(fragments: Iterable[Fragment]) -> str:
    parts: list[str] = []
    for fragment in fragments:
        if isinstance(fragment, str):
            parts.append(escape(fragment))
        else:
            parts.append(html.tostring(fragment, encoding="unicode", method="html"))
    return "".join(parts)


def parse_document(markup: str) -> Optional[html.HtmlElement]:
    """Parse ``markup`` as a whole document and return its ``<html>`` root."""

    try:
        return html.document_fromstring(markup)
    except (ParserError, TypeError, ValueError) as exc:
        logger.warning("markup.document_parse_failed", error=str(exc))
        return None


def document_sections(markup: str) -> frozenset[str]:
    """Document-level tags (``doctype``, ``html``, ``head``, ``body``) in ``markup``."""

    return frozenset(match.group(1).lower() for match in _DOCUMENT_TAG.finditer(markup))


def serialize_document(root: html.HtmlElement, sections: frozenset[str]) -> str:
    """Serialize ``root`` keeping only the wrappers the source markup had."""

    if "html" in sections or "doctype" in sections:
        doctype = root.getroottree().docinfo.doctype if "doctype" in sections else None
        return html.tostring(
            root, encoding="unicode", method="html", doctype=doctype or None
        )
    return "".join(
        html.tostring(child, encoding="unicode", method="html", with_tail=False)
        for child in root
        if child.tag in sections
    )


def _rewrite_elements(
    roots: Iterable[html.HtmlElement],
    rewrite: AttributeRewriter,
    tags: tuple[str, ...],
    required_attribute: str,
) -> bool:
    changed = False
    for root in roots:
        for element in root.iter(*tags):
            if required_attribute not in element.attrib:
                continue
            current = dict(element.attrib)
            updated = rewrite(current)
            for name, value in updated.items():
                if current.get(name) == value:
                    continue
                element.set(name, "" if value is None else value)
                changed = True
    return changed


def rewrite_attributes(
    markup: str,
    rewrite: AttributeRewriter,
    *,
    tags: tuple[str, ...] = INTEGRITY_TAGS,
    required_attribute: str = "integrity",
) -> str:
    """Pass the attributes of matching elements through ``rewrite``.

    Only elements named in ``tags`` that carry ``required_attribute`` are
    visited. Markup without such an element is returned untouched.

    Markup holding a doctype or an ``<html>``, ``<head>`` or ``<body>`` tag
    is parsed as a document so those wrappers and their attributes survive.
    """

    if not markup or not markup.strip():
        return markup

    sections = document_sections(markup)
    if sections:
        root = parse_document(markup)
        if root is None:
            return markup
        if not _rewrite_elements([root], rewrite, tags, required_attribute):
            return markup
        leading = markup[: len(markup) - len(markup.lstrip())]
        trailing = markup[len(markup.rstrip()) :]
        return f"{leading}{serialize_document(root, sections).strip()}{trailing}"

    fragments = parse_fragments(markup)
    if fragments is None:
        return markup
    elements = [fragment for fragment in fragments if not isinstance(fragment, str)]
    if not _rewrite_elements(elements, rewrite, tags, required_attribute):
        return markup
    return serialize_fragments(fragments)


def strip_wrapper(markup: str, replacement_tag: str = "span") -> str:
    """Rename the single root element of ``markup`` and drop its attributes.

    Content with zero or several root elements, or with text outside of the
    root element, is returned unchanged.
    """

    fragments = parse_fragments(markup)
    if fragments is None:
        return markup

    elements = [fragment for fragment in fragments if not isinstance(fragment, str)]
    leading_text = [fragment for fragment in fragments if isinstance(fragment, str)]
    if len(elements) != 1 or any(text.strip() for text in leading_text):
        return markup

    root = elements[0]
    if root.tail and root.tail.strip():
        return markup

    root.tag = replacement_tag
    root.attrib.clear()
    root.tail = None

    stripped = markup.strip()
    leading = markup[: len(markup) - len(markup.lstrip())]
    trailing = markup[len(leading) + len(stripped) :]
    return f"{leading}{html.tostring(root, encoding='unicode', method='html')}{trailing}"


__all__ = [
    "INTEGRITY_TAGS",
    "document_sections",
    "parse_document",
    "parse_fragments",
    "rewrite_attributes",
    "serialize_fragments",
    "serialize_document",
    "strip_wrapper",
]
