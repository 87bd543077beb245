"""Structural XML merge and deterministic serialization.

`merge(target, patch)` folds the children of `patch` into `target`:

* an element is identified by its tag plus the identifying attributes it
  carries (`KEY_ATTRIBUTES`); `<requestHandler name="/select">` only matches
  another `requestHandler` named `/select`;
* an element without identifying attributes is identified by tag and text
  when it is a leaf (`<str>terms</str>`), by tag alone when it has children;
* a single match is merged in place (patch attributes win, non-blank patch
  text wins, children merged recursively);
* no match appends a copy of the patch element;
* more than one match is ambiguous and raises MergeConflict.

Applying the same patch twice is a no-op the second time.
"""

import copy
import re
import xml.etree.ElementTree as ET
from typing import List, Tuple
from .errors import MergeConflict

KEY_ATTRIBUTES = ("name", "id")
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8" ?>'
INDENT = "  "

_DECLARATION_RE = re.compile(r"^\s*<\?xml\s[^>]*\?>\s*")


def parse(data) -> ET.Element:
    """Parse text or bytes keeping comments (solrconfig.xml is mostly comments)."""
    parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True))
    if isinstance(data, str):
        # a str already has its encoding resolved; the declaration would confuse expat
        data = _DECLARATION_RE.sub("", data.lstrip("\ufeff"), count=1)
    parser.feed(data)
    return parser.close()


def _is_element(node: ET.Element) -> bool:
    return isinstance(node.tag, str)  # comments and PIs carry a factory as tag


def _text(node: ET.Element) -> str:
    return (node.text or "").strip()


def _children(node: ET.Element) -> List[ET.Element]:
    return [c for c in node if _is_element(c)]


def _identity(node: ET.Element) -> Tuple[Tuple[str, str], ...]:
    return tuple((a, node.get(a)) for a in KEY_ATTRIBUTES if node.get(a) is not None)


def _describe(node: ET.Element) -> str:
    attrs = "".join(f' {k}="{v}"' for k, v in _identity(node))
    return f"<{node.tag}{attrs}>" + (f"{_text(node)}</{node.tag}>" if not _children(node) and _text(node) else "")


def _matches(candidate: ET.Element, patch: ET.Element) -> bool:
    if candidate.tag != patch.tag:
        return False
    key = _identity(patch)
    if key:
        return all(candidate.get(a) == v for a, v in key)
    if _identity(candidate):
        return False
    if _children(patch):
        return True
    return _text(candidate) == _text(patch)


def _merge_into(target: ET.Element, patch: ET.Element, path: str) -> None:
    for k, v in patch.attrib.items():
        target.set(k, v)
    if not _children(patch) and _text(patch):
        target.text = patch.text
    for child in _children(patch):
        found = [c for c in _children(target) if _matches(c, child)]
        if len(found) > 1:
            raise MergeConflict(f"{path}/{_describe(child)} matches {len(found)} elements; cannot merge unambiguously")
        if found:
            _merge_into(found[0], child, f"{path}/{child.tag}")
        else:
            target.append(_strip_comments(copy.deepcopy(child)))


def _strip_comments(node: ET.Element) -> ET.Element:
    for c in list(node):
        if _is_element(c):
            _strip_comments(c)
        else:
            node.remove(c)
    return node


def merge(target: ET.Element, patch: ET.Element) -> ET.Element:
    """Merge `patch` into `target` in place and return `target`."""
    if target.tag != patch.tag:
        raise MergeConflict(f"cannot merge <{patch.tag}> into document rooted at <{target.tag}>")
    _merge_into(target, patch, target.tag)
    return target


def normalize(root: ET.Element) -> str:
    """Indented text with exactly one fixed UTF-8 declaration (Solr requires UTF-8)."""
    root = copy.deepcopy(root)
    root.tail = None
    _reset_whitespace(root)
    ET.indent(root, space=INDENT)
    body = ET.tostring(root, encoding="unicode")
    return f"{XML_DECLARATION}\n{body}\n"


def _reset_whitespace(node: ET.Element) -> None:
    # blank text/tails are layout; drop them so indent() decides alone
    if node.text is not None and not node.text.strip() and len(node):
        node.text = None
    for c in node:
        if c.tail is not None and not c.tail.strip():
            c.tail = None
        _reset_whitespace(c)
