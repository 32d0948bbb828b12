"""Creation of MPD patch documents describing the change between two MPDs."""

from __future__ import annotations

import copy
import re
import xml.etree.ElementTree as ET
from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from xml.parsers import expat

from livesim.myers import OpType, equal_leafs, myers_diff, same_elements

PATCH_EXPIRATION_MARGIN = timedelta(seconds=10)

_INDENT = "  "
_WHITESPACE = " \t\r\n"
_ID_TAGS = frozenset({"MPD", "Period", "AdaptationSet", "Representation", "SubRepresentation"})
_RFC3339 = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:\d{2})$"
)
_INTEGER = re.compile(r"^[+-]?\d+$")


class PatchError(ValueError):
    """A patch could not be created."""


class PatchSamePublishTimeError(PatchError):
    """Both MPDs have the same publishTime."""

    def __init__(self, message: str = "same publishTime in both MPDs"):
        super().__init__(message)


class PatchTooLateError(PatchError):
    """The new MPD is published later than the old patch location allows."""

    def __init__(self, message: str = "patch TTL exceeded"):
        super().__init__(message)


@dataclass
class AttrChange:
    """Attributes added, removed and changed, as (name, value) pairs."""

    added: list[tuple[str, str]] = field(default_factory=list)
    removed: list[tuple[str, str]] = field(default_factory=list)
    changed: list[tuple[str, str]] = field(default_factory=list)


def _split_name(name: str) -> tuple[str, str]:
    space, sep, key = name.partition(":")
    return (space, key) if sep else ("", name)


def _local(tag: str) -> str:
    return _split_name(tag)[1]


def _text(elem: ET.Element) -> str:
    return elem.text or ""


def _parse_xml(raw: bytes | str, what: str) -> ET.Element:
    """Parse XML keeping prefixed names and namespace declarations as they are written."""
    data = raw.encode("utf-8") if isinstance(raw, str) else bytes(raw)
    parser = expat.ParserCreate()
    parser.ordered_attributes = True
    parser.buffer_text = True
    stack: list[ET.Element] = []
    roots: list[ET.Element] = []

    def start(name: str, attrs: list[str]) -> None:
        elem = ET.Element(name, dict(zip(attrs[::2], attrs[1::2])))
        if stack:
            stack[-1].append(elem)
        else:
            roots.append(elem)
        stack.append(elem)

    def end(_name: str) -> None:
        stack.pop()

    def chars(text: str) -> None:
        if not stack:
            return
        current = stack[-1]
        if len(current):
            last = current[-1]
            last.tail = (last.tail or "") + text
        else:
            current.text = (current.text or "") + text

    parser.StartElementHandler = start
    parser.EndElementHandler = end
    parser.CharacterDataHandler = chars
    try:
        parser.Parse(data, True)
    except expat.ExpatError as exc:
        raise PatchError(f"failed to read {what}: {exc}") from exc
    if not roots:
        raise PatchError(f"failed to read {what}: no root element")
    return roots[0]


def _parse_rfc3339(value: str) -> datetime:
    m = _RFC3339.match(value)
    if m is None:
        raise ValueError(f"cannot parse {value!r} as RFC3339 time")
    year, month, day, hour, minute, second = (int(g) for g in m.groups()[:6])
    micro = int((m.group(7) or "0")[:6].ljust(6, "0"))
    zone = m.group(8)
    if zone == "Z":
        tz = timezone.utc
    else:
        sign = 1 if zone[0] == "+" else -1
        tz = timezone(sign * timedelta(hours=int(zone[1:3]), minutes=int(zone[4:6])))
    return datetime(year, month, day, hour, minute, second, micro, tzinfo=tz)


def _check_patch_conditions(old_root: ET.Element, new_root: ET.Element) -> datetime:
    if _local(old_root.tag) != "MPD" or _local(new_root.tag) != "MPD":
        raise PatchError("not MPD root element in both MPDs")
    new_publish_time = new_root.get("publishTime", "")
    old_publish_time = old_root.get("publishTime", "")
    if not new_publish_time or not old_publish_time:
        raise PatchError("lacking publishTime attribute in MPD")
    if new_publish_time == old_publish_time:
        raise PatchSamePublishTimeError()
    patch_location = next((c for c in old_root if _local(c.tag) == "PatchLocation"), None)
    if patch_location is None:
        raise PatchError("no PatchLocation element in old MPD")
    ttl_str = patch_location.get("ttl")
    if ttl_str is None:
        raise PatchError("no ttl attribute in PatchLocation element in old MPD")
    if not _INTEGER.match(ttl_str):
        raise PatchError(
            f"failed to convert ttl attribute in PatchLocation element in old MPD: invalid syntax {ttl_str!r}"
        )
    ttl = int(ttl_str)
    try:
        old_pt = _parse_rfc3339(old_publish_time)
    except ValueError as exc:
        raise PatchError(f"failed to parse old publishTime: {exc}") from exc
    try:
        new_pt = _parse_rfc3339(new_publish_time)
    except ValueError as exc:
        raise PatchError(f"failed to parse new publishTime: {exc}") from exc
    expiration = old_pt + timedelta(seconds=ttl) + PATCH_EXPIRATION_MARGIN
    if new_pt > expiration:
        raise PatchTooLateError()
    return expiration


def _new_patch_root(old_root: ET.Element, new_root: ET.Element) -> ET.Element:
    old_id = old_root.get("id", "")
    new_id = new_root.get("id", "")
    if not old_id or new_id != old_id:
        raise PatchError("not the same non-empty id in both MPDs")
    old_publish_time = old_root.get("publishTime", "")
    if not old_publish_time:
        raise PatchError("no publishTime attribute in old MPD")
    new_publish_time = new_root.get("publishTime", "")
    if not new_publish_time:
        raise PatchError("no publishTime attribute in new MPD")
    return ET.Element(
        "Patch",
        {
            "xmlns": "urn:mpeg:dash:schema:mpd-patch:2020",
            "xmlns:xsi": "http://www.w3.org/2001/XMLSchema-instance",
            "xsi:schemaLocation": "urn:mpeg:dash:schema:mpd-patch:2020 DASH-MPD-PATCH.xsd",
            "mpdId": old_id,
            "originalPublishTime": old_publish_time,
            "publishTime": new_publish_time,
        },
    )


def mpd_diff(mpd_old: bytes | str, mpd_new: bytes | str) -> tuple[ET.Element, datetime]:
    """Compare two MPDs and return the root of a patch document and its expiration time.

    Raises PatchSamePublishTimeError, PatchTooLateError or another PatchError
    when no patch can be made.
    """
    old_root = _parse_xml(mpd_old, "old MPD")
    new_root = _parse_xml(mpd_new, "new MPD")
    expiration = _check_patch_conditions(old_root, new_root)
    try:
        patch_root = _new_patch_root(old_root, new_root)
    except PatchError as exc:
        raise PatchError(f"failed to create patch doc: {exc}") from exc
    _add_elem_changes(patch_root, old_root, new_root, "/MPD")
    return patch_root, expiration


def _escape(text: str) -> str:
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace("'", "&apos;")
        .replace('"', "&quot;")
    )


def _is_blank(text: str | None) -> bool:
    return not text or text.strip(_WHITESPACE) == ""


def _write_element(elem: ET.Element, level: int, out: list[str]) -> None:
    attrs = "".join(f' {name}="{_escape(value)}"' for name, value in elem.attrib.items())
    out.append(f"<{elem.tag}{attrs}")
    tokens: list[str | ET.Element] = []
    if not _is_blank(elem.text):
        tokens.append(elem.text)
    for child in elem:
        tokens.append(child)
        if not _is_blank(child.tail):
            tokens.append(child.tail)
    if not tokens:
        out.append("/>")
        return
    out.append(">")
    last_is_element = False
    for token in tokens:
        if isinstance(token, str):
            out.append(_escape(token))
            last_is_element = False
        else:
            out.append("\n" + _INDENT * (level + 1))
            _write_element(token, level + 1, out)
            last_is_element = True
    if last_is_element:
        out.append("\n" + _INDENT * level)
    out.append(f"</{elem.tag}>")


def serialize_patch(root: ET.Element) -> str:
    """Serialize a patch root as an XML document indented by two spaces."""
    out = ['<?xml version="1.0" encoding="UTF-8"?>', "\n"]
    _write_element(root, 0, out)
    out.append("\n")
    return "".join(out)


def _attr_pairs(attrs: Mapping[str, str] | Iterable[tuple[str, str]]) -> list[tuple[str, str]]:
    if isinstance(attrs, Mapping):
        return list(attrs.items())
    return [(name, value) for name, value in attrs]


def compare_attributes(
    old: Mapping[str, str] | Iterable[tuple[str, str]],
    new: Mapping[str, str] | Iterable[tuple[str, str]],
) -> AttrChange:
    """Compare two attribute sets by name, ordered by namespace prefix and local name."""

    def sort_key(attr: tuple[str, str]) -> tuple[str, str]:
        return _split_name(attr[0])

    old_sorted = sorted(_attr_pairs(old), key=sort_key)
    new_sorted = sorted(_attr_pairs(new), key=sort_key)
    change = AttrChange()
    o_idx = n_idx = 0
    while o_idx < len(old_sorted) or n_idx < len(new_sorted):
        if o_idx < len(old_sorted) and n_idx < len(new_sorted):
            o_key, n_key = sort_key(old_sorted[o_idx]), sort_key(new_sorted[n_idx])
            cmp = (o_key > n_key) - (o_key < n_key)
        elif o_idx < len(old_sorted):
            cmp = -1
        else:
            cmp = 1
        if cmp < 0:
            change.removed.append(old_sorted[o_idx])
            o_idx += 1
        elif cmp == 0:
            if old_sorted[o_idx][1] != new_sorted[n_idx][1]:
                change.changed.append(new_sorted[n_idx])
            o_idx += 1
            n_idx += 1
        else:
            change.added.append(new_sorted[n_idx])
            n_idx += 1
    return change


def calc_addr(elem: ET.Element, elem_idx: int) -> str:
    """Return the address of an element for a patch selector.

    Uses the id or schemeIdUri attribute when present, the bare tag for
    SegmentTimeline and SegmentTemplate, and otherwise a one-based index.
    """
    tag = _local(elem.tag)
    elem_id = elem.get("id", "")
    if elem_id:
        return f"{tag}[@id='{elem_id}']"
    scheme_id_uri = elem.get("schemeIdUri", "")
    if scheme_id_uri:
        return f"{tag}[@schemeIdUri='{scheme_id_uri}']"
    if tag in ("SegmentTimeline", "SegmentTemplate"):
        return tag
    return f"{tag}[{elem_idx + 1}]"


def _copy(elem: ET.Element) -> ET.Element:
    dup = copy.deepcopy(elem)
    dup.tail = None
    return dup


def _add_attr_changes(patch_root: ET.Element, old: ET.Element, new: ET.Element, path: str) -> None:
    change = compare_attributes(old.attrib, new.attrib)
    for op_name, attrs in (("replace", change.changed), ("add", change.added), ("remove", change.removed)):
        for name, value in attrs:
            e = ET.SubElement(patch_root, op_name, {"sel": f"{path}/@{_split_name(name)[1]}"})
            e.text = value


def _check_mandatory_id(elem: ET.Element) -> None:
    tag = _local(elem.tag)
    if tag in _ID_TAGS and elem.get("id") is None:
        raise PatchError(f"id attribute missing in {tag}")


def _add_leaf_changes(patch_root: ET.Element, old: ET.Element, new: ET.Element, path: str) -> None:
    if _text(old) != _text(new):
        e = ET.SubElement(patch_root, "replace", {"sel": path})
        e.append(_copy(new))
        return
    _add_attr_changes(patch_root, old, new, path)


def _add_leaf_list_changes(patch_root: ET.Element, old: ET.Element, new: ET.Element, path: str) -> None:
    old_elems, new_elems = list(old), list(new)
    if not old_elems and not new_elems:
        return
    tag = _local((old_elems or new_elems)[0].tag)
    for e in (*old_elems, *new_elems):
        if _local(e.tag) != tag:
            raise PatchError(f'other tag "{_local(e.tag)}" in list of "{tag}"')
        if len(e):
            raise PatchError(f'leaf list element "{tag}" has children')
    old_idx = 0
    offset = 0
    for op in myers_diff(old_elems, new_elems, equal_leafs):
        old_idx = max(old_idx, op.old_pos)
        if op.old_pos != old_idx:
            continue
        if op.op_type == OpType.DELETE:
            addr = calc_addr(old_elems[op.old_pos], old_idx + offset)
            ET.SubElement(patch_root, "remove", {"sel": f"{path}/{addr}"})
            old_idx += 1
            offset -= 1
        else:
            new_elem = new_elems[op.new_pos]
            new_pos = old_idx + offset
            if new_pos == 0:
                attrs = {"sel": path, "pos": "prepend"}
            else:
                attrs = {"sel": f"{path}/{calc_addr(new_elem, new_pos - 1)}", "pos": "after"}
            ET.SubElement(patch_root, "add", attrs).append(_copy(new_elem))
            offset += 1


def _add_elem_changes(patch_root: ET.Element, old: ET.Element, new: ET.Element, path: str) -> None:
    old_tag, new_tag = _local(old.tag), _local(new.tag)
    if old_tag != new_tag:
        raise PatchError(f'different tags "{old_tag}" and "{new_tag}"')
    _check_mandatory_id(old)
    _check_mandatory_id(new)
    if old_tag == "SegmentTimeline":
        _add_leaf_list_changes(patch_root, old, new, path)
        return
    if not len(old) and not len(new):
        _add_leaf_changes(patch_root, old, new, path)
        return
    try:
        _add_attr_changes(patch_root, old, new, path)
    except PatchError as exc:
        raise PatchError(f"addAttrChanges for {path}: {exc}") from exc

    old_children, new_children = list(old), list(new)
    last_new_idx: Counter[str] = Counter()
    old_idx = 0
    new_idx = 0
    last_new_path = ""

    def keep_next() -> None:
        nonlocal old_idx, new_idx, last_new_path
        old_elem = old_children[old_idx]
        tag = _local(old_elem.tag)
        child_path = f"{path}/{calc_addr(old_elem, last_new_idx[tag])}"
        try:
            _add_elem_changes(patch_root, old_elem, new_children[new_idx], child_path)
        except PatchError as exc:
            raise PatchError(f"addElemChanges for {child_path}: {exc}") from exc
        last_new_idx[tag] += 1
        last_new_path = child_path
        old_idx += 1
        new_idx += 1

    for op in myers_diff(old_children, new_children, same_elements):
        while op.old_pos > old_idx:
            keep_next()
        if op.old_pos != old_idx:
            continue
        if op.op_type == OpType.DELETE:
            addr = calc_addr(old_children[op.old_pos], old_idx)
            ET.SubElement(patch_root, "remove", {"sel": f"{path}/{addr}"})
            old_idx += 1
        else:
            new_elem = new_children[op.new_pos]
            tag = _local(new_elem.tag)
            new_path = f"{path}/{calc_addr(new_elem, last_new_idx[tag])}"
            if not last_new_path:
                # Insertion at the start always prepends, since the list may be empty.
                attrs = {"sel": path, "pos": "prepend"}
            else:
                attrs = {"sel": last_new_path, "pos": "after"}
            ET.SubElement(patch_root, "add", attrs).append(_copy(new_elem))
            last_new_path = new_path
            last_new_idx[tag] += 1
            new_idx += 1
    while old_idx < len(old_children):
        keep_next()