"""Myers' diff of two lists of XML elements, as a list of delete/insert operations."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Sequence

Equals = Callable[[ET.Element, ET.Element], bool]


class OpType(IntEnum):
    """Kind of edit operation."""

    DELETE = 0
    INSERT = 1


@dataclass
class Op:
    """One edit operation.

    ``old_pos`` is the position in the old list of the item deleted, or before
    which an item is inserted. ``new_pos`` is the position in the new list of
    an inserted item, and -1 for deletions.
    """

    op_type: OpType
    old_pos: int
    new_pos: int
    elem: ET.Element


def myers_diff(e: Sequence[ET.Element], f: Sequence[ET.Element], equals: Equals) -> list[Op]:
    """Return a minimal list of operations turning list ``e`` into list ``f``."""
    return _diff(list(e), list(f), equals, 0, 0)


def _diff(e: list[ET.Element], f: list[ET.Element], equals: Equals, i: int, j: int) -> list[Op]:
    n_old = len(e)
    n_new = len(f)
    if n_old == 0:
        return [Op(OpType.INSERT, i, j + n, elem) for n, elem in enumerate(f)]
    if n_new == 0:
        return [Op(OpType.DELETE, i + n, -1, elem) for n, elem in enumerate(e)]

    total = n_old + n_new
    size = 2 * min(n_old, n_new) + 2
    w = n_old - n_new
    g = [0] * size
    p = [0] * size
    h_max = total // 2 + total % 2 + 1
    for h in range(h_max):
        for r in range(2):
            if r == 0:
                c, d, o, sign = g, p, 1, 1
            else:
                c, d, o, sign = p, g, 0, -1
            k_min = -(h - 2 * max(0, h - n_new))
            k_max = h - 2 * max(0, h - n_old) + 1
            for k in range(k_min, k_max, 2):
                if k == -h or (k != h and c[(k - 1) % size] < c[(k + 1) % size]):
                    a = c[(k + 1) % size]
                else:
                    a = c[(k - 1) % size] + 1
                b = a - k
                s, t = a, b
                while (
                    a < n_old
                    and b < n_new
                    and equals(
                        e[(1 - o) * n_old + sign * a + (o - 1)],
                        f[(1 - o) * n_new + sign * b + (o - 1)],
                    )
                ):
                    a += 1
                    b += 1
                c[k % size] = a
                z = -(k - w)
                if total % 2 == o and -(h - o) <= z <= h - o and c[k % size] + d[z % size] >= n_old:
                    if o == 1:
                        depth = 2 * h - 1
                        x, y, u, v = s, t, a, b
                    else:
                        depth = 2 * h
                        x, y, u, v = n_old - a, n_new - b, n_old - s, n_new - t
                    if depth > 1 or (x != u and y != v):
                        return _diff(e[:x], f[:y], equals, i, j) + _diff(
                            e[u:n_old], f[v:n_new], equals, i + u, j + v
                        )
                    if n_new > n_old:
                        return _diff([], f[n_old:n_new], equals, i + n_old, j + n_old)
                    if n_new < n_old:
                        return _diff(e[n_new:n_old], [], equals, i + n_new, j + n_new)
                    return []
    raise RuntimeError("diff search ended without a result")


def _text(elem: ET.Element) -> str:
    return elem.text or ""


def equal_leafs(a: ET.Element, b: ET.Element) -> bool:
    """Return True if two leaf elements have the same tag, text and attributes in order."""
    if a.tag != b.tag or _text(a) != _text(b):
        return False
    return list(a.attrib.items()) == list(b.attrib.items())


def same_elements(e1: ET.Element, e2: ET.Element) -> bool:
    """Return True if two elements have the same tag and the same id attribute."""
    return e1.tag == e2.tag and e1.get("id", "") == e2.get("id", "")