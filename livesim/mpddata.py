"""Relation between MPD names and the URIs they were originally fetched from."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass

MPD_LIST_FILE = "mpdlist.json"


@dataclass
class MPDData:
    """Name of an MPD and the URI it originates from.

    Only ``name`` and ``orig_uri`` are stored on disk; the other fields are
    filled in at run time.
    """

    name: str
    orig_uri: str = ""
    title: str = ""
    dur: str = ""
    mpd_str: str = ""

    def to_json(self) -> dict:
        return {"name": self.name, "originURI": self.orig_uri}

    @classmethod
    def from_json(cls, obj: dict) -> "MPDData":
        if not isinstance(obj, dict):
            raise ValueError(f"expected an object, got {type(obj).__name__}")
        return cls(name=str(obj.get("name", "")), orig_uri=str(obj.get("originURI", "")))


def _load_list(raw: str) -> list[MPDData]:
    entries = json.loads(raw)
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise ValueError("MPD list is not a JSON array")
    return [MPDData.from_json(entry) for entry in entries]


def write_mpd_data(dir_path, name, uri) -> None:
    """Append an entry for ``name`` and ``uri`` to the MPD list file in ``dir_path``."""
    file_path = os.path.join(dir_path, MPD_LIST_FILE)
    mpds: list[MPDData] = []
    if os.path.exists(file_path):
        with open(file_path, encoding="utf-8") as fh:
            mpds = _load_list(fh.read())
    mpds.append(MPDData(name=name, orig_uri=uri))
    with open(file_path, "w", encoding="utf-8") as fh:
        fh.write(json.dumps([m.to_json() for m in mpds], indent=2))


def read_mpd_data(vod_root, mpd_path) -> MPDData:
    """Look up the stored data for ``mpd_path`` below ``vod_root``.

    If there is no list file, or it cannot be parsed, or the MPD is not in it,
    an entry holding only the MPD name is returned.
    """
    asset_path, _, mpd_name = str(mpd_path).rpartition("/")
    default = MPDData(name=mpd_name)
    list_path = os.path.join(vod_root, asset_path, MPD_LIST_FILE)
    try:
        with open(list_path, encoding="utf-8") as fh:
            entries = _load_list(fh.read())
    except (OSError, ValueError):
        return default
    return next((m for m in entries if m.name == mpd_name), default)