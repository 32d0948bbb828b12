"""Parsing of CPIX documents holding content keys and DRM system data."""

from __future__ import annotations

import base64
import binascii
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field

DRM_NAMES = {
    "urn:uuid:edef8ba9-79d6-4ace-a3c8-27dcd51d21ed": "widevine",
    "urn:uuid:9a04f079-9840-4286-ab92-e65be0885f95": "playready",
    "urn:uuid:94ce86fb-07ff-4f43-adb8-93d2fa968ca2": "fairplay",
}

SYSTEM_IDS = {name: sid for sid, name in DRM_NAMES.items()}

CONTENT_PROTECTION_VALUES = {
    "urn:uuid:edef8ba9-79d6-4ace-a3c8-27dcd51d21ed": "Widevine",
    "urn:uuid:9a04f079-9840-4286-ab92-e65be0885f95": "MSPR 2.0",
    "urn:uuid:94ce86fb-07ff-4f43-adb8-93d2fa968ca2": "Fairplay",
}


@dataclass
class ContentKey:
    """A content key with its 16-byte key id."""

    key_id: bytes
    key: bytes = b""
    explicit_iv: bytes = b""
    common_encryption_scheme: str = ""


@dataclass
class DRMSystem:
    """DRM system signalling for one key id."""

    system_id: str
    key_id: bytes
    pssh: str = ""
    smooth_streaming_protection_header_data: str = ""


@dataclass
class ContentKeyUsageRule:
    """Which track type a key is intended for."""

    key_id: bytes
    intended_track_type: str = ""


@dataclass
class CPIXData:
    """Everything needed from a CPIX document to encrypt media."""

    content_id: str = ""
    content_keys: list[ContentKey] = field(default_factory=list)
    drm_systems: list[DRMSystem] = field(default_factory=list)
    usage_rules: list[ContentKeyUsageRule] = field(default_factory=list)

    def get_content_key(self, content_type: str) -> ContentKey:
        """Return the key for ``content_type``; a single key serves every type."""
        if len(self.content_keys) == 1:
            return self.content_keys[0]
        key_id = next(
            (ur.key_id for ur in self.usage_rules if ur.intended_track_type.lower() == content_type),
            b"",
        )
        if key_id:
            for ck in self.content_keys:
                if ck.key_id == key_id:
                    return ck
        raise LookupError(f"no key found for content type {content_type!r}")


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _children(elem: ET.Element, *path: str) -> list[ET.Element]:
    current = [elem]
    for name in path:
        current = [child for parent in current for child in parent if _local(child.tag) == name]
    return current


def _first(elem: ET.Element, *path: str) -> ET.Element | None:
    found = _children(elem, *path)
    return found[0] if found else None


def _attr(elem: ET.Element, key: str) -> str:
    return elem.get(key, "")


def _uuid_from_hex(text: str) -> bytes:
    hex_str = text.replace("-", "")
    if len(hex_str) != 32:
        raise ValueError(f"failed to parse key ID: bad UUID {text!r}")
    try:
        return bytes.fromhex(hex_str)
    except ValueError as exc:
        raise ValueError(f"failed to parse key ID: {exc}") from exc


def _b64(text: str) -> bytes:
    return base64.b64decode("".join(text.split()), validate=True)


def parse_cpix(raw: bytes | str) -> CPIXData:
    """Parse a CPIX XML document. Raises ValueError on malformed input."""
    try:
        root = ET.fromstring(raw)
    except ET.ParseError as exc:
        raise ValueError(f"failed to parse CPIX XML: {exc}") from exc
    if _local(root.tag) != "CPIX":
        raise ValueError(f"unexpected root element: {_local(root.tag)}")
    cpd = CPIXData(content_id=_attr(root, "contentId"))
    for ke in _children(root, "ContentKeyList", "ContentKey"):
        ck = ContentKey(
            key_id=_uuid_from_hex(_attr(ke, "kid")),
            common_encryption_scheme=_attr(ke, "commonEncryptionScheme"),
        )
        iv = _attr(ke, "explicitIV")
        if iv:
            try:
                ck.explicit_iv = _b64(iv)
            except binascii.Error as exc:
                raise ValueError(f"failed to decode base64 IV: {exc}") from exc
        pv = _first(ke, "Data", "Secret", "PlainValue")
        if pv is not None:
            text = pv.text or ""
            try:
                ck.key = _b64(text)
            except binascii.Error as exc:
                raise ValueError(f"failed to decode base64 key {text!r}: {exc}") from exc
        cpd.content_keys.append(ck)
    for ds in _children(root, "DRMSystemList", "DRMSystem"):
        drm = DRMSystem(system_id=_attr(ds, "systemId"), key_id=_uuid_from_hex(_attr(ds, "kid")))
        pssh = _first(ds, "PSSH")
        if pssh is not None:
            drm.pssh = pssh.text or ""
        mss = _first(ds, "SmoothStreamingProtectionHeaderData")
        if mss is not None:
            drm.smooth_streaming_protection_header_data = mss.text or ""
        cpd.drm_systems.append(drm)
    for ur in _children(root, "ContentKeyUsageRuleList", "ContentKeyUsageRule"):
        cpd.usage_rules.append(
            ContentKeyUsageRule(
                key_id=_uuid_from_hex(_attr(ur, "kid")),
                intended_track_type=_attr(ur, "intendedTrackType"),
            )
        )
    return cpd