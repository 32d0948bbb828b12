"""DRM configuration files referring to CPIX documents."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field

from livesim.cpix import CPIXData, parse_cpix


@dataclass
class LicenseURL:
    """License server URL, and certificate URL for FairPlay."""

    la_url: str = ""
    certificate_url: str = ""


@dataclass
class Package:
    """A named DRM configuration."""

    name: str
    cpix_file: str
    desc: str = ""
    urls: dict[str, LicenseURL] = field(default_factory=dict)
    cpix_data: CPIXData = field(default_factory=CPIXData)


@dataclass
class DrmConfig:
    """All DRM packages from a configuration file."""

    version: str = ""
    packages: list[Package] = field(default_factory=list)
    map: dict[str, Package] = field(default_factory=dict)

    def get_config(self, name: str) -> Package | None:
        """Return the package named ``name``, or None."""
        return next((p for p in self.packages if p.name == name), None)


def read_drm_config(path: str) -> DrmConfig:
    """Read a JSON DRM configuration and the CPIX files it names."""
    try:
        with open(path, encoding="utf-8") as fh:
            raw = fh.read()
    except OSError as exc:
        raise OSError(f"failed to read file: {exc}") from exc
    try:
        obj = json.loads(raw)
        if not isinstance(obj, dict):
            raise ValueError("top level is not an object")
        pkgs_raw = obj.get("packages") or []
        packages = [
            Package(
                name=str(p.get("name", "")),
                cpix_file=str(p.get("cpixFile", "")),
                desc=str(p.get("desc", "")),
                urls={
                    k: LicenseURL(la_url=v.get("laURL", ""), certificate_url=v.get("certURL", ""))
                    for k, v in (p.get("licenseURLs") or {}).items()
                },
            )
            for p in pkgs_raw
        ]
    except (ValueError, AttributeError, TypeError) as exc:
        raise ValueError(f"failed to unmarshal JSON: {exc}") from exc
    cfg = DrmConfig(version=str(obj.get("version", "")), packages=packages)
    for pkg in packages:
        cpix_path = pkg.cpix_file
        if not cpix_path:
            raise ValueError("cpixFile is required")
        if not os.path.isabs(cpix_path):
            cpix_path = os.path.join(os.path.dirname(path), cpix_path)
        try:
            with open(cpix_path, "rb") as fh:
                cpix_raw = fh.read()
        except OSError as exc:
            raise OSError(f"failed to read CPIX file: {exc}") from exc
        try:
            pkg.cpix_data = parse_cpix(cpix_raw)
        except ValueError as exc:
            raise ValueError(f"failed to parse CPIX: {exc}") from exc
        cfg.map[pkg.name] = pkg
    return cfg


def to_uuid_str(raw: bytes) -> str:
    """Format 16 bytes as a dashed UUID string."""
    if len(raw) != 16:
        raise ValueError(f"invalid UUID length: {len(raw)}")
    h = bytes(raw).hex()
    return f"{h[0:8]}-{h[8:12]}-{h[12:16]}-{h[16:20]}-{h[20:]}"