import json

import pytest

from livesim.drmconfig import read_drm_config, to_uuid_str

CPIX = (
    '<CPIX contentId="livesim2-0001">'
    '<ContentKeyList><ContentKey kid="11111111-2222-3333-4444-555555555555" commonEncryptionScheme="cbcs">'
    "<Data><Secret><PlainValue>AAECAwQFBgcICQoLDA0ODw==</PlainValue></Secret></Data></ContentKey></ContentKeyList>"
    "<DRMSystemList>"
    '<DRMSystem kid="11111111-2222-3333-4444-555555555555" systemId="urn:uuid:edef8ba9-79d6-4ace-a3c8-27dcd51d21ed"/>'
    '<DRMSystem kid="11111111-2222-3333-4444-555555555555" systemId="urn:uuid:9a04f079-9840-4286-ab92-e65be0885f95"/>'
    "</DRMSystemList>"
    '<ContentKeyUsageRuleList><ContentKeyUsageRule kid="11111111-2222-3333-4444-555555555555" '
    'intendedTrackType="ALL"/></ContentKeyUsageRuleList>'
    "</CPIX>"
)


def _write(tmp_path, packages):
    (tmp_path / "cpix.xml").write_text(CPIX)
    cfg = tmp_path / "drm.json"
    cfg.write_text(json.dumps({"version": "0.5", "packages": packages}))
    return str(cfg)


def test_read_full_config(tmp_path):
    path = _write(
        tmp_path,
        [{"name": "EZDRM-1-key-cbcs-test", "cpixFile": "cpix.xml",
          "licenseURLs": {"widevine": {"laURL": "https://license.example.com/wv"}}}],
    )
    cfgs = read_drm_config(path)
    assert cfgs.version == "0.5"
    cfg = cfgs.map["EZDRM-1-key-cbcs-test"]
    assert len(cfg.cpix_data.content_keys) == 1
    assert len(cfg.cpix_data.drm_systems) == 2
    assert len(cfg.cpix_data.usage_rules) == 1
    assert cfg.cpix_data.content_id == "livesim2-0001"
    assert cfg.urls["widevine"].la_url == "https://license.example.com/wv"
    assert cfgs.get_config("EZDRM-1-key-cbcs-test") is cfg
    assert cfgs.get_config("missing") is None


def test_missing_cpix_file(tmp_path):
    path = _write(tmp_path, [{"name": "a"}])
    with pytest.raises(ValueError, match="cpixFile is required"):
        read_drm_config(path)


def test_to_uuid_str():
    assert to_uuid_str(bytes(range(16))) == "00010203-0405-0607-0809-0a0b0c0d0e0f"


def test_to_uuid_str_wrong_length():
    with pytest.raises(ValueError):
        to_uuid_str(bytes(range(15)))