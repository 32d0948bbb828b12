import pytest

from livesim.cpix import parse_cpix

KID1 = "11111111-2222-3333-4444-555555555555"
KID2 = "66666666-7777-8888-9999-000000000000"
WV = "urn:uuid:edef8ba9-79d6-4ace-a3c8-27dcd51d21ed"
PR = "urn:uuid:9a04f079-9840-4286-ab92-e65be0885f95"


def _doc(content_id, kids_types):
    keys = "".join(
        f'<cpix:ContentKey kid="{kid}" commonEncryptionScheme="cbcs" explicitIV="AAAAAAAAAAAAAAAAAAAAAA==">'
        f"<cpix:Data><pskc:Secret><pskc:PlainValue>AAECAwQFBgcICQoLDA0ODw==</pskc:PlainValue>"
        f"</pskc:Secret></cpix:Data></cpix:ContentKey>"
        for kid, _ in kids_types
    )
    drms = "".join(
        f'<cpix:DRMSystem kid="{kid}" systemId="{sid}"><cpix:PSSH>cHNzaA==</cpix:PSSH></cpix:DRMSystem>'
        for kid, _ in kids_types
        for sid in (WV, PR)
    )
    rules = "".join(
        f'<cpix:ContentKeyUsageRule kid="{kid}" intendedTrackType="{tt}"/>' for kid, tt in kids_types
    )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<cpix:CPIX xmlns:cpix="urn:dashif:org:cpix" xmlns:pskc="urn:ietf:params:xml:ns:keyprov:pskc" '
        f'contentId="{content_id}">'
        f"<cpix:ContentKeyList>{keys}</cpix:ContentKeyList>"
        f"<cpix:DRMSystemList>{drms}</cpix:DRMSystemList>"
        f"<cpix:ContentKeyUsageRuleList>{rules}</cpix:ContentKeyUsageRuleList>"
        "</cpix:CPIX>"
    ).encode()


@pytest.mark.parametrize(
    "content_id,kids,nr_keys",
    [
        ("livesim2-0001", [(KID1, "Video")], 1),
        ("livesim2-0002", [(KID1, "Video"), (KID2, "Audio")], 2),
    ],
)
def test_parse_cpix(content_id, kids, nr_keys):
    pd = parse_cpix(_doc(content_id, kids))
    assert pd.content_id == content_id
    assert len(pd.content_keys) == nr_keys
    assert len(pd.drm_systems) == 2 * nr_keys
    assert len(pd.usage_rules) == nr_keys


def test_key_fields():
    ck = parse_cpix(_doc("x", [(KID1, "Video")])).content_keys[0]
    assert ck.key_id == bytes.fromhex(KID1.replace("-", ""))
    assert ck.key == bytes(range(16))
    assert ck.explicit_iv == bytes(16)
    assert ck.common_encryption_scheme == "cbcs"


def test_get_content_key_by_type():
    pd = parse_cpix(_doc("x", [(KID1, "Video"), (KID2, "Audio")]))
    assert pd.get_content_key("audio").key_id == bytes.fromhex(KID2.replace("-", ""))
    with pytest.raises(LookupError):
        pd.get_content_key("text")


def test_bad_root():
    with pytest.raises(ValueError, match="unexpected root element"):
        parse_cpix(b"<Other/>")


def test_bad_kid():
    with pytest.raises(ValueError):
        parse_cpix(b'<CPIX><ContentKeyList><ContentKey kid="zz"/></ContentKeyList></CPIX>')