import pytest

from hooktext.hookcode import (
    HookParam,
    HookType,
    generate_hook_code,
    hex_string,
    parse_hook_code,
)

VALID_CODES = [
    "/HQN936#-c*C:C*1C@4AA:gdi.dll:GetTextOutA",
    "/HQN936#-c*C:C*1C@4AA:gdi.dll:GetTextOutA /KF",
    "HB4@0",
    "/RS65001#@44",
    "HQ@4",
]


def test_hex_string_from_source():
    assert hex_string(-12) == "-C"
    assert hex_string(12) == "C"


@pytest.mark.parametrize("code", VALID_CODES)
def test_valid_codes_parse(code):
    hp = parse_hook_code(code)
    assert isinstance(hp.type, HookType)
    assert generate_hook_code(hp)[0] in "RH"


@pytest.mark.parametrize("code", ["/RW@44", "/HWG@33", "", "X@1", "RS@zz", "H", "HB4"])
def test_invalid_codes_raise(code):
    with pytest.raises(ValueError):
        parse_hook_code(code)


def test_full_code_fields():
    hp = parse_hook_code("/HQN936#-c*C:C*1C@4AA:gdi.dll:GetTextOutA")
    assert hp.type & HookType.USING_STRING
    assert hp.type & HookType.USING_UNICODE
    assert hp.type & HookType.NO_CONTEXT
    assert hp.type & HookType.DATA_INDIRECT
    assert hp.type & HookType.SPLIT_INDIRECT
    assert hp.codepage == 936
    assert hp.address == 0x4AA
    assert hp.module == "gdi.dll"
    assert hp.function == "GetTextOutA"


def test_trailing_text_after_slash_is_ignored():
    first = parse_hook_code("/HQN936#-c*C:C*1C@4AA:gdi.dll:GetTextOutA")
    second = parse_hook_code("/HQN936#-c*C:C*1C@4AA:gdi.dll:GetTextOutA /KF")
    assert first == second


def test_generate_full_code_drops_unicode_codepage():
    hp = parse_hook_code("/HQN936#-c*C:C*1C@4AA:gdi.dll:GetTextOutA")
    assert generate_hook_code(hp) == "HQN-C*C:C*1C@4AA:gdi.dll:GetTextOutA"


@pytest.mark.parametrize("code", VALID_CODES)
def test_generate_parse_round_trip(code):
    generated = generate_hook_code(parse_hook_code(code))
    assert generate_hook_code(parse_hook_code(generated)) == generated


def test_negative_offset_round_trips():
    hp = parse_hook_code("HS-8@10")
    assert parse_hook_code(generate_hook_code(hp)).offset == hp.offset


def test_generate_does_not_modify_param():
    hp = HookParam(offset=-16, split=-8, type=HookType.USING_SPLIT)
    generate_hook_code(hp)
    assert hp.offset == -16
    assert hp.split == -8


def test_direct_read_flags():
    assert parse_hook_code("RQ@1").type == HookType.DIRECT_READ | HookType.USING_UNICODE
    assert parse_hook_code("RV@1").type & HookType.USING_UTF8
    assert parse_hook_code("RS3<@1").null_length == 3