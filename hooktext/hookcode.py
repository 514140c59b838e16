"""Hook codes: the textual form of a hook's parameters, parsed and generated."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, replace

_NULL_LENGTH = re.compile(r"([0-9]+)<")
_CODEPAGE = re.compile(r"([0-9]+)#")
_PADDING = re.compile(r"([0-9A-Fa-f]+)\+")
_HEX_INT = re.compile(r"\s*([+-]?)(?:0[xX](?=[0-9A-Fa-f]))?([0-9A-Fa-f]+)")
_R_ADDRESS = re.compile(r"@([0-9A-Fa-f]+)")
_H_ADDRESS = re.compile(r"@([0-9A-Fa-f]+)(:.+?)?(:.+)?")

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1
_UINT64_LIMIT = 2**64
_INT64_LIMIT = 2**63

# ITH numbers registers 4 lower than AGTH, which hook codes follow.
_REGISTER_SHIFT = 4


class HookType(enum.IntFlag):
    USING_STRING = 0x1
    USING_UNICODE = 0x2
    BIG_ENDIAN = 0x4
    DATA_INDIRECT = 0x8
    USING_SPLIT = 0x10
    SPLIT_INDIRECT = 0x20
    MODULE_OFFSET = 0x40
    FUNCTION_OFFSET = 0x80
    NO_CONTEXT = 0x100
    HEX_DUMP = 0x200
    FULL_STRING = 0x400
    DIRECT_READ = 0x800
    USING_UTF8 = 0x1000
    HOOK_ENGINE = 0x2000


@dataclass
class HookParam:
    address: int = 0
    offset: int = 0
    index: int = 0
    split: int = 0
    split_index: int = 0
    null_length: int = 0
    length_offset: int = 0
    codepage: int = 0
    padding: int = 0
    type: HookType = HookType(0)
    module: str = ""
    function: str = ""
    name: str = ""
    custom_functions: bool = False


def hex_string(num: int) -> str:
    """Upper-case hexadecimal, with a leading minus for negative numbers."""
    if num < 0:
        return f"-{-num:X}"
    return f"{num:X}"


def _signed64(num: int) -> int:
    num %= _UINT64_LIMIT
    return num - _UINT64_LIMIT if num >= _INT64_LIMIT else num


def _invalid(code: str) -> ValueError:
    return ValueError(f"invalid hook code: {code!r}")


def _address(digits: str, code: str) -> int:
    value = int(digits, 16)
    if value >= _UINT64_LIMIT:
        raise _invalid(code)
    return value


def _take_number(pattern: re.Pattern, code: str) -> tuple[int | None, str]:
    match = pattern.match(code)
    if match is None:
        return None, code
    return int(match.group(1)), code[match.end():]


def _consume_hex_int(code: str, original: str) -> tuple[int, str]:
    match = _HEX_INT.match(code)
    if match is None:
        return 0, code
    value = int(match.group(2), 16)
    if match.group(1) == "-":
        value = -value
    if not _INT32_MIN <= value <= _INT32_MAX:
        raise _invalid(original)
    return value, code[match.end():]


def _parse_r_code(code: str, original: str) -> HookParam:
    hp = HookParam(type=HookType.DIRECT_READ)
    kinds = {
        "S": HookType(0),
        "Q": HookType.USING_UNICODE,
        "V": HookType.USING_UTF8,
        "M": HookType.USING_UNICODE | HookType.HEX_DUMP,
    }
    if not code or code[0] not in kinds:
        raise _invalid(original)
    hp.type |= kinds[code[0]]
    code = code[1:]

    null_length, code = _take_number(_NULL_LENGTH, code)
    if null_length is not None:
        hp.null_length = null_length
    codepage, code = _take_number(_CODEPAGE, code)
    if codepage is not None:
        hp.codepage = codepage

    match = _R_ADDRESS.fullmatch(code)
    if match is None:
        raise _invalid(original)
    hp.address = _address(match.group(1), original)
    return hp


def _parse_h_code(code: str, original: str) -> HookParam:
    hp = HookParam()
    kinds = {
        "A": (HookType.BIG_ENDIAN, 1),
        "B": (HookType(0), 1),
        "W": (HookType.USING_UNICODE, 1),
        "H": (HookType.USING_UNICODE | HookType.HEX_DUMP, 1),
        "S": (HookType.USING_STRING, 0),
        "Q": (HookType.USING_STRING | HookType.USING_UNICODE, 0),
        "V": (HookType.USING_STRING | HookType.USING_UTF8, 0),
        "M": (HookType.USING_STRING | HookType.USING_UNICODE | HookType.HEX_DUMP, 0),
    }
    if not code or code[0] not in kinds:
        raise _invalid(original)
    hp.type, hp.length_offset = kinds[code[0]]
    code = code[1:]

    if hp.type & HookType.USING_STRING:
        if code.startswith("F"):
            hp.type |= HookType.FULL_STRING
            code = code[1:]
        null_length, code = _take_number(_NULL_LENGTH, code)
        if null_length is not None:
            hp.null_length = null_length

    if code.startswith("N"):
        hp.type |= HookType.NO_CONTEXT
        code = code[1:]

    codepage, code = _take_number(_CODEPAGE, code)
    if codepage is not None:
        hp.codepage = codepage

    match = _PADDING.match(code)
    if match is not None:
        hp.padding = _address(match.group(1), original)
        code = code[match.end():]

    hp.offset, code = _consume_hex_int(code, original)

    if code.startswith("*"):
        hp.type |= HookType.DATA_INDIRECT
        hp.index, code = _consume_hex_int(code[1:], original)

    if code.startswith(":"):
        hp.type |= HookType.USING_SPLIT
        hp.split, code = _consume_hex_int(code[1:], original)
        if code.startswith("*"):
            hp.type |= HookType.SPLIT_INDIRECT
            hp.split_index, code = _consume_hex_int(code[1:], original)

    match = _H_ADDRESS.fullmatch(code)
    if match is None:
        raise _invalid(original)
    hp.address = _address(match.group(1), original)
    if match.group(2) is not None:
        hp.type |= HookType.MODULE_OFFSET
        hp.module = match.group(2)[1:]
    if match.group(3) is not None:
        hp.type |= HookType.FUNCTION_OFFSET
        hp.function = match.group(3)[1:]

    if hp.offset < 0:
        hp.offset -= _REGISTER_SHIFT
    if hp.split < 0:
        hp.split -= _REGISTER_SHIFT
    return hp


def parse_hook_code(code: str) -> HookParam:
    """Parse an R (direct read) or H (hook) code.

    A leading slash is allowed and anything from the next slash on is
    ignored. Raises ValueError if the code is not valid.
    """
    text = code[1:] if code.startswith("/") else code
    text = text.split("/", 1)[0].strip()
    if text.startswith("R"):
        return _parse_r_code(text[1:], code)
    if text.startswith("H"):
        return _parse_h_code(text[1:], code)
    raise _invalid(code)


def _generate_r_code(hp: HookParam) -> str:
    parts = ["R"]
    if hp.type & HookType.USING_UNICODE:
        parts.append("M" if hp.type & HookType.HEX_DUMP else "Q")
        if hp.null_length:
            parts.append(f"{hp.null_length}<")
    else:
        parts.append("S")
        if hp.null_length:
            parts.append(f"{hp.null_length}<")
        if hp.codepage:
            parts.append(f"{hp.codepage}#")
    parts.append("@" + hex_string(_signed64(hp.address)))
    return "".join(parts)


def _generate_h_code(hp: HookParam) -> str:
    kind = hp.type
    parts = ["H"]
    if kind & HookType.USING_UNICODE:
        if kind & HookType.HEX_DUMP:
            parts.append("M" if kind & HookType.USING_STRING else "H")
        else:
            parts.append("Q" if kind & HookType.USING_STRING else "W")
    elif kind & HookType.USING_STRING:
        parts.append("S")
    elif kind & HookType.BIG_ENDIAN:
        parts.append("A")
    else:
        parts.append("B")

    if kind & HookType.FULL_STRING:
        parts.append("F")
    if hp.null_length:
        parts.append(f"{hp.null_length}<")
    if kind & HookType.NO_CONTEXT:
        parts.append("N")
    if hp.custom_functions:
        parts.append("X")
    if hp.codepage and not kind & HookType.USING_UNICODE:
        parts.append(f"{hp.codepage}#")
    if hp.padding:
        parts.append(hex_string(_signed64(hp.padding)) + "+")

    offset = hp.offset + _REGISTER_SHIFT if hp.offset < 0 else hp.offset
    split = hp.split + _REGISTER_SHIFT if hp.split < 0 else hp.split
    parts.append(hex_string(offset))
    if kind & HookType.DATA_INDIRECT:
        parts.append("*" + hex_string(hp.index))
    if kind & HookType.USING_SPLIT:
        parts.append(":" + hex_string(split))
    if kind & HookType.SPLIT_INDIRECT:
        parts.append("*" + hex_string(hp.split_index))

    parts.append("@" + hex_string(_signed64(hp.address)))
    if kind & HookType.MODULE_OFFSET:
        parts.append(":" + hp.module)
    if kind & HookType.FUNCTION_OFFSET:
        parts.append(":" + hp.function)
    return "".join(parts)


def generate_hook_code(hp: HookParam) -> str:
    """Return the hook code describing ``hp``."""
    hp = replace(hp)
    if hp.type & HookType.DIRECT_READ:
        return _generate_r_code(hp)
    return _generate_h_code(hp)