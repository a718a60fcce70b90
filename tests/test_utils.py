from typing import Any
from typing import Mapping
from typing import Type

import pytest

from hexindex.utils import hexlify
from hexindex.utils import is_hex
from hexindex.utils import parse_int
from hexindex.utils import unhexlify

PARSE_INT_PASS: Mapping[Any, int] = {
    None: None,

    '123': 123,
    ' 123 ': 123,
    '\t123\t': 123,
    '+123': 123,
    '-123': -123,
    ' + 123 ': 123,
    ' - 123 ': -123,

    '0xDEADBEEF': 0xDEADBEEF,
    '0XDEADBEEF': 0xDEADBEEF,
    'DEADBEEFh': 0xDEADBEEF,
    'DEADBEEFH': 0xDEADBEEF,

    '0b101100111000': 0b101100111000,

    '01234567': 0o1234567,
    '0o1234567': 0o1234567,

    '1k': 2**10,
    '1M': 2**20,
    '1 G': 2**30,

    '1KiB': 2**10,
    '1 mib': 2**20,

    '1 KB': 10**3,
    '1MB': 10**6,

    123: 123,
    135.7: 135,
}

PARSE_INT_FAIL: Mapping[Any, Type[BaseException]] = {
    Ellipsis: TypeError,
    'x': ValueError,
    '0b1h': ValueError,
    '0o1h': ValueError,
    (1,): TypeError,
}


def test_hexlify_doctest():
    ans_out = hexlify(b'\xAA\xBB\xCC')
    ans_ref = 'AABBCC'
    assert ans_out == ans_ref

    ans_out = hexlify(b'\xAA\xBB\xCC', sep=' ')
    ans_ref = 'AA BB CC'
    assert ans_out == ans_ref

    ans_out = hexlify(b'\xAA\xBB\xCC', sep='-')
    ans_ref = 'AA-BB-CC'
    assert ans_out == ans_ref

    ans_out = hexlify(b'\xAA\xBB\xCC', upper=False)
    ans_ref = 'aabbcc'
    assert ans_out == ans_ref


def test_hexlify_empty():
    assert hexlify(b'') == ''


def test_is_hex():
    assert is_hex('')
    assert is_hex('0123456789ABCDEFabcdef')
    assert not is_hex('0x12')
    assert not is_hex('+12')
    assert not is_hex('1_2')
    assert not is_hex(' 12')
    assert not is_hex('G')


def test_parse_int_doctest():
    assert parse_int('-0xABk') == -175104
    assert parse_int(None) is None
    assert parse_int(123) == 123
    assert parse_int(135.7) == 135


def test_parse_int_fail():
    for value_in, raised_exception in PARSE_INT_FAIL.items():
        with pytest.raises(raised_exception):
            parse_int(value_in)


def test_parse_int_pass():
    for value_in, value_out in PARSE_INT_PASS.items():
        assert parse_int(value_in) == value_out


def test_unhexlify_doctest():
    ans_out = unhexlify('AABBCC')
    ans_ref = b'\xaa\xbb\xcc'
    assert ans_out == ans_ref

    ans_out = unhexlify('AA BB CC', delete=...)
    ans_ref = b'\xaa\xbb\xcc'
    assert ans_out == ans_ref

    ans_out = unhexlify('AA-BB-CC', delete=...)
    ans_ref = b'\xaa\xbb\xcc'
    assert ans_out == ans_ref

    ans_out = unhexlify('AA/BB/CC', delete='/')
    ans_ref = b'\xaa\xbb\xcc'
    assert ans_out == ans_ref


def test_unhexlify_raises():
    with pytest.raises(ValueError, match='non-hexadecimal digit found'):
        unhexlify('AABBXX')

    with pytest.raises(ValueError, match='non-hexadecimal digit found'):
        unhexlify('AA BB')

    with pytest.raises(ValueError):
        unhexlify('AAB')
