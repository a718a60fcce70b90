import pytest

import hexindex.base as _hb
from hexindex.base import AddressOutOfRange
from hexindex.base import HexIndexError
from hexindex.base import InvalidExtensionKind
from hexindex.base import NegativeAddress
from hexindex.base import NegativeLength
from hexindex.base import ParseDecodeError
from hexindex.base import UnknownRecordKind
from hexindex.base import colorize_tokens
from hexindex.base import ensure_sink
from hexindex.base import void_sink

# Linear-extended file, four contiguous records from address zero
HEXFILE_SMALL = (
    ':020000040000FA\n'
    ':080000001234567812345678D0\n'
    ':080008001234567812345678C8\n'
    ':080010001234567812345678C0\n'
    ':080018001234567812345678B8\n'
    ':00000001FF\n'
)

# Linear-extended file, two windows with a gap in between
HEXFILE_WINDOWS = (
    ':020000040001F9\n'
    ':08FFD8001234567812345678F9\n'
    ':08FFE0001234567812345678F1\n'
    ':08FFE8001234567812345678E9\n'
    ':08FFF0001234567812345678E1\n'
    ':08FFF8001234567812345678D9\n'
    ':020000040003F7\n'
    ':080000001234567812345678D0\n'
    ':080008001234567812345678C8\n'
    ':080010001234567812345678C0\n'
    ':080018001234567812345678B8\n'
    ':080020001234567812345678B0\n'
    ':00000001FF\n'
)

# Segment-extended file, one record at 0x10000
HEXFILE_SEGMENT = (
    ':020000021000EC\n'
    ':0400000001020304F2\n'
    ':00000001FF\n'
)

# Plain file, 16 bytes at zero overlapped by 4 bytes at 4
HEXFILE_OVERLAP = (
    ':1000000011111111111111111111111111111111E0\n'
    ':040004002222222270\n'
    ':00000001FF\n'
)

# Linear-extended file, records not in address order
HEXFILE_UNSORTED = (
    ':020000040000FA\n'
    ':01800000116E\n'
    ':0100000022DD\n'
    ':00000001FF\n'
)

# Plain file, one record at zero
HEXFILE_PLAIN = (
    ':0400000001020304F2\n'
    ':00000001FF\n'
)

PATTERN = b'\x12\x34\x56\x78'


class SinkCollector:

    def __init__(self):
        self.entries = []

    def __call__(self, line_number, raw_line, message):
        self.entries.append((line_number, raw_line, message))

    def __len__(self):
        return len(self.entries)

    @property
    def line_numbers(self):
        return [entry[0] for entry in self.entries]


@pytest.fixture
def fake_token_color_codes(request):
    backup = _hb.TOKEN_COLOR_CODES
    _hb.TOKEN_COLOR_CODES = {key: f'[{key}]' for key in backup}
    yield
    _hb.TOKEN_COLOR_CODES = backup


def test_colorize_tokens_altdata(fake_token_color_codes):

    tokens = {
        'begin':    ':',
        'count':    '(count)',
        'address':  '(address)',
        'kind':     '(kind)',
        'data':     'AABBCCD',
        'checksum': '(checksum)',
        'end':      '\n',
    }
    expected = {
        '<':        '[<]',
        'begin':    '[begin]:',
        'count':    '[count](count)',
        'address':  '[address](address)',
        'kind':     '[kind](kind)',
        'data':     '[data]AA[dataalt]BB[data]CC[dataalt]D',
        'checksum': '[checksum](checksum)',
        'end':      '[end]\n',
        '>':        '[>]',
    }
    actual = colorize_tokens(tokens, altdata=True)
    assert actual == expected
    assert list(actual.keys()) == list(expected.keys())


def test_colorize_tokens_plaindata(fake_token_color_codes):

    tokens = {
        'data':     'AABBCCD',
        'end':      '',
    }
    expected = {
        '<':        '[<]',
        'data':     '[data]AABBCCD',
        '>':        '[>]',
    }
    actual = colorize_tokens(tokens, altdata=False)
    assert actual == expected


def test_ensure_sink():
    assert ensure_sink(None) is void_sink
    collector = SinkCollector()
    assert ensure_sink(collector) is collector


def test_errors_hierarchy():
    for error_type in (
        ParseDecodeError,
        UnknownRecordKind,
        InvalidExtensionKind,
        NegativeAddress,
        NegativeLength,
        AddressOutOfRange,
    ):
        assert issubclass(error_type, HexIndexError)
        assert issubclass(error_type, ValueError)


def test_void_sink():
    assert void_sink(1, ':00', 'message') is None
