import io

import pytest

from hexindex.base import ParseDecodeError
from hexindex.base import UnknownRecordKind
from hexindex.records import Record
from hexindex.records import RecordKind
from hexindex.records import checksum
from hexindex.records import parse_line
from hexindex.records import serialize_line
from hexindex.records import split_lines

from test_base import SinkCollector


def test_checksum_doctest():
    assert checksum([0x03, 0x00, 0x30, 0x00, 0x02, 0x33, 0x7A]) == 0x1E
    assert checksum([0x01]) == 0xFF


def test_checksum_empty():
    assert checksum([]) == 0x00


class TestRecordKind:

    def test_is_data(self):
        assert RecordKind.DATA.is_data()
        for kind in RecordKind:
            if kind != RecordKind.DATA:
                assert not kind.is_data()

    def test_is_eof(self):
        assert RecordKind.END_OF_FILE.is_eof()
        assert not RecordKind.DATA.is_eof()

    def test_is_extension(self):
        expected = {
            RecordKind.EXTENDED_SEGMENT_ADDRESS,
            RecordKind.EXTENDED_LINEAR_ADDRESS,
        }
        actual = {kind for kind in RecordKind if kind.is_extension()}
        assert actual == expected

    def test_is_start(self):
        expected = {
            RecordKind.START_SEGMENT_ADDRESS,
            RecordKind.START_LINEAR_ADDRESS,
        }
        actual = {kind for kind in RecordKind if kind.is_start()}
        assert actual == expected

    def test_values(self):
        assert [int(kind) for kind in RecordKind] == [0, 1, 2, 3, 4, 5]


class TestRecord:

    def test___eq__(self):
        record1 = Record.parse(':0300300002337A1E')
        record2 = Record.parse(':0300300002337A1E')
        assert record1 == record2
        assert not record1 != record2

    def test___eq___ignores_links(self):
        record1 = Record.parse(':0300300002337A1E')
        record2 = Record.parse(':0300300002337A1E')
        record2.extension = 7
        record2.line = 3
        assert record1 == record2

    def test___ne__(self):
        record1 = Record.parse(':0300300002337A1E')
        record2 = Record.parse(':0300310002337A1D')
        assert record1 != record2
        assert record1 != object()

    def test___init___default(self):
        record = Record(RecordKind.END_OF_FILE)
        assert record.kind == RecordKind.END_OF_FILE
        assert record.address == 0
        assert record.data == b''
        assert record.count == 0
        assert record.checksum == 0xFF
        assert record.extension is None
        assert record.key is None
        assert record.line == -1

    def test___repr__(self):
        record = Record.parse(':0300300002337A1E')
        text = repr(record)
        assert 'kind:=' in text
        assert 'checksum:=30' in text

    def test___str__(self):
        record = Record.parse(':0300300002337A1E')
        assert str(record) == ':0300300002337A1E'

    def test_compute_checksum(self):
        record = Record.parse(':0300300002337A00')
        assert record.compute_checksum() == 0x1E
        assert record.checksum == 0x00

    def test_copy(self):
        record = Record.parse(':0300300002337A1E')
        record.key = 5
        record.extension = 2
        copied = record.copy()
        assert copied is not record
        assert copied == record
        assert copied.data is not record.data
        assert copied.key is None
        assert copied.extension == 2

    def test_create_data(self):
        record = Record.create_data(0x0030, b'\x02\x33\x7A', extension=3)
        assert str(record) == ':0300300002337A1E'
        assert record.extension == 3

    def test_create_data_raises(self):
        with pytest.raises(ValueError, match='address overflow'):
            Record.create_data(0x10000, b'a')

        with pytest.raises(ValueError, match='address overflow'):
            Record.create_data(-1, b'a')

        with pytest.raises(ValueError, match='data size overflow'):
            Record.create_data(0, bytes(256))

    def test_create_end_of_file(self):
        assert str(Record.create_end_of_file()) == ':00000001FF'

    def test_create_extended_linear_address(self):
        record = Record.create_extended_linear_address(0x1234)
        assert record.kind == RecordKind.EXTENDED_LINEAR_ADDRESS
        assert str(record) == ':020000041234B4'

    def test_create_extended_segment_address(self):
        record = Record.create_extended_segment_address(0x1234)
        assert record.kind == RecordKind.EXTENDED_SEGMENT_ADDRESS
        assert str(record) == ':020000021234B6'

    def test_create_extension_raises(self):
        with pytest.raises(ValueError, match='not an extension kind'):
            Record.create_extension(RecordKind.DATA, 0)

        with pytest.raises(ValueError, match='extension overflow'):
            Record.create_extension(RecordKind.EXTENDED_LINEAR_ADDRESS, 0x10000)

    def test_create_start_linear_address(self):
        record = Record.create_start_linear_address(0x12345678)
        assert str(record) == ':0400000512345678E3'

    def test_create_start_segment_address(self):
        record = Record.create_start_segment_address(0x12345678)
        assert str(record) == ':0400000312345678E5'

    def test_create_start_raises(self):
        with pytest.raises(ValueError, match='address overflow'):
            Record.create_start_linear_address(0x100000000)

        with pytest.raises(ValueError, match='address overflow'):
            Record.create_start_segment_address(-1)

    def test_data_to_int(self):
        record = Record.create_start_linear_address(0x12345678)
        assert record.data_to_int() == 0x12345678

    def test_is_metadata_valid(self):
        record = Record.parse(':0300300002337A1E')
        assert record.is_checksum_valid()
        assert record.is_count_valid()
        assert record.is_metadata_valid()

        record = Record.parse(':0300300002337A1F')
        assert not record.is_checksum_valid()
        assert not record.is_metadata_valid()

        record = Record.parse(':0400300002337A1E')
        assert not record.is_count_valid()
        assert not record.is_metadata_valid()

    def test_parse_doctest(self):
        record = Record.parse(':0300300002337A1E')
        assert record.count == 3
        assert record.address == 0x0030
        assert record.kind == RecordKind.DATA
        assert record.data == b'\x02\x33\x7A'
        assert record.checksum == 0x1E
        assert serialize_line(record) == ':0300300002337A1E'

    def test_parse_lowercase(self):
        record = Record.parse(':0300300002337a1e')
        assert str(record) == ':0300300002337A1E'

    def test_parse_raises_decode(self):
        with pytest.raises(ParseDecodeError, match='missing record marker'):
            Record.parse('0300300002337A1E')

        with pytest.raises(ParseDecodeError, match='line too short'):
            Record.parse(':00000001F')

        with pytest.raises(ParseDecodeError, match='non-hexadecimal digit found'):
            Record.parse(':0300300002337X1E')

        with pytest.raises(ParseDecodeError, match='odd number'):
            Record.parse(':0300300002337A1')

    def test_parse_raises_kind(self):
        with pytest.raises(UnknownRecordKind, match='0x09'):
            Record.parse(':00000009F7')

    def test_parse_unvalidated(self):
        record = Record.parse(':0500300002337A1E')
        assert record.count == 5
        assert len(record.data) == 3
        with pytest.raises(ValueError, match='wrong count'):
            record.validate()

    def test_print(self):
        stream = io.StringIO()
        Record.parse(':0300300002337A1E').print(stream=stream)
        assert stream.getvalue() == ':0300300002337A1E\n'

    def test_print_color(self):
        stream = io.StringIO()
        Record.parse(':0300300002337A1E').print(stream=stream, color=True, end='')
        text = stream.getvalue()
        assert text.startswith('\x1b[')
        assert '\x1b[' in text[1:]
        for digits in ('03', '0030', '00', '02', '33', '7A', '1E'):
            assert digits in text

    def test_read(self):
        record = Record.parse(':0300300002337A1E')
        assert record.read(0, 3) == b'\x02\x33\x7A'
        assert record.read(1, 5) == b'\x33\x7A'
        assert record.read(3, 1) == b''

    def test_read_raises(self):
        record = Record.parse(':0300300002337A1E')
        with pytest.raises(ValueError, match='offset out of range'):
            record.read(4, 1)

    def test_to_tokens(self):
        tokens = Record.parse(':0300300002337A1E').to_tokens(end='\r\n')
        expected = {
            'begin': ':',
            'count': '03',
            'address': '0030',
            'kind': '00',
            'data': '02337A',
            'checksum': '1E',
            'end': '\r\n',
        }
        assert tokens == expected

    def test_update_metadata(self):
        record = Record.parse(':0500300002337A00')
        record.update_metadata()
        assert record.count == 3
        assert str(record) == ':0300300002337A1E'
        record.validate()

    def test_validate_raises(self):
        with pytest.raises(ValueError, match='address overflow'):
            Record(RecordKind.DATA, address=0x10000)

        with pytest.raises(ValueError, match='count overflow'):
            Record(RecordKind.DATA, data=bytes(256))

        with pytest.raises(ValueError, match='checksum overflow'):
            Record(RecordKind.DATA, checksum=0x100)

        with pytest.raises(ValueError, match='wrong count'):
            Record(RecordKind.DATA, data=b'a', count=2)

        with pytest.raises(ValueError, match='wrong checksum'):
            Record(RecordKind.DATA, data=b'a', checksum=0)

        with pytest.raises(ValueError, match='extension data size overflow'):
            Record(RecordKind.EXTENDED_LINEAR_ADDRESS, data=b'a')

        with pytest.raises(ValueError, match='start address data size overflow'):
            Record(RecordKind.START_LINEAR_ADDRESS, data=b'ab')

        with pytest.raises(ValueError, match='unexpected data'):
            Record(RecordKind.END_OF_FILE, data=b'a')

    def test_validate_skips(self):
        record = Record(RecordKind.DATA, data=b'a', count=2, checksum=0, validate=False)
        record.validate(checksum=False, count=False)

    def test_write_doctest(self):
        record = Record.parse(':0300300002337A1E')
        assert record.write(0, b'\xAA\xAA') == 2
        assert record.checksum == 0xFF
        assert str(record) == ':03003000AAAA7AFF'
        assert record.is_metadata_valid()

    def test_write_never_extends(self):
        record = Record.parse(':0300300002337A1E')
        assert record.write(2, b'\x00\x11\x22') == 1
        assert record.data == b'\x02\x33\x00'
        assert record.count == 3
        assert record.is_metadata_valid()

    def test_write_raises(self):
        record = Record.parse(':0300300002337A1E')
        with pytest.raises(ValueError, match='offset out of range'):
            record.write(4, b'\x00')


class TestParseLine:

    def test_valid(self):
        sink = SinkCollector()
        record = parse_line(7, ':0300300002337A1E\n', extension=3, sink=sink)
        assert str(record) == ':0300300002337A1E'
        assert record.line == 7
        assert record.extension == 3
        assert len(sink) == 0

    def test_missing_marker(self):
        sink = SinkCollector()
        record = parse_line(2, '0300300002337A1E', sink=sink)
        assert str(record) == ':0300300002337A1E'
        assert sink.entries == [
            (2, '0300300002337A1E', "line does not start with ':'; marker added"),
        ]

    def test_too_short(self):
        sink = SinkCollector()
        assert parse_line(3, ':000000', sink=sink) is None
        assert sink.line_numbers == [3]
        assert 'shorter than 11' in sink.entries[0][2]

    def test_bad_digits(self):
        sink = SinkCollector()
        assert parse_line(4, ':0300300002337X1E', sink=sink) is None
        assert sink.line_numbers == [4]
        assert 'invalid hex symbols' in sink.entries[0][2]

    def test_odd_digits(self):
        sink = SinkCollector()
        assert parse_line(5, ':0300300002337A1', sink=sink) is None
        assert 'invalid hex symbols' in sink.entries[0][2]

    def test_unknown_kind(self):
        sink = SinkCollector()
        assert parse_line(6, ':00000009F7', sink=sink) is None
        assert sink.line_numbers == [6]
        assert 'cannot determine record kind' in sink.entries[0][2]

    def test_no_sink(self):
        assert parse_line(1, ':00', sink=None) is None


def test_serialize_line_uppercase():
    record = Record.create_data(0xABCD, b'\xab\xcd')
    line = serialize_line(record)
    assert line == line.upper()
    assert Record.parse(line) == record


def test_split_lines_doctest():
    lines = [':00000001FF:00000001FF\n', '\n', 'XYZ\n']
    expected = [(1, ':00000001FF'), (1, ':00000001FF\n'), (3, 'XYZ\n')]
    assert list(split_lines(lines)) == expected


def test_split_lines_blank():
    assert list(split_lines(['', '   \n', '\t\r\n'])) == []


def test_split_lines_stream():
    stream = io.StringIO(':020000040000FA\r\n\r\n:00000001FF')
    expected = [(1, ':020000040000FA\r\n'), (3, ':00000001FF')]
    assert list(split_lines(stream)) == expected
