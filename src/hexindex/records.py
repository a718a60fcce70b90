# Copyright (c) 2013-2025, Andrea Zoppi
# All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
# 1. Redistributions of source code must retain the above copyright notice,
#    this list of conditions and the following disclaimer.
#
# 2. Redistributions in binary form must reproduce the above copyright
#    notice, this list of conditions and the following disclaimer in the
#    documentation and/or other materials provided with the distribution.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
# AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE
# ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE
# LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR
# CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF
# SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS
# INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN
# CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE)
# ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE
# POSSIBILITY OF SUCH DAMAGE.

r"""Intel HEX records.

Record model and line codec.

See Also:
    `<https://en.wikipedia.org/wiki/Intel_HEX>`_
"""

import enum
import sys
from typing import IO
from typing import Any
from typing import Iterable
from typing import Iterator
from typing import Mapping
from typing import MutableMapping
from typing import Optional
from typing import Sequence
from typing import Tuple

from .base import AnyBytes
from .base import DiagnosticSink
from .base import ParseDecodeError
from .base import UnknownRecordKind
from .base import colorize_tokens
from .base import ensure_sink
from .utils import hexlify
from .utils import is_hex
from .utils import unhexlify

MARKER: str = ':'
r"""Record start marker."""

MIN_LINE_LENGTH: int = 11
r"""Length of the shortest encodable line, marker included."""

DATA_SIZE_MAX: int = 0xFF
r"""Maximum payload size of a record."""


class RecordKind(enum.IntEnum):
    r"""Intel HEX record kind."""

    DATA = 0
    r"""Binary data."""

    END_OF_FILE = 1
    r"""End Of File."""

    EXTENDED_SEGMENT_ADDRESS = 2
    r"""Extended Segment Address."""

    START_SEGMENT_ADDRESS = 3
    r"""Start Segment Address."""

    EXTENDED_LINEAR_ADDRESS = 4
    r"""Extended Linear Address."""

    START_LINEAR_ADDRESS = 5
    r"""Start Linear Address."""

    def is_data(self) -> bool:
        r"""Tells whether this is a Data record kind.

        Only *data* records carry bytes of the address space.

        Examples:
            >>> RecordKind.DATA.is_data()
            True
            >>> RecordKind.END_OF_FILE.is_data()
            False
        """

        return self == RecordKind.DATA

    def is_eof(self) -> bool:
        r"""Tells whether this is an End Of File record kind."""

        return self == RecordKind.END_OF_FILE

    def is_extension(self) -> bool:
        r"""Tells whether this is an Extended Address record kind.

        Examples:
            >>> RecordKind.EXTENDED_LINEAR_ADDRESS.is_extension()
            True
            >>> RecordKind.EXTENDED_SEGMENT_ADDRESS.is_extension()
            True
            >>> RecordKind.START_LINEAR_ADDRESS.is_extension()
            False
        """

        return ((self == RecordKind.EXTENDED_SEGMENT_ADDRESS) or
                (self == RecordKind.EXTENDED_LINEAR_ADDRESS))

    def is_start(self) -> bool:
        r"""Tells whether this is a Start Address record kind."""

        return ((self == RecordKind.START_SEGMENT_ADDRESS) or
                (self == RecordKind.START_LINEAR_ADDRESS))


def checksum(values: Iterable[int]) -> int:
    r"""Computes the Intel HEX checksum.

    It is the two's complement of the least significant byte of the sum of
    all the `values`.

    Args:
        values (ints):
            Byte values to sum up.

    Returns:
        int: 8-bit checksum.

    Examples:
        >>> checksum([0x03, 0x00, 0x30, 0x00, 0x02, 0x33, 0x7A])
        30
        >>> checksum([0x01])
        255
    """

    return (0x100 - (sum(values) & 0xFF)) & 0xFF


class Record:
    r"""Intel HEX record object.

    Attributes:
        kind (:class:`RecordKind`):
            Record kind.

        address (int):
            16-bit local address.

        data (bytearray):
            Payload bytes.

        count (int):
            Declared payload length.

        checksum (int):
            Declared 8-bit checksum.

        extension (int):
            Key of the nearest preceding extension record within the owning
            :class:`hexindex.document.Document`, or ``None``.

        key (int):
            Identifier assigned by the owning document, or ``None``.

        line (int):
            Source line number; ``-1`` if the record was not parsed.
    """

    EQUALITY_KEYS: Sequence[str] = [
        'kind',
        'address',
        'count',
        'data',
        'checksum',
    ]
    r"""Attributes compared for equality."""

    META_KEYS: Sequence[str] = [
        'kind',
        'address',
        'data',
        'count',
        'checksum',
        'extension',
        'line',
    ]
    r"""Attributes describing the record."""

    def __eq__(self, other: Any) -> bool:

        return not self != other

    def __init__(
        self,
        kind: RecordKind,
        address: int = 0,
        data: AnyBytes = b'',
        count: Optional[int] = Ellipsis,
        checksum: Optional[int] = Ellipsis,
        extension: Optional[int] = None,
        line: int = -1,
        validate: bool = True,
    ):

        self.kind: RecordKind = RecordKind(kind)
        self.address: int = address.__index__()
        self.data: bytearray = bytearray(data)
        self.count: int = 0
        self.checksum: int = 0
        self.extension: Optional[int] = extension
        self.key: Optional[int] = None
        self.line: int = line

        if count is Ellipsis:
            self.update_count()
        else:
            self.count = count.__index__()

        if checksum is Ellipsis:
            self.update_checksum()
        else:
            self.checksum = checksum.__index__()

        if validate:
            self.validate()

    def __ne__(self, other: Any) -> bool:

        for key in self.EQUALITY_KEYS:
            if not hasattr(other, key):
                return True
            if getattr(self, key) != getattr(other, key):
                return True

        return False

    def __repr__(self) -> str:

        meta = self.get_meta()
        text = f'<{self.__class__!s} @0x{id(self):08X} '
        text += ' '.join(f'{key!s}:={value!r}' for key, value in meta.items())
        text += '>'
        return text

    def __str__(self) -> str:

        return serialize_line(self)

    def compute_checksum(self) -> int:
        r"""Computes the checksum of the current fields.

        Returns:
            int: 8-bit checksum.

        Examples:
            >>> record = Record.parse(':0300300002337A1E')
            >>> hex(record.compute_checksum())
            '0x1e'
        """

        address = self.address & 0xFFFF
        header = (
            self.count & 0xFF,
            address >> 8,
            address & 0xFF,
            self.kind & 0xFF,
        )
        return checksum(header + tuple(self.data))

    def compute_count(self) -> int:

        return len(self.data)

    def copy(self) -> 'Record':  # shallow, no key
        r"""Copies the record, without the document key."""

        return type(self)(validate=False, **self.get_meta())

    @classmethod
    def create_data(
        cls,
        address: int,
        data: AnyBytes,
        extension: Optional[int] = None,
    ) -> 'Record':
        r"""Creates a Data record.

        Args:
            address (int):
                Local 16-bit address.

            data (bytes):
                Payload, up to 255 bytes.

            extension (int):
                Key of the extension record the address is relative to.

        Returns:
            :class:`Record`: Data record object.

        Examples:
            >>> str(Record.create_data(0x0030, b'\x02\x33\x7A'))
            ':0300300002337A1E'
        """

        address = address.__index__()
        if not 0 <= address <= 0xFFFF:
            raise ValueError('address overflow')

        if len(data) > DATA_SIZE_MAX:
            raise ValueError('data size overflow')

        return cls(RecordKind.DATA, address=address, data=data, extension=extension)

    @classmethod
    def create_end_of_file(cls) -> 'Record':
        r"""Creates an End Of File record.

        Examples:
            >>> str(Record.create_end_of_file())
            ':00000001FF'
        """

        return cls(RecordKind.END_OF_FILE)

    @classmethod
    def create_extension(
        cls,
        kind: RecordKind,
        value: int,
        extension: Optional[int] = None,
    ) -> 'Record':
        r"""Creates an Extended Address record.

        Args:
            kind (:class:`RecordKind`):
                Either :attr:`RecordKind.EXTENDED_LINEAR_ADDRESS` or
                :attr:`RecordKind.EXTENDED_SEGMENT_ADDRESS`.

            value (int):
                16-bit extension value.

            extension (int):
                Key of the preceding extension record, if any.

        Returns:
            :class:`Record`: Extended Address record object.

        Examples:
            >>> str(Record.create_extension(RecordKind.EXTENDED_LINEAR_ADDRESS, 0x1234))
            ':020000041234B4'
        """

        kind = RecordKind(kind)
        if not kind.is_extension():
            raise ValueError('not an extension kind')

        value = value.__index__()
        if not 0 <= value <= 0xFFFF:
            raise ValueError('extension overflow')

        data = value.to_bytes(2, byteorder='big')
        return cls(kind, data=data, extension=extension)

    @classmethod
    def create_extended_linear_address(cls, value: int) -> 'Record':
        r"""Creates an Extended Linear Address record."""

        return cls.create_extension(RecordKind.EXTENDED_LINEAR_ADDRESS, value)

    @classmethod
    def create_extended_segment_address(cls, value: int) -> 'Record':
        r"""Creates an Extended Segment Address record.

        Examples:
            >>> str(Record.create_extended_segment_address(0x1234))
            ':020000021234B6'
        """

        return cls.create_extension(RecordKind.EXTENDED_SEGMENT_ADDRESS, value)

    @classmethod
    def create_start_linear_address(cls, address: int) -> 'Record':
        r"""Creates a Start Linear Address record.

        Examples:
            >>> str(Record.create_start_linear_address(0x12345678))
            ':0400000512345678E3'
        """

        address = address.__index__()
        if not 0 <= address <= 0xFFFFFFFF:
            raise ValueError('address overflow')

        data = address.to_bytes(4, byteorder='big')
        return cls(RecordKind.START_LINEAR_ADDRESS, data=data)

    @classmethod
    def create_start_segment_address(cls, address: int) -> 'Record':
        r"""Creates a Start Segment Address record."""

        address = address.__index__()
        if not 0 <= address <= 0xFFFFFFFF:
            raise ValueError('address overflow')

        data = address.to_bytes(4, byteorder='big')
        return cls(RecordKind.START_SEGMENT_ADDRESS, data=data)

    def data_to_int(self) -> int:
        r"""Interprets the payload as a big-endian unsigned integer."""

        return int.from_bytes(self.data, byteorder='big', signed=False)

    def get_meta(self) -> MutableMapping[str, Any]:

        return {key: getattr(self, key) for key in self.META_KEYS}

    def is_checksum_valid(self) -> bool:

        return self.checksum == self.compute_checksum()

    def is_count_valid(self) -> bool:

        return self.count == len(self.data) and 0 <= self.count <= DATA_SIZE_MAX

    def is_metadata_valid(self) -> bool:
        r"""Checks that count and checksum are consistent with the payload."""

        return self.is_count_valid() and self.is_checksum_valid()

    @classmethod
    def parse(cls, line: str) -> 'Record':
        r"""Parses a record line, strictly.

        Args:
            line (str):
                Record line, with the leading ``:`` marker.
                Surrounding whitespace is ignored.

        Returns:
            :class:`Record`: Parsed record, not validated.

        Raises:
            :class:`ParseDecodeError`: Bad marker, length, or hex digits.
            :class:`UnknownRecordKind`: Unknown record kind.

        Examples:
            >>> record = Record.parse(':0300300002337A1E')
            >>> record.kind, hex(record.address), bytes(record.data)
            (<RecordKind.DATA: 0>, '0x30', b'\x023z')
        """

        line = line.strip()
        if not line.startswith(MARKER):
            raise ParseDecodeError('missing record marker')

        if len(line) < MIN_LINE_LENGTH:
            raise ParseDecodeError('line too short')

        digits = line[1:]
        if not is_hex(digits):
            raise ParseDecodeError('non-hexadecimal digit found')

        if len(digits) & 1:
            raise ParseDecodeError('odd number of hexadecimal digits')

        count = int(digits[0:2], 16)
        address = int(digits[2:6], 16)
        kind_value = int(digits[6:8], 16)
        data = unhexlify(digits[8:-2])
        checksum_value = int(digits[-2:], 16)

        try:
            kind = RecordKind(kind_value)
        except ValueError:
            raise UnknownRecordKind(f'unknown record kind: 0x{kind_value:02X}') from None

        record = cls(kind,
                     address=address,
                     data=data,
                     count=count,
                     checksum=checksum_value,
                     validate=False)
        return record

    def print(
        self,
        stream: Optional[IO] = None,
        color: bool = False,
        end: str = '\n',
    ) -> 'Record':
        r"""Prints the record line, optionally with ANSI colors."""

        if stream is None:
            stream = sys.stdout
        tokens = self.to_tokens(end=end)
        if color:
            tokens = colorize_tokens(tokens)
        stream.write(''.join(tokens.values()))
        return self

    def read(self, offset: int, size: int) -> bytes:
        r"""Reads payload bytes.

        Args:
            offset (int):
                Offset within the payload.

            size (int):
                Maximum number of bytes to read.

        Returns:
            bytes: Up to `size` bytes, truncated at the end of the payload.
        """

        if not 0 <= offset <= len(self.data):
            raise ValueError('offset out of range')

        return bytes(self.data[offset:(offset + size)])

    def to_tokens(self, end: str = '') -> Mapping[str, str]:
        r"""Splits the serialized line into its field tokens."""

        return {
            'begin': MARKER,
            'count': f'{self.count & 0xFF:02X}',
            'address': f'{self.address & 0xFFFF:04X}',
            'kind': f'{self.kind & 0xFF:02X}',
            'data': hexlify(self.data),
            'checksum': f'{self.checksum & 0xFF:02X}',
            'end': end,
        }

    def update_checksum(self) -> 'Record':

        self.checksum = self.compute_checksum()
        return self

    def update_count(self) -> 'Record':

        self.count = self.compute_count()
        return self

    def update_metadata(self) -> 'Record':
        r"""Updates count and checksum after payload changes."""

        self.update_count()
        self.update_checksum()
        return self

    def validate(
        self,
        checksum: bool = True,
        count: bool = True,
    ) -> 'Record':
        r"""Validates the record fields.

        Args:
            checksum (bool):
                Checks that the checksum matches the fields.

            count (bool):
                Checks that the count matches the payload size.

        Returns:
            :class:`Record`: *self*.

        Raises:
            ValueError: Invalid field.
        """

        if not 0 <= self.address <= 0xFFFF:
            raise ValueError('address overflow')

        if not 0 <= self.checksum <= 0xFF:
            raise ValueError('checksum overflow')

        if not 0 <= self.count <= 0xFF:
            raise ValueError('count overflow')

        data_size = len(self.data)
        if data_size > DATA_SIZE_MAX:
            raise ValueError('data size overflow')

        if count and self.count != data_size:
            raise ValueError('wrong count')

        if checksum and self.checksum != self.compute_checksum():
            raise ValueError('wrong checksum')

        kind = self.kind

        if kind.is_data():
            pass

        elif kind.is_start():
            if data_size != 4:
                raise ValueError('start address data size overflow')

        elif kind.is_extension():
            if data_size != 2:
                raise ValueError('extension data size overflow')

        else:  # elif kind.is_eof():
            if data_size:
                raise ValueError('unexpected data')

        return self

    def write(self, offset: int, data: AnyBytes) -> int:
        r"""Replaces payload bytes in place.

        The payload is never extended: bytes exceeding the end of the payload
        are ignored.
        Count and checksum are updated.

        Args:
            offset (int):
                Offset within the payload.

            data (bytes):
                Bytes to write.

        Returns:
            int: Number of bytes actually written.

        Examples:
            >>> record = Record.parse(':0300300002337A1E')
            >>> record.write(0, b'\xAA\xAA')
            2
            >>> str(record)
            ':03003000AAAA7AFF'
        """

        if not 0 <= offset <= len(self.data):
            raise ValueError('offset out of range')

        size = min(len(data), len(self.data) - offset)
        self.data[offset:(offset + size)] = data[:size]
        self.update_metadata()
        return size


def parse_line(
    line_number: int,
    raw_line: str,
    extension: Optional[int] = None,
    sink: Optional[DiagnosticSink] = None,
) -> Optional[Record]:
    r"""Parses a record line, tolerating errors.

    Malformed lines are reported to `sink` and dropped.
    A missing ``:`` marker is reported and repaired.

    Args:
        line_number (int):
            Line number, for diagnostics.

        raw_line (str):
            Raw record line.

        extension (int):
            Key of the latest extension record parsed before this line.

        sink (callable):
            Diagnostic sink, called as ``sink(line_number, line, message)``.
            If ``None``, diagnostics are discarded.

    Returns:
        :class:`Record`: Parsed record, or ``None`` if dropped.
    """

    sink = ensure_sink(sink)
    line = raw_line.strip()

    if not line.startswith(MARKER):
        sink(line_number, line, f'line does not start with {MARKER!r}; marker added')
        line = MARKER + line

    if len(line) < MIN_LINE_LENGTH:
        sink(line_number, line, f'line shorter than {MIN_LINE_LENGTH} characters; skipped')
        return None

    try:
        record = Record.parse(line)
    except ParseDecodeError as exc:
        sink(line_number, line, f'invalid hex symbols: {exc}; skipped')
        return None
    except UnknownRecordKind as exc:
        sink(line_number, line, f'cannot determine record kind: {exc}; skipped')
        return None

    record.line = line_number
    record.extension = extension
    return record


def serialize_line(record: Record) -> str:
    r"""Serializes a record into its line, without terminator.

    Examples:
        >>> serialize_line(Record.parse(':0300300002337A1E'))
        ':0300300002337A1E'
    """

    return (f'{MARKER}'
            f'{record.count & 0xFF:02X}'
            f'{record.address & 0xFFFF:04X}'
            f'{record.kind & 0xFF:02X}'
            f'{hexlify(record.data)}'
            f'{record.checksum & 0xFF:02X}')


def split_lines(stream: Iterable[str]) -> Iterator[Tuple[int, str]]:
    r"""Splits text lines into record lines.

    Each physical line is split on the ``:`` marker, so that many records
    can share the same line.
    Blank lines are skipped.

    Args:
        stream (strs):
            Physical text lines.

    Yields:
        (int, str): Physical line number (starting from 1) and record line.

    Examples:
        >>> list(split_lines([':00000001FF:00000001FF\n', '\n', 'XYZ\n']))
        [(1, ':00000001FF'), (1, ':00000001FF\n'), (3, 'XYZ\n')]
    """

    for line_number, line in enumerate(stream, 1):
        if not line or line.isspace():
            continue

        head, *tails = line.split(MARKER)
        if head.strip():
            yield line_number, head

        for tail in tails:
            yield line_number, MARKER + tail
