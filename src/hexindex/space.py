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

r"""Byte space facade.

The :class:`ByteSpace` class presents an Intel HEX document as a sparse
byte space up to 32 bits wide, which can be read and written by absolute
address.

Reads and writes go through a :class:`hexindex.index.SparseIndex`, built
lazily on first use and then reused.
Writes within existing *data* records replace their bytes in place, while
writes within gaps create new records (and extension records, where
needed), leaving all the other records untouched.
"""

import io
import sys
from typing import IO
from typing import Iterator
from typing import List
from typing import Optional
from typing import Sequence
from typing import Tuple
from typing import Union

from bytesparse import Memory
from deprecated import deprecated

from .base import AnyBytes
from .base import AnyPath
from .base import DiagnosticSink
from .base import NegativeAddress
from .base import NegativeLength
from .document import Document
from .document import HexFormat
from .index import BYTE_COUNT_16  # noqa: F401
from .index import BYTE_COUNT_32
from .index import BYTE_COUNT_MAX
from .index import SparseIndex
from .iterator import DefinedBytesIterator
from .records import DATA_SIZE_MAX
from .records import Record


class ByteSpace:
    r"""Intel HEX document as a sparse byte space.

    Args:
        document (:class:`Document`):
            Underlying document.
            If ``None``, an empty *I32HEX* document is created.

        maxdatalen (int):
            Maximum payload size of new *data* records.

    Examples:
        >>> space = ByteSpace.parse(':0400000001020304F2\n:00000001FF\n')
        >>> space.read_bytes(2, 4)
        b'\x03\x04\x00\x00'
        >>> space.update_bytes(4, b'\x05\x06')
        >>> print(space.serialize(), end='')
        :0400000001020304F2
        :020004000506EF
        :00000001FF
    """

    def __init__(
        self,
        document: Optional[Document] = None,
        maxdatalen: int = BYTE_COUNT_32,
    ):

        if document is None:
            document = Document([Record.create_end_of_file()], format=HexFormat.I32HEX)

        maxdatalen = maxdatalen.__index__()
        if not 1 <= maxdatalen <= DATA_SIZE_MAX:
            raise ValueError('invalid maximum data length')

        self.document: Document = document
        self._maxdatalen: int = maxdatalen
        self._index: Optional[SparseIndex] = None

    def __iter__(self) -> Iterator[Tuple[int, int]]:

        return self.defined_bytes()

    @classmethod
    def create(cls, format: HexFormat = HexFormat.I32HEX) -> 'ByteSpace':
        r"""Creates an empty byte space.

        The underlying document holds just the *end of file* record.

        Args:
            format (:class:`HexFormat`):
                Format of the new document; it selects the kind of the
                extension records created by writes.

        Returns:
            :class:`ByteSpace`: Empty byte space.
        """

        document = Document([Record.create_end_of_file()], format=format)
        return cls(document)

    def defined_bytes(self) -> DefinedBytesIterator:
        r"""Iterates over the defined bytes.

        A fresh iterator is returned at each call.

        Returns:
            :class:`DefinedBytesIterator`: ``(address, value)`` iterator, in
            ascending record address order.
        """

        return DefinedBytesIterator(self.index)

    def discard_index(self) -> 'ByteSpace':
        r"""Discards the cached index; the next access rebuilds it."""

        self._index = None
        return self

    def find_record(self, address: int) -> Optional[Record]:
        r"""Finds the first *data* record holding an address.

        Unlike the index, it scans the document records in file order, so it
        is never stale.

        Args:
            address (int):
                Absolute address.

        Returns:
            :class:`Record`: First record holding `address`, or ``None``.
        """

        document = self.document
        for record in document.data_records():
            start = document.absolute_address(record)
            if start <= address < start + len(record.data):
                return record
        return None

    @property
    def format(self) -> HexFormat:
        r""":class:`HexFormat`: Format of the underlying document."""

        return self.document.format

    def get_holes(self) -> List[Tuple[int, int]]:
        r"""List of holes between defined bytes.

        Each hole is a couple of ``(start, endex)`` addresses
        (as per :class:`slice` or :func:`range`).

        Examples:
            >>> space = ByteSpace.create()
            >>> space.update_bytes(0x10, b'abc')
            >>> space.update_bytes(0x20, b'xyz')
            >>> space.get_holes()
            [(19, 32)]
        """

        memory = self.to_memory()
        holes = list(memory.gaps(memory.start, memory.endex))
        return holes

    def get_spans(self) -> List[Tuple[int, int]]:
        r"""List of defined byte spans.

        Each span is a couple of ``(start, endex)`` addresses
        (as per :class:`slice` or :func:`range`).
        Adjacent records are merged into the same span.

        Examples:
            >>> space = ByteSpace.create()
            >>> space.update_bytes(0x10, b'abc')
            >>> space.update_bytes(0x13, b'def')
            >>> space.get_spans()
            [(16, 22)]
        """

        spans = list(self.to_memory().intervals())
        return spans

    @property
    def index(self) -> SparseIndex:
        r""":class:`SparseIndex`: Address index, built lazily.

        The index is **NOT** refreshed automatically after direct changes to
        the document records; call :meth:`refresh_index` in that case.
        """

        index = self._index
        if index is None:
            index = SparseIndex(self.document, maxdatalen=self._maxdatalen)
            self._index = index
        return index

    @deprecated(version='0.1.0', reason='Use is_defined() instead')
    def is_data_defined(self, address: int) -> bool:

        return self.is_defined(address)

    def is_defined(self, address: int) -> bool:
        r"""Tells whether an address is held by some *data* record."""

        return self.index.find_enclosing(address) is not None

    @classmethod
    def load(
        cls,
        in_path_or_stream: Optional[Union[AnyPath, IO]],
        sink: Optional[DiagnosticSink] = None,
    ) -> 'ByteSpace':
        r"""Loads a byte space from the filesystem.

        Args:
            in_path_or_stream (str or text IO):
                Path of the file within the filesystem, or input text stream.
                If ``None`` or ``'-'``, ``sys.stdin`` is used.

            sink (callable):
                Diagnostic sink, forwarded to :meth:`parse`.

        Returns:
            :class:`ByteSpace`: Loaded byte space.
        """

        if in_path_or_stream is None or in_path_or_stream == '-':
            in_path_or_stream = sys.stdin

        if isinstance(in_path_or_stream, io.IOBase):
            stream = in_path_or_stream
            return cls.parse(stream, sink=sink)
        else:
            path = str(in_path_or_stream)
            with open(path, 'rt') as stream:
                return cls.parse(stream, sink=sink)

    @property
    def maxdatalen(self) -> int:
        r"""int: Maximum payload size of new *data* records.

        Existing records are never split nor merged; only records created
        while writing into gaps are affected.

        Setting a different value triggers :meth:`discard_index`.

        Raises:
            ValueError: Invalid maximum data length.

        Examples:
            >>> space = ByteSpace.create()
            >>> space.maxdatalen = BYTE_COUNT_16
            >>> space.update_bytes(0, bytes(20))
            >>> [len(record.data) for record in space.records]
            [16, 4, 0]
            >>> space.maxdatalen = 0
            Traceback (most recent call last):
                ...
            ValueError: invalid maximum data length
        """

        return self._maxdatalen

    @maxdatalen.setter
    def maxdatalen(self, maxdatalen: int) -> None:

        maxdatalen = maxdatalen.__index__()
        if not 1 <= maxdatalen <= BYTE_COUNT_MAX:
            raise ValueError('invalid maximum data length')

        if maxdatalen != self._maxdatalen:
            self.discard_index()
        self._maxdatalen = maxdatalen

    @classmethod
    def parse(
        cls,
        source: Union[str, IO],
        sink: Optional[DiagnosticSink] = None,
    ) -> 'ByteSpace':
        r"""Parses a byte space from text.

        Args:
            source (str or text IO):
                Text to parse.

            sink (callable):
                Diagnostic sink, called as ``sink(line_number, line, message)``.
                If ``None``, diagnostics are discarded.

        Returns:
            :class:`ByteSpace`: Parsed byte space.

        See Also:
            :meth:`Document.parse`
        """

        return cls(Document.parse(source, sink=sink))

    def print(
        self,
        stream: Optional[IO] = None,
        color: bool = False,
        start: Optional[int] = None,
        stop: Optional[int] = None,
        end: str = '\n',
    ) -> 'ByteSpace':
        r"""Prints records onto a text stream.

        It is possible to print a subset of the records by specifying the
        record index range, as per :class:`slice`.

        Args:
            stream (text IO):
                Stream to print onto.
                If ``None``, *stdout* is used.

            color (bool):
                Colorize record tokens with ANSI color codes.

            start (int):
                Inclusive start record index.

            stop (int):
                Exclusive end record index.

            end (str):
                Line terminator.

        Returns:
            :class:`ByteSpace`: *self*.
        """

        for record in self.document.records[start:stop]:
            record.print(stream=stream, color=color, end=end)
        return self

    def read_bytes(self, address: int, size: int) -> bytes:
        r"""Reads bytes from the byte space.

        Addresses not held by any *data* record read as zero.

        Args:
            address (int):
                Absolute start address.

            size (int):
                Number of bytes to read.

        Returns:
            bytes: Exactly `size` bytes.

        Raises:
            :class:`NegativeAddress`: Negative `address`.
            :class:`NegativeLength`: Negative `size`.
        """

        if address < 0:
            raise NegativeAddress('negative address')
        if size < 0:
            raise NegativeLength('negative size')

        index = self.index
        buffer = bytearray(size)
        offset = 0

        while offset < size:
            current = address + offset
            record = index.find_enclosing(current)

            if record is None:
                gap = index.locate_gap(current)
                if gap.size is None:
                    break  # nothing else above
                offset += gap.size

            else:
                chunk = record.read(current - index.start_of(record), size - offset)
                buffer[offset:(offset + len(chunk))] = chunk
                offset += len(chunk)

        return bytes(buffer)

    @property
    def records(self) -> List[Record]:
        r"""list of :class:`Record`: Document records, in file order."""

        return self.document.records

    def refresh_index(self) -> 'ByteSpace':
        r"""Rebuilds the index after direct changes to the document records.

        New records are registered into the document before rebuilding.
        """

        self.document.refresh()
        if self._index is None:
            self._index = SparseIndex(self.document, maxdatalen=self._maxdatalen)
        else:
            self._index.build()
        return self

    def save(
        self,
        out_path_or_stream: Optional[Union[AnyPath, IO]],
        end: str = '\n',
    ) -> 'ByteSpace':
        r"""Saves the byte space into the filesystem.

        Args:
            out_path_or_stream (str or text IO):
                Path of the file within the filesystem, or output text stream.
                If ``None`` or ``'-'``, ``sys.stdout`` is used.

            end (str):
                Line terminator, written verbatim.

        Returns:
            :class:`ByteSpace`: *self*.
        """

        if out_path_or_stream is None or out_path_or_stream == '-':
            out_path_or_stream = sys.stdout

        if isinstance(out_path_or_stream, io.IOBase):
            stream = out_path_or_stream
            return self.write_to(stream, end=end)
        else:
            path = str(out_path_or_stream)
            with open(path, 'wt', newline='') as stream:
                return self.write_to(stream, end=end)

    def serialize(self, end: str = '\n') -> str:
        r"""Serializes all the records, in file order.

        Args:
            end (str):
                Line terminator appended to each record.

        Returns:
            str: Serialized text.
        """

        return self.document.serialize(end=end)

    def to_memory(self) -> Memory:
        r"""Exports the defined bytes.

        Records are written in file order, so later overlapping records win.

        Returns:
            :class:`bytesparse.Memory`: Sparse memory object.

        Examples:
            >>> space = ByteSpace.parse(':0300300002337A1E\n:00000001FF\n')
            >>> space.to_memory().to_blocks()
            [[48, b'\x023z']]
        """

        document = self.document
        memory = Memory()
        for record in document.data_records():
            if record.data:
                memory.write(document.absolute_address(record), record.data)
        return memory

    def update_bytes(self, address: int, data: Union[AnyBytes, Sequence[int]]) -> None:
        r"""Writes bytes into the byte space.

        Bytes within existing *data* records are replaced in place, updating
        their count and checksum.
        Bytes within gaps are placed into new records.

        Args:
            address (int):
                Absolute start address.

            data (bytes):
                Bytes to write.

        Raises:
            :class:`NegativeAddress`: Negative `address`.
            :class:`hexindex.base.AddressOutOfRange`: Bytes beyond the
                addressable range. Bytes written before are kept.
        """

        if address < 0:
            raise NegativeAddress('negative address')

        index = self.index
        view = memoryview(bytes(data))
        size = len(view)
        offset = 0

        while offset < size:
            current = address + offset
            record = index.find_enclosing(current)

            if record is None:
                written = index.insert_into_gap(current, view, offset)
                if not written:
                    raise ValueError(f'cannot place data at 0x{current:X}')
            else:
                written = record.write(current - index.start_of(record), view[offset:])

            offset += written

    def validate_records(self) -> 'ByteSpace':
        r"""Validates records.

        It checks the metadata of each record, and that the *end of file*
        record is present and last.

        Returns:
            :class:`ByteSpace`: *self*.

        Raises:
            ValueError: Invalid record sequence.

        Examples:
            >>> space = ByteSpace.parse(':0300300002337A1E\n')
            >>> space.validate_records()
            Traceback (most recent call last):
                ...
            ValueError: missing end of file record
        """

        records = self.document.records
        eof_record = None

        for index, record in enumerate(records):
            record.validate()

            if record.kind.is_eof():
                if index != len(records) - 1:
                    raise ValueError('end of file record not last')
                eof_record = record

        if eof_record is None:
            raise ValueError('missing end of file record')

        return self

    def write_to(self, stream: IO, end: str = '\n') -> 'ByteSpace':
        r"""Writes the serialized records onto a text stream."""

        stream.write(self.serialize(end=end))
        return self
