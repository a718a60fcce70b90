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

r"""Record documents.

A document is the ordered sequence of records of a file, exactly as they
appear (or will appear) in the file.
It is the source of truth for everything else.
"""

import enum
import io
from typing import IO
from typing import Dict
from typing import Iterable
from typing import Iterator
from typing import List
from typing import Optional
from typing import Union

from .address import absolute_address
from .base import DiagnosticSink
from .base import ensure_sink
from .records import Record
from .records import RecordKind
from .records import parse_line
from .records import serialize_line
from .records import split_lines


class HexFormat(enum.IntEnum):
    r"""Intel HEX file format flavor."""

    I8HEX = 8
    r"""Plain 16-bit addressing, no extension records."""

    I16HEX = 16
    r"""Segment-extended 20-bit addressing."""

    I32HEX = 32
    r"""Linear-extended 32-bit addressing."""

    @property
    def extension_kind(self) -> Optional[RecordKind]:
        r""":class:`RecordKind`: Extension record kind of this format."""

        if self == HexFormat.I32HEX:
            return RecordKind.EXTENDED_LINEAR_ADDRESS
        if self == HexFormat.I16HEX:
            return RecordKind.EXTENDED_SEGMENT_ADDRESS
        return None

    @property
    def start_kind(self) -> Optional[RecordKind]:
        r""":class:`RecordKind`: Start address record kind of this format."""

        if self == HexFormat.I32HEX:
            return RecordKind.START_LINEAR_ADDRESS
        if self == HexFormat.I16HEX:
            return RecordKind.START_SEGMENT_ADDRESS
        return None

    @classmethod
    def from_kind(cls, kind: RecordKind) -> 'HexFormat':
        r"""Tells which format a record kind implies.

        Examples:
            >>> HexFormat.from_kind(RecordKind.START_LINEAR_ADDRESS).name
            'I32HEX'
            >>> HexFormat.from_kind(RecordKind.EXTENDED_SEGMENT_ADDRESS).name
            'I16HEX'
            >>> HexFormat.from_kind(RecordKind.DATA).name
            'I8HEX'
        """

        for fmt in (cls.I32HEX, cls.I16HEX):
            if kind == fmt.extension_kind or kind == fmt.start_kind:
                return fmt
        return cls.I8HEX


class Document:
    r"""Ordered sequence of records.

    Records are linked to their preceding extension record by *key*, an
    identifier assigned by the document when a record is added through its
    methods.
    Keys survive splicing, while list positions do not.

    The :attr:`records` list can be edited directly; in that case
    :meth:`refresh` must be called to register the new records.

    Attributes:
        records (list of :class:`Record`):
            Records, in file order.

        format (:class:`HexFormat`):
            File format flavor, as determined while parsing.
    """

    def __getitem__(self, index: int) -> Record:

        return self.records[index]

    def __init__(
        self,
        records: Optional[Iterable[Record]] = None,
        format: HexFormat = HexFormat.I8HEX,
    ):

        self.records: List[Record] = []
        self.format: HexFormat = HexFormat(format)
        self._keys: Dict[int, Record] = {}
        self._next_key: int = 0

        if records is not None:
            self.extend(records)

    def __iter__(self) -> Iterator[Record]:

        return iter(self.records)

    def __len__(self) -> int:

        return len(self.records)

    def _register(self, record: Record) -> None:

        key = record.key
        if key is None or self._keys.get(key, record) is not record:
            key = self._next_key
            record.key = key
        self._keys[key] = record
        self._next_key = max(self._next_key, key + 1)

    def absolute_address(self, record: Record) -> int:
        r"""Absolute start address of a record of this document."""

        return absolute_address(record, self.extension_of(record))

    def append(self, record: Record) -> Record:
        r"""Appends a record, assigning its key."""

        self._register(record)
        self.records.append(record)
        return record

    def data_records(self) -> Iterator[Record]:
        r"""Iterates over the *data* records, in file order."""

        return (record for record in self.records if record.kind.is_data())

    def extend(self, records: Iterable[Record]) -> 'Document':

        for record in records:
            self.append(record)
        return self

    def extension_kind(self) -> RecordKind:
        r"""Kind of extension records used by this document.

        Returns:
            :class:`RecordKind`: Kind of the first extension record found,
            else that of :attr:`format`, else
            :attr:`RecordKind.EXTENDED_LINEAR_ADDRESS`.
        """

        for record in self.records:
            if record.kind.is_extension():
                return record.kind
        return self.format.extension_kind or RecordKind.EXTENDED_LINEAR_ADDRESS

    def extension_of(self, record: Record) -> Optional[Record]:
        r"""Resolves the extension record preceding `record`.

        Args:
            record (:class:`Record`):
                Record to resolve.

        Returns:
            :class:`Record`: Extension record, or ``None``.

        Raises:
            ValueError: The extension key is not registered.
        """

        key = record.extension
        if key is None:
            return None
        try:
            return self._keys[key]
        except KeyError:
            raise ValueError(f'unknown extension record key: {key}') from None

    def insert(self, index: int, record: Record) -> Record:
        r"""Inserts a record at `index`, assigning its key."""

        self._register(record)
        self.records.insert(index, record)
        return record

    def insert_after(
        self,
        anchor: Optional[Record],
        record: Record,
        hint: Optional[int] = None,
    ) -> int:
        r"""Inserts a record right after another one.

        Args:
            anchor (:class:`Record`):
                Record to insert after; ``None`` inserts at the head.

            record (:class:`Record`):
                Record to insert.

            hint (int):
                Likely position of `anchor`, to speed up the search.

        Returns:
            int: Position of the inserted record.
        """

        if anchor is None:
            index = 0
        else:
            index = self.position(anchor, hint=hint) + 1
        self.insert(index, record)
        return index

    @classmethod
    def parse(
        cls,
        source: Union[str, IO, Iterable[str]],
        sink: Optional[DiagnosticSink] = None,
    ) -> 'Document':
        r"""Parses records from text.

        Many records can share the same physical line.
        Malformed records are reported to `sink` and skipped.

        The :attr:`format` is that implied by the first extension or start
        record; conflicting records are reported to `sink`.

        Args:
            source (str or text stream):
                Text to parse.

            sink (callable):
                Diagnostic sink, called as ``sink(line_number, line, message)``.
                If ``None``, diagnostics are discarded.

        Returns:
            :class:`Document`: Parsed document.

        Examples:
            >>> document = Document.parse(':020000040000FA\n:00000001FF\n')
            >>> len(document), document.format.name
            (2, 'I32HEX')
        """

        sink = ensure_sink(sink)
        if isinstance(source, str):
            source = io.StringIO(source)

        document = cls()
        fmt = HexFormat.I8HEX
        extension = None

        for line_number, line in split_lines(source):
            record = parse_line(line_number, line, extension=extension, sink=sink)
            if record is None:
                continue

            document.append(record)
            if record.kind.is_extension():
                extension = record.key

            line_format = HexFormat.from_kind(record.kind)
            if fmt == HexFormat.I8HEX:
                fmt = line_format
            elif line_format != HexFormat.I8HEX and line_format != fmt:
                sink(line_number, line.strip(),
                     f'format not clearly determinable: expected {fmt.name}, '
                     f'found record for {line_format.name}')

        document.format = fmt
        return document

    def position(self, record: Record, hint: Optional[int] = None) -> int:
        r"""Finds the position of a record, by identity.

        Args:
            record (:class:`Record`):
                Record to find.

            hint (int):
                Likely position, checked first.

        Returns:
            int: Position within :attr:`records`.

        Raises:
            ValueError: Record not found.
        """

        records = self.records
        if hint is not None and 0 <= hint < len(records) and records[hint] is record:
            return hint

        for index, item in enumerate(records):
            if item is record:
                return index

        raise ValueError('record not in document')

    def refresh(self) -> 'Document':
        r"""Registers the keys of directly edited :attr:`records`."""

        self._keys = {}
        for record in self.records:
            self._register(record)
        return self

    def serialize(self, end: str = '\n') -> str:
        r"""Serializes all the records, each followed by `end`."""

        return ''.join(serialize_line(record) + end for record in self.records)
