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

r"""Sparse address index.

The index is a cache built from the *data* records of a
:class:`hexindex.document.Document`.
It holds the records sorted by absolute start address, and a table of the
address ranges they cover, as a flat list of inclusive bounds::

    bounds = [start0, end0, start1, end1, ...]

Each range of the table is *owned* by a single record.
Where records overlap, the lowest indexed record wins, so that `bounds` is
always sorted, even when the records are not disjoint.

Binary search over `bounds` tells in logarithmic time whether an address
falls within a record: an insertion point at an odd index lies between the
start and the end of the same range, while an even insertion point lies
within a *gap* between records.

The index never refreshes itself: after editing the document records
directly, :meth:`SparseIndex.build` must be called.
"""

from bisect import bisect_left
from bisect import bisect_right
from typing import List
from typing import NamedTuple
from typing import Optional
from typing import Tuple

from .address import ADDRESS_MAX
from .address import encode_offset
from .address import extension_base
from .base import AnyBytes
from .document import Document
from .records import DATA_SIZE_MAX
from .records import Record

BYTE_COUNT_16: int = 16
r"""Payload size of records commonly emitted by toolchains."""

BYTE_COUNT_32: int = 32
r"""Default payload size of records created by gap filling."""

BYTE_COUNT_MAX: int = DATA_SIZE_MAX
r"""Largest payload size of a record."""


class Gap(NamedTuple):
    r"""Address range not covered by any *data* record."""

    lower: Optional[Record]
    r"""Nearest record ending before the gap, if any."""

    upper: Optional[Record]
    r"""Nearest record starting after the gap, if any."""

    size: Optional[int]
    r"""Gap size from the probed address; ``None`` if unbounded."""


class SparseIndex:
    r"""Sparse address index over the *data* records of a document.

    Args:
        document (:class:`Document`):
            Indexed document.

        maxdatalen (int):
            Maximum payload size of records created by
            :meth:`insert_into_gap`.

    Attributes:
        document (:class:`Document`):
            Indexed document.

        records (list of :class:`Record`):
            Non-empty *data* records, sorted by absolute start address.
            Records with the same start keep their document order.

        starts (list of int):
            Absolute start addresses of `records`.

        bounds (list of int):
            Flat sorted list of inclusive start and end addresses of the
            covered ranges.

        owners (list of :class:`Record`):
            Record owning each range of `bounds`.

    Examples:
        >>> document = Document.parse(':0400000011111111B8\n'
        ...                           ':040002002222222272\n')
        >>> index = SparseIndex(document)
        >>> index.bounds
        [0, 3, 4, 5]
        >>> index.find_enclosing(3) is document[0]
        True
        >>> index.find_enclosing(5) is document[1]
        True
    """

    def __init__(
        self,
        document: Document,
        maxdatalen: int = BYTE_COUNT_32,
    ):

        maxdatalen = maxdatalen.__index__()
        if not 1 <= maxdatalen <= DATA_SIZE_MAX:
            raise ValueError('invalid maximum data length')

        self.document: Document = document
        self.maxdatalen: int = maxdatalen
        self.records: List[Record] = []
        self.starts: List[int] = []
        self.bounds: List[int] = []
        self.owners: List[Record] = []
        self._hint: Optional[int] = None
        self.build()

    def __len__(self) -> int:

        return len(self.records)

    def _add(self, record: Record, start: int) -> None:

        bounds = self.bounds
        index = bisect_left(bounds, start)

        if (index & 1) or (index < len(bounds) and bounds[index] == start):
            raise ValueError(f'address 0x{start:X} within an existing record')

        self.owners.insert(index >> 1, record)
        bounds[index:index] = [start, start + len(record.data) - 1]

        slot = bisect_right(self.starts, start)
        self.records.insert(slot, record)
        self.starts.insert(slot, start)

    def _cover(
        self,
        lower: Optional[Record],
        upper: Optional[Record],
        start: int,
    ) -> Tuple[Optional[Record], Optional[Record]]:

        document = self.document

        if lower is not None:
            extension = document.extension_of(lower)
            if 0 <= start - extension_base(extension) <= ADDRESS_MAX:
                return extension, lower

        if upper is not None:
            extension = document.extension_of(upper)
            if 0 <= start - extension_base(extension) <= ADDRESS_MAX:
                return extension, extension  # right after it, or at the head

        if lower is None and start <= ADDRESS_MAX:
            return None, None

        # New window, right after the lower record
        kind = document.extension_kind()
        value = encode_offset(kind, start)
        previous = None if lower is None else lower.extension
        extension = Record.create_extension(kind, value, extension=previous)
        position = document.insert_after(lower, extension, hint=self._hint)
        self._restore_window(position + 1, extension)
        self._hint = position
        return extension, extension

    def _insert_chunk(
        self,
        lower: Optional[Record],
        upper: Optional[Record],
        start: int,
        chunk: AnyBytes,
    ) -> Record:

        extension, anchor = self._cover(lower, upper, start)
        address = start - extension_base(extension)
        chunk = chunk[:(ADDRESS_MAX + 1 - address)]  # stay within the window
        key = None if extension is None else extension.key

        record = Record.create_data(address, chunk, extension=key)
        self._hint = self.document.insert_after(anchor, record, hint=self._hint)
        self._add(record, start)
        return record

    def _restore_window(self, position: int, inserted: Record) -> None:

        # Data records following a new extension record would fall within its
        # window once serialized, unless their own window is opened again.
        document = self.document
        records = document.records

        for record in records[position:]:
            if record.kind.is_extension():
                return
            if record.kind.is_data():
                original = document.extension_of(record)
                break
        else:
            return

        if original is None:
            copy = Record.create_extension(inserted.kind, 0, extension=inserted.key)
            previous = None
        else:
            copy = Record.create_extension(original.kind, original.data_to_int(),
                                           extension=inserted.key)
            previous = original.key

        document.insert(position, copy)

        for record in records[(position + 1):]:
            if record.kind.is_extension():
                break
            if record.extension == previous:
                record.extension = copy.key

    def build(self) -> 'SparseIndex':
        r"""(Re)builds the index from the document.

        Returns:
            :class:`SparseIndex`: *self*.
        """

        document = self.document
        starts = [(document.absolute_address(record), record)
                  for record in document.data_records()
                  if record.data]
        starts.sort(key=lambda item: item[0])

        bounds = []
        owners = []
        reach = -1

        for start, record in starts:
            end = start + len(record.data) - 1
            if end > reach:
                bounds.append(max(start, reach + 1))
                bounds.append(end)
                owners.append(record)
                reach = end

        self.records = [record for _, record in starts]
        self.starts = [start for start, _ in starts]
        self.bounds = bounds
        self.owners = owners
        self._hint = None
        return self

    def end_of(self, record: Record) -> int:
        r"""Inclusive absolute end address of a record."""

        return self.start_of(record) + len(record.data) - 1

    def find_enclosing(self, address: int) -> Optional[Record]:
        r"""Finds the record holding an address.

        Where records overlap, the one with the lowest start address wins.

        Args:
            address (int):
                Absolute address.

        Returns:
            :class:`Record`: The record holding `address`, or ``None`` if
            `address` lies within a gap.
        """

        bounds = self.bounds
        index = bisect_left(bounds, address)

        if index < len(bounds) and bounds[index] == address:
            return self.owners[index >> 1]

        if index & 1:
            return self.owners[index >> 1]

        return None

    def insert_into_gap(
        self,
        address: int,
        source: AnyBytes,
        offset: int = 0,
    ) -> int:
        r"""Fills a gap with new *data* records.

        Bytes are taken from `source`, starting at `offset`, and placed from
        `address` on, until either the gap or the source bytes are exhausted.
        They are chunked into new records of up to :attr:`maxdatalen` bytes,
        each within a single extension window.

        Each chunk reuses the extension record of the lower record, or that of
        the upper record, if covering the chunk address.
        Otherwise a new extension record is created (of the kind already used
        by the document), and placed right after the lower record.
        If *data* records followed the lower record within the same file
        window, a copy of their extension record is placed after the new
        records, so that they keep their addresses once serialized.

        New records are inserted into both the document and the index.

        Args:
            address (int):
                Absolute address within a gap.

            source (bytes):
                Source bytes.

            offset (int):
                Offset of the first byte within `source`.

        Returns:
            int: Number of bytes written.

        Raises:
            ValueError: `address` is within an existing record.
            :class:`hexindex.base.AddressOutOfRange`: A new extension record
                cannot represent the address. Records already created are
                kept.
        """

        gap = self.locate_gap(address)
        lower = gap.lower
        upper = gap.upper
        upper_start = None if gap.size is None else address + gap.size

        written = 0
        size = len(source) - offset
        if gap.size is not None:
            size = min(size, gap.size)

        while size > 0:
            start = address + written
            chunk = source[offset:(offset + min(size, self.maxdatalen))]
            record = self._insert_chunk(lower, upper, start, chunk)

            count = len(record.data)
            written += count
            offset += count
            lower = record

            size = len(source) - offset
            if upper_start is not None:
                size = min(size, upper_start - (start + count))

        return written

    def locate_gap(self, address: int) -> Gap:
        r"""Describes the gap holding an address.

        Args:
            address (int):
                Absolute address within a gap.

        Returns:
            :class:`Gap`: Nearest records around the gap, and gap size from
            `address` on.

        Raises:
            ValueError: `address` is within an existing record.
        """

        bounds = self.bounds
        index = bisect_left(bounds, address)

        if (index & 1) or (index < len(bounds) and bounds[index] == address):
            raise ValueError(f'address 0x{address:X} within an existing record')

        slot = index >> 1
        lower = self.owners[slot - 1] if slot else None

        if index < len(bounds):
            upper = self.owners[slot]
            size = bounds[index] - address
        else:
            upper = None
            size = None

        return Gap(lower, upper, size)

    def start_of(self, record: Record) -> int:
        r"""Absolute start address of a record."""

        return self.document.absolute_address(record)
