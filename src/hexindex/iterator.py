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

r"""Defined bytes iterator."""

from typing import Iterator
from typing import List
from typing import Optional
from typing import Tuple

from .index import SparseIndex
from .records import Record


class DefinedBytesIterator:
    r"""Iterates over the bytes carried by *data* records.

    The iterator walks the records of a :class:`SparseIndex` snapshot in
    their sorted order, yielding ``(address, value)`` couples.
    Overlapping records yield the same address more than once, in record
    order.
    Empty records are skipped.

    The cursor is the couple ``(record_index, byte_index)`` of the *next*
    byte to yield.

    Args:
        index (:class:`SparseIndex`):
            Index to snapshot.

    Examples:
        >>> from hexindex.document import Document
        >>> document = Document.parse(':0300300002337A1E\n:00000001FF\n')
        >>> [(hex(a), v) for a, v in DefinedBytesIterator(SparseIndex(document))]
        [('0x30', 2), ('0x31', 51), ('0x32', 122)]
    """

    def __init__(self, index: SparseIndex):

        self._records: List[Record] = list(index.records)
        self._starts: List[int] = list(index.starts)
        self._record_index: int = 0
        self._byte_index: int = 0
        self._last: Optional[Tuple[Record, int]] = None

    def __iter__(self) -> Iterator[Tuple[int, int]]:

        return self

    def __next__(self) -> Tuple[int, int]:

        records = self._records

        while self._record_index < len(records):
            record = records[self._record_index]
            offset = self._byte_index

            if offset < len(record.data):
                self._byte_index = offset + 1
                self._last = (record, offset)
                return self._starts[self._record_index] + offset, record.data[offset]

            self._record_index += 1
            self._byte_index = 0

        self._last = None
        raise StopIteration

    @property
    def cursor(self) -> Tuple[int, int]:
        r"""(int, int): Record index and byte index of the next byte."""

        return self._record_index, self._byte_index

    def set_value(self, value: int) -> None:
        r"""Replaces the last yielded byte, in place.

        Warnings:
            The checksum of the owning record is **NOT** updated.
            Call :meth:`Record.update_checksum` to fix it.

        Args:
            value (int):
                New byte value.

        Raises:
            ValueError: No byte yielded yet, or iteration exhausted.
        """

        if self._last is None:
            raise ValueError('no current byte')

        record, offset = self._last
        record.data[offset] = value
