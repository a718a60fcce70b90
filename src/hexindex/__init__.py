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

__version__ = '0.1.0'

from .base import AddressOutOfRange
from .base import HexIndexError
from .base import InvalidExtensionKind
from .base import NegativeAddress
from .base import NegativeLength
from .base import ParseDecodeError
from .base import UnknownRecordKind
from .document import Document
from .document import HexFormat
from .index import BYTE_COUNT_16
from .index import BYTE_COUNT_32
from .index import BYTE_COUNT_MAX
from .index import SparseIndex
from .iterator import DefinedBytesIterator
from .records import Record
from .records import RecordKind
from .space import ByteSpace


def load(in_path_or_stream, sink=None) -> ByteSpace:
    r"""Loads a byte space; shortcut to :meth:`ByteSpace.load`."""

    return ByteSpace.load(in_path_or_stream, sink=sink)


def parse(source, sink=None) -> ByteSpace:
    r"""Parses a byte space; shortcut to :meth:`ByteSpace.parse`."""

    return ByteSpace.parse(source, sink=sink)
