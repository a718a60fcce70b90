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

r"""Address extension arithmetic.

An *extension* record shifts the 16-bit local address of the following
records into the absolute address space:

* *Extended Linear Address*: the 16-bit payload holds bits 31:16 of the
  absolute address.

* *Extended Segment Address*: the 16-bit payload is multiplied by 16 and
  added to the local address (20-bit addressing).
"""

from typing import Optional

from .base import AddressOutOfRange
from .base import AnyBytes
from .base import InvalidExtensionKind
from .records import Record
from .records import RecordKind

ADDRESS_MAX: int = 0xFFFF
r"""Highest local address of a record."""


def contribution(kind: RecordKind, data: AnyBytes) -> int:
    r"""Computes the offset added by an extension record.

    Args:
        kind (:class:`RecordKind`):
            Extension record kind.

        data (bytes):
            Extension record payload (big-endian value).

    Returns:
        int: Absolute offset of the extension window.

    Raises:
        :class:`InvalidExtensionKind`: `kind` is not an extension kind.

    Examples:
        >>> hex(contribution(RecordKind.EXTENDED_LINEAR_ADDRESS, b'\x00\x03'))
        '0x30000'
        >>> hex(contribution(RecordKind.EXTENDED_SEGMENT_ADDRESS, b'\x10\x00'))
        '0x10000'
    """

    value = int.from_bytes(data, byteorder='big', signed=False)

    if kind == RecordKind.EXTENDED_LINEAR_ADDRESS:
        return value << 16

    if kind == RecordKind.EXTENDED_SEGMENT_ADDRESS:
        return value * 16

    raise InvalidExtensionKind(f'not an address extension kind: {kind!r}')


def extension_base(extension: Optional[Record]) -> int:
    r"""Offset of the window opened by `extension`; zero if ``None``."""

    if extension is None:
        return 0
    return contribution(extension.kind, extension.data)


def absolute_address(record: Record, extension: Optional[Record]) -> int:
    r"""Computes the absolute start address of a record.

    Args:
        record (:class:`Record`):
            Record to resolve.

        extension (:class:`Record`):
            The extension record preceding `record`, or ``None``.

    Returns:
        int: Absolute address.
    """

    return extension_base(extension) + record.address


def encode_offset(kind: RecordKind, address: int) -> int:
    r"""Computes the extension value of a window covering `address`.

    This is the inverse of :func:`contribution`.

    Args:
        kind (:class:`RecordKind`):
            Extension record kind.

        address (int):
            Absolute address to cover.

    Returns:
        int: 16-bit extension record value.

    Raises:
        :class:`AddressOutOfRange`: The value does not fit 16 bits.
        :class:`InvalidExtensionKind`: `kind` is not an extension kind.

    Examples:
        >>> hex(encode_offset(RecordKind.EXTENDED_LINEAR_ADDRESS, 0x2AA00))
        '0x2'
        >>> hex(encode_offset(RecordKind.EXTENDED_SEGMENT_ADDRESS, 0x20010))
        '0x2001'
    """

    if kind == RecordKind.EXTENDED_LINEAR_ADDRESS:
        value = address >> 16

    elif kind == RecordKind.EXTENDED_SEGMENT_ADDRESS:
        value = address // 16

    else:
        raise InvalidExtensionKind(f'not an address extension kind: {kind!r}')

    if not 0 <= value <= 0xFFFF:
        raise AddressOutOfRange(f'address 0x{address:X} not representable by {kind.name}')

    return value
