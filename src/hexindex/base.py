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

r"""Base types, errors and helpers."""

import os
from typing import Any
from typing import Callable
from typing import Mapping
from typing import Optional
from typing import Union

import colorama

try:
    from typing import TypeAlias
except ImportError:  # pragma: no cover
    TypeAlias = Any  # Python < 3.10

AnyBytes: TypeAlias = Union[bytes, bytearray, memoryview]
AnyPath: TypeAlias = Union[bytes, bytearray, str, os.PathLike]

DiagnosticSink: TypeAlias = Callable[[int, str, str], None]
r"""Parser diagnostic callback.

Called as ``sink(line_number, raw_line, message)`` for each recoverable
problem found while parsing.
"""

TOKEN_COLOR_CODES: Mapping[str, str] = {
    '':         colorama.Style.RESET_ALL,
    '<':        colorama.Style.RESET_ALL,
    '>':        colorama.Style.RESET_ALL,
    'address':  colorama.Fore.RED,
    'begin':    colorama.Fore.YELLOW,
    'checksum': colorama.Fore.MAGENTA,
    'count':    colorama.Fore.BLUE,
    'data':     colorama.Fore.CYAN,
    'dataalt':  colorama.Fore.LIGHTCYAN_EX,
    'end':      colorama.Style.RESET_ALL,
    'kind':     colorama.Fore.GREEN,
}
r"""ANSI color codes for each possible token type."""


class HexIndexError(ValueError):
    r"""Base class of all the errors raised by this library."""


class ParseDecodeError(HexIndexError):
    r"""Record line cannot be decoded (bad hex digits, too short)."""


class UnknownRecordKind(HexIndexError):
    r"""Record kind byte is not one of the known record kinds."""


class InvalidExtensionKind(HexIndexError):
    r"""Address extension requested for a non-extension record kind."""


class NegativeAddress(HexIndexError):
    r"""Negative address argument."""


class NegativeLength(HexIndexError):
    r"""Negative length argument."""


class AddressOutOfRange(HexIndexError):
    r"""Address cannot be represented by an extension record."""


def void_sink(line_number: int, raw_line: str, message: str) -> None:
    r"""Diagnostic sink discarding everything."""


def ensure_sink(sink: Optional[DiagnosticSink]) -> DiagnosticSink:
    r"""Replaces a missing diagnostic sink with :func:`void_sink`."""

    return void_sink if sink is None else sink


def colorize_tokens(
    tokens: Mapping[str, str],
    altdata: bool = True,
) -> Mapping[str, str]:
    r"""Prepends ANSI color codes to record field tokens.

    For each token within `tokens`, its key is used to look up the ANSI color
    code from :data:`TOKEN_COLOR_CODES`.
    The retrieved code is prepended to the token.

    Args:
        tokens (dict):
            A mapping of each token key name to token string.

        altdata (bool):
            If true, it alternates each byte (two hex digits) between the ANSI
            color codes mapped with keys ``data`` (even byte index) and
            ``dataalt`` (odd byte index).
            If false, only the ``data`` code is prepended.

    Returns:
        dict: `tokens` with prepended ANSI color codes.
    """

    codes = TOKEN_COLOR_CODES
    colorized = {}
    colorized.setdefault('<', codes['<'])

    for key, value in tokens.items():
        if key not in codes:
            key = ''
        if value:
            code = codes[key]

            if key == 'data' and altdata:
                altcode = codes['dataalt']
                parts = []
                for i in range(0, len(value), 2):
                    parts.append(altcode if i & 2 else code)
                    parts.append(value[i:(i + 2)])
                colorized[key] = ''.join(parts)
            else:
                colorized[key] = code + value

    colorized.setdefault('>', codes['>'])
    return colorized
