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

"""
Module that contains the command line app.

Why does this file exist, and why not put this in __main__?

  You might be tempted to import things from __main__ later, but that will cause
  problems: the code will get executed twice:

  - When you run `python -m hexindex` python will execute
    ``__main__.py`` as a script. That means there won't be any
    ``hexindex.__main__`` in ``sys.modules``.
  - When you import __main__ it will get executed again (as a module) because
    there's no ``hexindex.__main__`` in ``sys.modules``.

  Also see (1) from https://click.palletsprojects.com/en/stable/setuptools/#setuptools-integration
"""

from typing import Callable
from typing import Mapping
from typing import Optional

import click

from .__init__ import __version__
from .base import DiagnosticSink
from .space import ByteSpace
from .utils import hexlify
from .utils import parse_int
from .utils import unhexlify


class BasedIntParamType(click.ParamType):
    name = 'integer'

    def convert(self, value, param, ctx):
        try:
            return parse_int(value)
        except ValueError:
            self.fail(f'invalid integer: {value!r}', param, ctx)


class WidthParamType(click.ParamType):
    name = 'width'

    def convert(self, value, param, ctx):
        try:
            w = parse_int(value)
            if not 1 <= w <= 255:
                raise ValueError()
            return w
        except ValueError:
            self.fail(f'invalid width: {value!r}', param, ctx)


BASED_INT = BasedIntParamType()
WIDTH_INT = WidthParamType()

FILE_PATH_IN = click.Path(dir_okay=False, allow_dash=True, readable=True, exists=True)
FILE_PATH_OUT = click.Path(dir_okay=False, allow_dash=True, writable=True)

DATA_FMT_FORMATTERS: Mapping[str, Callable[[bytes], str]] = {
    'hex': lambda b: hexlify(b, upper=False),
    'HEX': lambda b: hexlify(b, upper=True),
    'hex.': lambda b: hexlify(b, sep='.', upper=False),
    'HEX.': lambda b: hexlify(b, sep='.', upper=True),
    'hex-': lambda b: hexlify(b, sep='-', upper=False),
    'HEX-': lambda b: hexlify(b, sep='-', upper=True),
    'hex:': lambda b: hexlify(b, sep=':', upper=False),
    'HEX:': lambda b: hexlify(b, sep=':', upper=True),
    'hex_': lambda b: hexlify(b, sep='_', upper=False),
    'HEX_': lambda b: hexlify(b, sep='_', upper=True),
    'hex ': lambda b: hexlify(b, sep=' ', upper=False),
    'HEX ': lambda b: hexlify(b, sep=' ', upper=True),
}

DATA_FMT_PARSERS: Mapping[str, Callable[[str], bytes]] = {
    'hex': lambda s: unhexlify(s),
    'HEX': lambda s: unhexlify(s),
    'hex.': lambda s: unhexlify(s, delete='.'),
    'HEX.': lambda s: unhexlify(s, delete='.'),
    'hex-': lambda s: unhexlify(s, delete='-'),
    'HEX-': lambda s: unhexlify(s, delete='-'),
    'hex:': lambda s: unhexlify(s, delete=':'),
    'HEX:': lambda s: unhexlify(s, delete=':'),
    'hex_': lambda s: unhexlify(s, delete='_'),
    'HEX_': lambda s: unhexlify(s, delete='_'),
    'hexs': lambda s: unhexlify(s, delete=' \t'),
    'HEXs': lambda s: unhexlify(s, delete=' \t'),
}

DATA_FMT_CHOICE = click.Choice(list(DATA_FMT_FORMATTERS.keys()))
DATA_PARSE_CHOICE = click.Choice(list(DATA_FMT_PARSERS.keys()))


# ----------------------------------------------------------------------------

def echo_sink(line_number: int, raw_line: str, message: str) -> None:

    click.echo(f'line {line_number}: {message}: {raw_line!r}', err=True)


def get_sink(ctx: click.Context) -> Optional[DiagnosticSink]:

    verbose = bool(ctx.find_root().params.get('verbose'))
    return echo_sink if verbose else None


def print_version(ctx, _, value):

    if not value or ctx.resilient_parsing:
        return

    click.echo(str(__version__))
    ctx.exit()


# ----------------------------------------------------------------------------

class SpaceInOutCtxMgr:

    def __init__(
        self,
        input_path: str,
        output_path: Optional[str],
        output_width: Optional[int],
        sink: Optional[DiagnosticSink] = None,
    ):

        if input_path == '-':
            input_path = None

        if not output_path:
            output_path = input_path
        if output_path == '-':
            output_path = None

        self.input_path: Optional[str] = input_path
        self.output_path: Optional[str] = output_path
        self.output_width: Optional[int] = output_width
        self.sink: Optional[DiagnosticSink] = sink
        self.space: Optional[ByteSpace] = None

    def __enter__(self) -> 'SpaceInOutCtxMgr':

        self.space = ByteSpace.load(self.input_path, sink=self.sink)

        if self.output_width is not None:
            self.space.maxdatalen = self.output_width

        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:

        if exc_type is None:
            self.space.save(self.output_path)


# ============================================================================

@click.group()
@click.option('-v', '--verbose', is_flag=True, help="""
    Prints parser diagnostics onto standard error.
""")
@click.option('--version', is_flag=True, is_eager=True,
              expose_value=False, callback=print_version, help="""
    Prints the package version number.
""")
def main(verbose: bool) -> None:
    """
    A set of command line utilities to inspect and patch Intel HEX files.

    Being built with `Click <https://click.palletsprojects.com/en/stable/>`_, all the
    commands follow POSIX-like syntax rules, as well as reserving the virtual
    file path ``-`` for command chaining via standard output/input buffering.
    """


# ----------------------------------------------------------------------------

@main.command()
@click.argument('infile', type=FILE_PATH_IN)
@click.pass_context
def dump(
    ctx: click.Context,
    infile: str,
) -> None:
    r"""Dumps the defined bytes.

    Each defined byte is printed as its address and value, in hexadecimal.

    ``INFILE`` is the path of the input file.
    Set to ``-`` to read from standard input.
    """

    space = ByteSpace.load(infile, sink=get_sink(ctx))
    for address, value in space.defined_bytes():
        click.echo(f'{address:08X} {value:02X}')


# ----------------------------------------------------------------------------

@main.command()
@click.argument('infile', type=FILE_PATH_IN)
@click.pass_context
def info(
    ctx: click.Context,
    infile: str,
) -> None:
    r"""Prints a summary of the file.

    ``INFILE`` is the path of the input file.
    Set to ``-`` to read from standard input.
    """

    space = ByteSpace.load(infile, sink=get_sink(ctx))
    records = space.records
    data_count = sum(1 for record in records if record.kind.is_data())

    click.echo(f'format: {space.format.name}')
    click.echo(f'records: {len(records)}')
    click.echo(f'data records: {data_count}')
    for start, endex in space.get_spans():
        click.echo(f'span: 0x{start:08X} 0x{endex:08X}')


# ----------------------------------------------------------------------------

# noinspection PyShadowingBuiltins
@main.command()
@click.option('--color', is_flag=True, help="""
    Colorizes record fields with ANSI codes.
""")
@click.option('-s', '--start', type=BASED_INT, help="""
    Inclusive start record index.
""")
@click.option('-e', '--stop', type=BASED_INT, help="""
    Exclusive end record index.
""")
@click.argument('infile', type=FILE_PATH_IN)
@click.pass_context
def print(
    ctx: click.Context,
    color: bool,
    start: Optional[int],
    stop: Optional[int],
    infile: str,
) -> None:
    r"""Prints the records.

    ``INFILE`` is the path of the input file.
    Set to ``-`` to read from standard input.
    """

    space = ByteSpace.load(infile, sink=get_sink(ctx))
    space.print(color=color, start=start, stop=stop)


# ----------------------------------------------------------------------------

# noinspection PyShadowingBuiltins
@main.command()
@click.option('-a', '--address', type=BASED_INT, required=True, help="""
    Absolute start address.
""")
@click.option('-n', '--size', type=BASED_INT, required=True, help="""
    Number of bytes to read.
""")
@click.option('-f', '--format', 'format', type=DATA_FMT_CHOICE,
              default='HEX', show_default=True, help="""
    Output data format.
""")
@click.argument('infile', type=FILE_PATH_IN)
@click.pass_context
def read(
    ctx: click.Context,
    address: int,
    size: int,
    format: str,
    infile: str,
) -> None:
    r"""Reads bytes from the file.

    Undefined bytes read as zero.

    ``INFILE`` is the path of the input file.
    Set to ``-`` to read from standard input.
    """

    space = ByteSpace.load(infile, sink=get_sink(ctx))
    data = space.read_bytes(address, size)
    click.echo(DATA_FMT_FORMATTERS[format](data))


# ----------------------------------------------------------------------------

@main.command()
@click.argument('infile', type=FILE_PATH_IN)
@click.pass_context
def validate(
    ctx: click.Context,
    infile: str,
) -> None:
    r"""Validates the records.

    ``INFILE`` is the path of the input file.
    Set to ``-`` to read from standard input.
    """

    space = ByteSpace.load(infile, sink=get_sink(ctx))
    space.validate_records()


# ----------------------------------------------------------------------------

# noinspection PyShadowingBuiltins
@main.command()
@click.option('-a', '--address', type=BASED_INT, required=True, help="""
    Absolute start address.
""")
@click.option('-d', '--data', required=True, help="""
    Bytes to write, as hexadecimal digits.
""")
@click.option('-f', '--format', 'format', type=DATA_PARSE_CHOICE,
              default='hex', show_default=True, help="""
    Input data format.
""")
@click.option('-w', '--width', type=WIDTH_INT, help="""
    Maximum payload size of new records.
""")
@click.argument('infile', type=FILE_PATH_IN)
@click.argument('outfile', type=FILE_PATH_OUT, required=False)
@click.pass_context
def write(
    ctx: click.Context,
    address: int,
    data: str,
    format: str,
    width: Optional[int],
    infile: str,
    outfile: Optional[str],
) -> None:
    r"""Writes bytes into the file.

    Bytes within existing records are replaced in place; bytes within gaps
    are placed into new records.

    ``INFILE`` is the path of the input file.
    Set to ``-`` to read from standard input.

    ``OUTFILE`` is the path of the output file.
    Set to ``-`` to write to standard output.
    Leave empty to overwrite ``INFILE``.
    """

    try:
        buffer = DATA_FMT_PARSERS[format](data)
    except ValueError as exc:
        raise click.BadParameter(str(exc), ctx=ctx, param_hint='--data') from exc

    with SpaceInOutCtxMgr(infile, outfile, width, sink=get_sink(ctx)) as mgr:
        mgr.space.update_bytes(address, buffer)
