"""
The columnar file: rows are written one at a time, every value goes to the
column with its name, and the whole thing is packed in a single buffer.

    f = ColumnarFile('data.col')
    f.write({'n': Int(123), 'x': Float(123.456)})
    f.write({'n': 7})
    f.flush()

    for name, values in ColumnarFile.open('data.col').iterator():
        ...
"""
import logging
from typing import Any, Dict, Iterator, List, Mapping, Tuple

from .column import Column
from .enum import DType, Compliant
from .exceptions import (
    ColumnarException,
    EncodeError,
    FormatError,
    ReadOnlyError,
    TruncationError,
    TypeMismatchError,
)
from .header import Prologue, HeaderRecord, PROLOGUE_SIZE
from .streams import Stream, read_all, write_all, pack_word
from .types import typed


logger = logging.getLogger(__name__)


class ColumnarFile(object):

    def __init__(self, name=None, compliant=Compliant.STRICT):
        self.name = name
        self.compliant = compliant
        self.columns: Dict[str, Column] = {}
        # incremented once for each write(), shared by all the columns
        self.row = 0
        self.readonly = False

    def __repr__(self):
        return '<%s(%s, columns=%s)>' % (self.__class__.__name__, self.name, list(self.columns))

    def __len__(self):
        return len(self.columns)

    def __iter__(self):
        return iter(self.columns)

    def __contains__(self, name):
        return name in self.columns

    def __getitem__(self, name) -> Column:
        return self.columns[name]

    @property
    def dtypes(self) -> Dict[str, DType]:
        return {name: column.dtype for name, column in self.columns.items()}

    def _check_type(self, column: Column, dtype: DType) -> None:
        if column.dtype == dtype:
            return

        msg = f'column \'{column.name}\' has type {column.dtype} but a {dtype} was written'
        if self.compliant & Compliant.TYPE:
            raise TypeMismatchError(msg, chain=[column.name])

        logger.warning(msg)

    def write(self, values: Mapping[str, Any]) -> None:
        '''Write a row: each value is appended to the column with its name,
        creating it if needed. Nothing is written if any of the values fails.'''
        if self.readonly:
            raise ReadOnlyError(f'file \'{self.name}\' is read-only')

        encoded = []
        for name, value in values.items():
            if not isinstance(name, str):
                raise EncodeError(f'column names must be str, not {name.__class__.__name__}', chain=[repr(name)])

            try:
                name.encode('utf-8')
            except UnicodeEncodeError as e:
                raise EncodeError('column name is not encodable as utf-8', chain=[repr(name)]) from e

            try:
                value = typed(value)
                raw = value.encode()
            except EncodeError as e:
                e.chain.insert(0, name)
                raise

            if name in self.columns:
                self._check_type(self.columns[name], value.type())

            encoded.append((name, value.type(), raw))

        for name, dtype, raw in encoded:
            if name not in self.columns:
                logger.debug('new column \'%s\' of type %s' % (name, dtype))
                self.columns[name] = Column(name, dtype, compliant=self.compliant)

            self.columns[name].append(self.row, raw)

        self.row += 1

    def header(self) -> List[HeaderRecord]:
        '''The records describing the columns, in the order their data is packed'''
        records = []
        offset = 0
        for column in self.columns.values():
            records.append(HeaderRecord(
                dtype=column.dtype,
                offset=offset,
                length=column.size,
                column_name=column.name,
            ))
            offset += column.size

        return records

    def pack(self) -> bytes:
        '''Build the whole file in memory'''
        records = self.header()

        directory = b''
        for record in records:
            raw = record.pack()
            directory += pack_word(len(raw)) + raw

        prologue = Prologue(count=len(records), header_length=PROLOGUE_SIZE + len(directory))

        logger.debug('packing %d columns, data starts at offset %d' % (len(records), prologue.header_length.value))

        return b''.join([prologue.pack(), directory] + [bytes(_.data) for _ in self.columns.values()])

    @property
    def raw(self) -> bytes:
        return self.pack()

    def flush(self, target=None) -> None:
        '''Write the packed file to target (a path or a writable object),
        by default the name of this file.'''
        target = target if target is not None else self.name
        if target is None:
            raise ValueError('no target to flush to: the file has no name')

        write_all(target, self.pack())

    def _read_header(self, view: memoryview) -> Tuple[Prologue, List[HeaderRecord]]:
        prologue = Prologue(view[:PROLOGUE_SIZE])

        header_length = prologue.header_length.value
        if header_length < PROLOGUE_SIZE:
            raise FormatError(f'header length {header_length} is shorter than the prologue', chain=['header_length'])
        if header_length > len(view):
            raise TruncationError(f'header length {header_length} is past the end of the file ({len(view)} bytes)',
                                  chain=['header_length'])

        directory = Stream(view[PROLOGUE_SIZE:header_length])
        records = []
        for index in range(prologue.count.value):
            try:
                record_length = directory.read_word()
                record = HeaderRecord(directory.read(record_length))
                if record.size != record_length:
                    raise FormatError(f'record is {record_length} bytes but only {record.size} are used')
            except ColumnarException as e:
                e.chain.insert(0, 'header[%d]' % index)
                raise

            logger.debug('found %r' % record)
            records.append(record)

        if not directory.at_end():
            raise FormatError(f'{directory.remaining} unexpected bytes after the header records')

        return prologue, records

    def unpack(self, data) -> None:
        '''Parse a whole file: the columns are views of data that must not change afterwards'''
        view = memoryview(data)

        prologue, records = self._read_header(view)

        header_length = prologue.header_length.value
        columns = {}
        for record in records:
            name = record.column_name.value
            start = header_length + record.offset.value
            end = start + record.length.value

            if end > len(view):
                raise TruncationError(f'data [{start}, {end}) is past the end of the file ({len(view)} bytes)',
                                      chain=[name])

            if name in columns:
                raise FormatError('duplicated column', chain=[name])

            columns[name] = Column(name, record.dtype.value, data=view[start:end], compliant=self.compliant)

        self.columns = columns
        # the row counter is not stored in the file
        self.row = 0
        self.readonly = True

    @classmethod
    def from_bytes(cls, data, name=None, compliant=Compliant.STRICT) -> 'ColumnarFile':
        instance = cls(name=name, compliant=compliant)
        instance.unpack(data)

        return instance

    @classmethod
    def open(cls, path, compliant=Compliant.STRICT) -> 'ColumnarFile':
        '''Read and parse the file at path'''
        return cls.from_bytes(read_all(path), name=path, compliant=compliant)

    def iterator(self) -> Iterator[Tuple[str, List]]:
        '''Yields the name and the decoded values of each column'''
        for name, column in self.columns.items():
            yield name, column.values()
