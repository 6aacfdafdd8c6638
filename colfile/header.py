"""
Records at the start of a columnar file:

    +-----------------------+
    | Prologue              |  magic, version, header version, count, header length
    +-----------------------+
    | record length (8)     |
    | HeaderRecord          |  repeated count times
    +-----------------------+
    | column data           |  concatenated in the same order of the records
    +-----------------------+

header_length is the absolute position of the column data, each record
locates its column with an offset relative to that position.
"""
from . import fields
from .core import Chunk
from .enum import DType
from .exceptions import VersionError
from .properties import Dependency


MAGIC = 0xCACACACA
VERSION = 1
HEADER_VERSION = 1


class Prologue(Chunk):
    magic = fields.StructField('Q', default=MAGIC, is_magic=True)
    version = fields.StructField('Q', default=VERSION)
    header_version = fields.StructField('Q', default=HEADER_VERSION)
    count = fields.StructField('Q')
    header_length = fields.StructField('Q')

    def validate(self):
        if self.version.value != VERSION:
            raise VersionError(f'unsupported version {self.version.value}', chain=['version'])

        if self.header_version.value != HEADER_VERSION:
            raise VersionError(f'unsupported file header version {self.header_version.value}',
                               chain=['header_version'])


class HeaderRecord(Chunk):
    '''Describes where the data of a column is and how to decode it'''
    dtype = fields.StructField('Q', enum=DType, default=DType.STRING.value)
    offset = fields.StructField('Q')
    length = fields.StructField('Q')
    name_length = fields.StructField('Q')
    column_name = fields.TextField(Dependency('.name_length'))


PROLOGUE_SIZE = Prologue().size
