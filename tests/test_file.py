import io

import pytest

from colfile.enum import DType, Compliant
from colfile.exceptions import (
    DecodeError,
    EncodeError,
    FormatError,
    MagicError,
    ReadOnlyError,
    SourceError,
    TruncationError,
    TypeMismatchError,
    VersionError,
)
from colfile.file import ColumnarFile
from colfile.header import HeaderRecord, PROLOGUE_SIZE
from colfile.streams import pack_word
from colfile.types import Int, Float, String, Ints, Strings


EXPECTED = {
    'n': [123, -1, 2 ** 63 - 1],
    'x': [123.456, -0.0],
    's': ['kebab', ''],
    'ns': [[1, -2, 3], []],
    'ss': [['a', '', 'miao'], []],
}


def test_int_and_float_row():
    f = ColumnarFile('abc.xyz')
    f.write({
        'n': Int(123),
        'x': Float(123.456),
    })

    parsed = ColumnarFile.from_bytes(f.pack())

    assert parsed['n'].values() == [123]
    assert parsed['x'].values() == [123.456]
    assert parsed.dtypes == {'n': DType.INT, 'x': DType.FLOAT}


def test_sparse_rows():
    """The row index is the one of the file, not the position in the column"""
    f = ColumnarFile()
    f.write({'a': Int(1), 'b': String('only once')})
    f.write({'a': Int(2)})

    assert f.row == 2

    parsed = ColumnarFile.from_bytes(f.pack())

    assert parsed['b'].rows() == [0]
    assert parsed['a'].rows() == [0, 1]
    assert list(parsed['b'].entries()) == [(0, 'only once')]


def test_row_counter_empty_write():
    f = ColumnarFile()
    f.write({})
    f.write({'a': 1})

    assert f.row == 2
    assert f['a'].rows() == [1]


def test_round_trip(populated):
    parsed = ColumnarFile.from_bytes(populated.pack())

    assert sorted(parsed) == sorted(EXPECTED)
    for name, values in EXPECTED.items():
        assert populated[name].values() == values
        assert parsed[name].values() == values
        assert parsed[name].rows() == populated[name].rows()

    assert parsed['x'].rows() == [0, 2]


def test_type_stability(populated):
    for _ in range(10):
        populated.write({'n': 1, 'x': 2.0, 'ss': ['a']})

    assert populated.dtypes == {
        'n': DType.INT,
        'x': DType.FLOAT,
        's': DType.STRING,
        'ns': DType.INTS,
        'ss': DType.STRINGS,
    }


def test_pack_idempotent(populated):
    assert populated.pack() == populated.pack()
    assert populated.raw == populated.pack()


def test_pack_layout(populated):
    """Records and data blocks follow the same order"""
    raw = populated.pack()
    records = populated.header()

    directory = sum(8 + _.size for _ in records)
    header_length = PROLOGUE_SIZE + directory

    assert raw[24:32] == pack_word(len(records))
    assert raw[32:40] == pack_word(header_length)
    assert len(raw) == header_length + sum(_.length.value for _ in records)

    offset = 0
    for record in records:
        assert record.offset.value == offset
        start = header_length + offset
        name = record.column_name.value
        assert raw[start:start + record.length.value] == bytes(populated[name].data)
        offset += record.length.value

    parsed = ColumnarFile.from_bytes(raw)
    assert [_.raw for _ in parsed.header()] == [_.raw for _ in records]


def test_empty_file():
    raw = ColumnarFile().pack()

    assert len(raw) == PROLOGUE_SIZE
    assert raw[24:32] == pack_word(0)
    assert raw[32:40] == pack_word(PROLOGUE_SIZE)

    parsed = ColumnarFile.from_bytes(raw)

    assert len(parsed) == 0
    assert list(parsed.iterator()) == []


def test_parsed_columns_are_views(populated):
    parsed = ColumnarFile.from_bytes(populated.pack())

    for name in parsed:
        assert isinstance(parsed[name].data, memoryview)
        assert parsed[name].data.readonly


def test_bad_magic(populated):
    raw = bytearray(populated.pack())
    raw[:8] = bytes(~_ & 0xff for _ in raw[:8])

    with pytest.raises(FormatError):
        ColumnarFile.from_bytes(bytes(raw))

    with pytest.raises(MagicError):
        ColumnarFile.from_bytes(bytes(raw))


def test_unsupported_version(populated):
    raw = bytearray(populated.pack())
    raw[8:16] = pack_word(2)

    with pytest.raises(VersionError):
        ColumnarFile.from_bytes(raw)


def test_truncated_prologue():
    with pytest.raises(TruncationError):
        ColumnarFile.from_bytes(ColumnarFile().pack()[:20])


def test_truncated_data(populated):
    raw = populated.pack()

    with pytest.raises(TruncationError):
        ColumnarFile.from_bytes(raw[:-1])


def test_truncated_header(populated):
    raw = populated.pack()

    with pytest.raises(TruncationError):
        ColumnarFile.from_bytes(raw[:PROLOGUE_SIZE + 10])


def test_header_length_too_short(populated):
    raw = bytearray(populated.pack())
    raw[32:40] = pack_word(PROLOGUE_SIZE - 1)

    with pytest.raises(FormatError):
        ColumnarFile.from_bytes(raw)


def test_header_count_too_big(populated):
    raw = bytearray(populated.pack())
    raw[24:32] = pack_word(100)

    with pytest.raises(TruncationError) as excinfo:
        ColumnarFile.from_bytes(raw)

    assert excinfo.value.chain[0] == 'header[5]'


def test_header_leftover(populated):
    raw = bytearray(populated.pack())
    raw[24:32] = pack_word(4)

    with pytest.raises(FormatError):
        ColumnarFile.from_bytes(raw)


def test_record_length_mismatch():
    f = ColumnarFile()
    f.write({'a': 1})
    raw = bytearray(f.pack())
    record_length = HeaderRecord(column_name='a').size

    # record claims one more byte than it uses, the directory grows accordingly
    raw[PROLOGUE_SIZE:PROLOGUE_SIZE + 8] = pack_word(record_length + 1)
    raw[32:40] = pack_word(PROLOGUE_SIZE + 8 + record_length + 1)
    raw[PROLOGUE_SIZE + 8 + record_length:PROLOGUE_SIZE + 8 + record_length] = b'\x00'

    with pytest.raises(FormatError) as excinfo:
        ColumnarFile.from_bytes(bytes(raw))

    assert excinfo.value.chain == ['header[0]']


def test_duplicated_column():
    f = ColumnarFile()
    f.write({'a': 1, 'b': 2})
    raw = bytearray(f.pack())
    raw[raw.index(b'b', PROLOGUE_SIZE)] = ord('a')

    with pytest.raises(FormatError):
        ColumnarFile.from_bytes(bytes(raw))


def test_type_mismatch():
    f = ColumnarFile()
    f.write({'a': 1})

    with pytest.raises(TypeMismatchError) as excinfo:
        f.write({'b': 'ok', 'a': 'not an int'})

    assert excinfo.value.chain == ['a']
    assert isinstance(excinfo.value, FormatError)

    # nothing changed
    assert f.row == 1
    assert 'b' not in f
    assert f['a'].values() == [1]


def test_type_mismatch_lenient():
    f = ColumnarFile(compliant=Compliant.NONE)
    f.write({'a': 1})
    f.write({'a': 'xy'})

    assert f.row == 2
    assert f.dtypes == {'a': DType.INT}
    assert len(f['a']) == 2

    with pytest.raises(DecodeError):
        f['a'].values()


def test_write_is_atomic():
    f = ColumnarFile()
    f.write({'a': 1})

    with pytest.raises(EncodeError) as excinfo:
        f.write({'a': 2, 'b': []})

    assert excinfo.value.chain == ['b']
    assert f.row == 1
    assert 'b' not in f
    assert f['a'].values() == [1]

    with pytest.raises(EncodeError):
        f.write({'a': 2 ** 64})

    with pytest.raises(EncodeError):
        f.write({1: 2})

    assert f['a'].values() == [1]


def test_write_plain_values():
    f = ColumnarFile()
    f.write({'i': 1, 'f': 1.5, 's': 'x', 'is': [1, 2], 'ss': ['a', 'b']})

    assert f.dtypes == {
        'i': DType.INT,
        'f': DType.FLOAT,
        's': DType.STRING,
        'is': DType.INTS,
        'ss': DType.STRINGS,
    }


def test_parsed_is_readonly(populated):
    parsed = ColumnarFile.from_bytes(populated.pack())

    with pytest.raises(ReadOnlyError):
        parsed.write({'n': 1})


def test_iterator(populated):
    assert dict(ColumnarFile.from_bytes(populated.pack()).iterator()) == EXPECTED


def test_flush_and_open(tmp_path, populated):
    path = tmp_path / 'file.col'
    path.write_bytes(b'\x00' * 4096)

    populated.flush(path)

    parsed = ColumnarFile.open(path)

    assert parsed.name == path
    assert dict(parsed.iterator()) == EXPECTED


def test_flush_to_name(tmp_path):
    f = ColumnarFile(str(tmp_path / 'named.col'))
    f.write({'a': Ints([1])})
    f.flush()

    assert ColumnarFile.open(f.name)['a'].values() == [[1]]


def test_flush_to_object(populated):
    buffer = io.BytesIO()

    populated.flush(buffer)

    assert buffer.getvalue() == populated.pack()


def test_flush_without_name():
    with pytest.raises(ValueError):
        ColumnarFile().flush()


def test_open_missing(tmp_path):
    with pytest.raises(SourceError):
        ColumnarFile.open(tmp_path / 'missing.col')


@pytest.mark.parametrize('value', [String(b'\xff\x00raw'), Strings([b'\xfe']), '\ud800'])
def test_write_not_utf8_value(value):
    f = ColumnarFile()
    f.write({'s': 'ok'})

    with pytest.raises(EncodeError) as excinfo:
        f.write({'n': 1, 's': value})

    assert excinfo.value.chain[0] == 's'
    assert f.row == 1
    assert 'n' not in f
    assert ColumnarFile.from_bytes(f.pack())['s'].values() == ['ok']


def test_write_not_utf8_name():
    f = ColumnarFile()
    f.write({'a': 1})

    with pytest.raises(EncodeError) as excinfo:
        f.write({'b': 2, '\ud800': 1})

    assert excinfo.value.chain == [repr('\ud800')]
    assert f.row == 1
    assert list(f) == ['a']
    assert ColumnarFile.from_bytes(f.pack())['a'].values() == [1]


def test_unpack_resets_row(populated):
    raw = ColumnarFile().pack()

    populated.unpack(raw)

    assert populated.row == 0
    assert len(populated) == 0
    assert populated.readonly
