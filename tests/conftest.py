import logging
import os

import pytest

from colfile.file import ColumnarFile
from colfile.types import Int, Float, String, Ints, Strings


logging.basicConfig(level=logging.DEBUG if 'DEBUG' in os.environ else logging.INFO)


@pytest.fixture
def populated():
    """A file with a column for each type and a sparse row."""
    f = ColumnarFile('populated.col')
    f.write({
        'n': Int(123),
        'x': Float(123.456),
        's': String('kebab'),
    })
    f.write({
        'n': Int(-1),
        'ns': Ints([1, -2, 3]),
        'ss': Strings(['a', '', 'miao']),
    })
    f.write({
        'n': Int(2 ** 63 - 1),
        'x': Float(-0.0),
        's': String(''),
        'ns': Ints([]),
        'ss': Strings([]),
    })

    return f
