"""A row-major 2-D image backed by a numpy array."""

from __future__ import annotations

from typing import Optional

import numpy as np


class Img:
    """An image of ``rows`` by ``cols`` elements.

    Each element is a scalar of ``dtype`` or, when ``channels`` is given, a
    vector of that many values. If ``data`` is passed the image wraps it
    without copying where possible and does not own it.
    """

    def __init__(self, rows: int, cols: int, dtype=None, channels: Optional[int] = None, data=None):
        if rows < 0 or cols < 0:
            raise ValueError("image dimensions must not be negative")
        self.rows = rows
        self.cols = cols
        self._element_shape = (channels,) if channels else ()
        shape = (rows, cols, *self._element_shape)
        if data is None:
            self.data = np.zeros(shape, dtype=np.uint8 if dtype is None else dtype)
            self.owned = True
        else:
            array = np.asarray(data) if dtype is None else np.asarray(data, dtype=dtype)
            expected = rows * cols * (channels or 1)
            if array.size != expected:
                raise ValueError(f"data holds {array.size} values, image needs {expected}")
            self.data = array.reshape(shape)
            self.owned = False

    @property
    def dtype(self) -> np.dtype:
        return self.data.dtype

    def at(self, *args):
        """Element by flat index ``at(i)`` or by position ``at(row, col)``.

        Vector elements come back as writable views into the image.
        """
        if len(args) == 1:
            (index,) = args
            return self.data.reshape(-1, *self._element_shape)[index]
        if len(args) == 2:
            row, col = args
            return self.data.reshape(-1, *self._element_shape)[self.cols * row + col]
        raise TypeError(f"at() takes 1 or 2 indices, got {len(args)}")