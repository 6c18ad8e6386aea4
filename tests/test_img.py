import numpy as np
import pytest

from deformfusion.img import Img


def test_owned_allocation():
    img = Img(2, 3)
    assert img.owned
    assert img.data.shape == (2, 3)
    assert img.dtype == np.uint8


def test_flat_and_row_col_agree():
    img = Img(2, 3, dtype=np.uint16)
    img.data[:] = np.arange(6, dtype=np.uint16).reshape(2, 3)
    for row in range(2):
        for col in range(3):
            assert img.at(row, col) == img.at(row * 3 + col) == img.data[row, col]


def test_vector_elements_are_views():
    img = Img(2, 2, dtype=np.float32, channels=4)
    element = img.at(1, 0)
    element[:] = [1.0, 2.0, 3.0, 4.0]
    np.testing.assert_array_equal(img.data[1, 0], [1.0, 2.0, 3.0, 4.0])
    np.testing.assert_array_equal(img.at(2), element)


def test_wrapped_data_is_shared_and_not_owned():
    buffer = np.zeros(12, dtype=np.uint8)
    img = Img(2, 2, channels=3, data=buffer)
    assert not img.owned
    assert np.shares_memory(img.data, buffer)
    img.at(0, 1)[:] = [9, 8, 7]
    assert list(buffer[3:6]) == [9, 8, 7]


def test_wrapped_data_size_mismatch():
    with pytest.raises(ValueError):
        Img(2, 2, data=np.zeros(5))


def test_wrong_number_of_indices():
    img = Img(1, 1)
    with pytest.raises(TypeError):
        img.at(0, 0, 0)


def test_negative_dimensions():
    with pytest.raises(ValueError):
        Img(-1, 2)