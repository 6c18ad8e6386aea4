import struct

import pytest

from deformfusion.vertex import SIZE, Surfel, pack_surfel, unpack_surfel


def _sample():
    return Surfel(
        position=(1.0, -2.5, 0.25),
        confidence=3.0,
        color=65280.0,
        init_time=10.0,
        timestamp=12.0,
        normal=(0.0, 0.0, -1.0),
        radius=0.5,
    )


def test_size_is_three_vec4():
    assert SIZE == 48
    assert len(pack_surfel(_sample())) == SIZE


def test_round_trip():
    s = _sample()
    assert unpack_surfel(pack_surfel(s)) == s


def test_unused_slot_is_zero():
    values = struct.unpack("<12f", pack_surfel(_sample()))
    assert values[5] == 0.0
    assert values[4] == _sample().color


def test_unpack_accepts_bytearray():
    data = bytearray(pack_surfel(_sample()))
    assert unpack_surfel(data).radius == _sample().radius


def test_unpack_wrong_length():
    with pytest.raises(ValueError):
        unpack_surfel(b"\x00" * (SIZE - 1))


def test_pack_bad_position():
    with pytest.raises(ValueError):
        pack_surfel(Surfel(position=(1.0, 2.0)))