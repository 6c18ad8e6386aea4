import numpy as np
import pytest

from deformfusion.jacobian import Jacobian, OrderedJacobianRow


def _row(capacity, entries):
    row = OrderedJacobianRow(capacity)
    for index, value in entries:
        row.append(index, value)
    return row


def test_append_keeps_order_and_counts():
    row = _row(3, [(0, 1.5), (2, -2.0), (5, 4.0)])
    assert row.non_zeros == 3
    assert row.indices.tolist() == [0, 2, 5]
    assert row.values.tolist() == [1.5, -2.0, 4.0]


def test_append_rejects_non_increasing_column():
    row = _row(4, [(3, 1.0)])
    with pytest.raises(ValueError):
        row.append(3, 2.0)
    with pytest.raises(ValueError):
        row.append(1, 2.0)


def test_append_rejects_overflow():
    row = _row(1, [(0, 1.0)])
    with pytest.raises(ValueError):
        row.append(1, 1.0)


def test_add_to_combines_unweighted_value():
    weight = 10.0
    row = _row(2, [(1, 2.0 * weight), (4, 7.0)])
    row.add_to(1, 3.0, weight)
    assert row.values[0] == pytest.approx((2.0 + 3.0) * weight)
    assert row.values[1] == 7.0


def test_add_to_unknown_column_raises():
    row = _row(2, [(1, 1.0)])
    with pytest.raises(KeyError):
        row.add_to(2, 1.0, 1.0)


def test_jacobian_non_zero_and_csr():
    jac = Jacobian()
    jac.assign([_row(2, [(0, 1.0), (2, 3.0)]), _row(1, [(1, -4.0)])], 3)
    assert jac.cols == 3
    assert jac.non_zero() == 3
    dense = jac.to_csr().toarray()
    np.testing.assert_array_equal(dense, [[1.0, 0.0, 3.0], [0.0, -4.0, 0.0]])


def test_assign_replaces_previous_rows():
    jac = Jacobian()
    jac.assign([_row(1, [(0, 1.0)])], 1)
    jac.assign([_row(2, [(0, 1.0), (1, 1.0)]), _row(1, [(1, 2.0)])], 2)
    assert len(jac.rows) == 2
    assert jac.non_zero() == 3
    assert jac.to_csr().shape == (2, 2)


def test_csr_rejects_column_outside_matrix():
    jac = Jacobian()
    jac.assign([_row(1, [(5, 1.0)])], 3)
    with pytest.raises(ValueError):
        jac.to_csr()


def test_empty_jacobian():
    jac = Jacobian()
    assert jac.non_zero() == 0
    assert jac.to_csr().shape == (0, 0)