import numpy as np
import pytest

from deformfusion.cholesky import CholeskyDecomp
from deformfusion.jacobian import Jacobian, OrderedJacobianRow


def _jacobian_from_dense(dense):
    jac = Jacobian()
    rows = []
    for line in dense:
        nonzero = [(c, v) for c, v in enumerate(line) if v != 0]
        row = OrderedJacobianRow(len(nonzero))
        for c, v in nonzero:
            row.append(c, v)
        rows.append(row)
    jac.assign(rows, len(dense[0]))
    return jac


@pytest.fixture
def system():
    rng = np.random.default_rng(7)
    dense = rng.normal(size=(12, 5))
    dense[np.abs(dense) < 0.4] = 0.0
    dense += np.eye(12, 5) * 3.0
    residual = rng.normal(size=12)
    return dense, residual


def test_solution_satisfies_normal_equations(system):
    dense, residual = system
    solver = CholeskyDecomp()
    delta = solver.solve(_jacobian_from_dense(dense), residual, True)
    np.testing.assert_allclose(dense.T @ dense @ delta, dense.T @ residual, atol=1e-9)


def test_matches_least_squares(system):
    dense, residual = system
    delta = CholeskyDecomp().solve(_jacobian_from_dense(dense), residual, True)
    expected, *_ = np.linalg.lstsq(dense, residual, rcond=None)
    np.testing.assert_allclose(delta, expected, atol=1e-9)


def test_reuses_analysis_for_same_pattern(system):
    dense, residual = system
    solver = CholeskyDecomp()
    solver.solve(_jacobian_from_dense(dense), residual, True)
    scaled = dense * 2.0
    delta = solver.solve(_jacobian_from_dense(scaled), -residual, False)
    np.testing.assert_allclose(scaled.T @ scaled @ delta, -(scaled.T @ residual), atol=1e-9)
    assert solver.has_factor


def test_second_call_needs_analysis(system):
    dense, residual = system
    with pytest.raises(RuntimeError):
        CholeskyDecomp().solve(_jacobian_from_dense(dense), residual, False)


def test_first_run_twice_raises(system):
    dense, residual = system
    solver = CholeskyDecomp()
    solver.solve(_jacobian_from_dense(dense), residual, True)
    with pytest.raises(RuntimeError):
        solver.solve(_jacobian_from_dense(dense), residual, True)


def test_free_factor_allows_new_first_run(system):
    dense, residual = system
    solver = CholeskyDecomp()
    solver.solve(_jacobian_from_dense(dense), residual, True)
    solver.free_factor()
    assert not solver.has_factor
    delta = solver.solve(_jacobian_from_dense(dense), residual, True)
    np.testing.assert_allclose(dense.T @ dense @ delta, dense.T @ residual, atol=1e-9)


def test_free_factor_without_factor_raises():
    with pytest.raises(RuntimeError):
        CholeskyDecomp().free_factor()


def test_residual_length_mismatch(system):
    dense, residual = system
    with pytest.raises(ValueError):
        CholeskyDecomp().solve(_jacobian_from_dense(dense), residual[:-1], True)


def test_column_count_change_raises(system):
    dense, residual = system
    solver = CholeskyDecomp()
    solver.solve(_jacobian_from_dense(dense), residual, True)
    with pytest.raises(ValueError):
        solver.solve(_jacobian_from_dense(dense[:, :4]), residual, False)