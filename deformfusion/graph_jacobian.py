"""Sparse Jacobian of the deformation-graph energy."""

from __future__ import annotations

from dataclasses import replace
from math import sqrt
from typing import Iterable, List, Sequence, Set, Tuple

import numpy as np

from .graph import DeformationGraph, VertexWeightMap, sort_weight_maps
from .jacobian import Jacobian, OrderedJacobianRow

_ROTATION_PAIRS = ((0, 1), (0, 2), (1, 2))


def _row(capacity: int, entries: Iterable[Tuple[int, float]]) -> OrderedJacobianRow:
    row = OrderedJacobianRow(capacity)
    for column, value in entries:
        row.append(column, value)
    return row


def _influenced(graph: DeformationGraph, weights: Sequence[VertexWeightMap]) -> bool:
    return any(graph.nodes[entry.node].enabled for entry in weights)


def _rotation_rows(graph: DeformationGraph, back_set: int) -> List[OrderedJacobianRow]:
    rows: List[OrderedJacobianRow] = []
    for node in graph.nodes:
        if not node.enabled:
            continue
        rotation = np.asarray(node.rotation, dtype=np.float64)
        offset = node.id * graph.NUM_VARIABLES - back_set
        for a, b in _ROTATION_PAIRS:
            entries = [(offset + 3 * a + r, rotation[r, b]) for r in range(3)]
            entries += [(offset + 3 * b + r, rotation[r, a]) for r in range(3)]
            rows.append(_row(6, entries))
        for c in range(3):
            rows.append(_row(3, [(offset + 3 * c + r, 2.0 * rotation[r, c]) for r in range(3)]))
    return rows


def _regularisation_rows(graph: DeformationGraph, back_set: int) -> List[OrderedJacobianRow]:
    rows: List[OrderedJacobianRow] = []
    weight = sqrt(graph.w_reg)
    nodes = graph.nodes
    for node in nodes:
        offset = node.id * graph.NUM_VARIABLES
        for neighbour_index in node.neighbours:
            neighbour = nodes[neighbour_index]
            if not (neighbour.enabled or node.enabled):
                continue
            neighbour_offset = neighbour.id * graph.NUM_VARIABLES
            if neighbour_offset == offset:
                raise ValueError(f"node {node.id} lists itself as a neighbour")
            delta = np.asarray(neighbour.position, dtype=np.float64) - np.asarray(
                node.position, dtype=np.float64
            )
            for axis in range(3):
                entries: List[Tuple[int, float]] = []
                neighbour_entry = (neighbour_offset + 9 + axis - back_set, -1.0 * weight)
                if neighbour_offset < offset and neighbour.enabled:
                    entries.append(neighbour_entry)
                if node.enabled:
                    base = offset - back_set
                    entries += [
                        (base + axis, delta[0] * weight),
                        (base + 3 + axis, delta[1] * weight),
                        (base + 6 + axis, delta[2] * weight),
                        (base + 9 + axis, 1.0 * weight),
                    ]
                if neighbour_offset > offset and neighbour.enabled:
                    entries.append(neighbour_entry)
                rows.append(_row(5, entries))
    return rows


def _fill_constraint_rows(
    graph: DeformationGraph,
    rows: Sequence[OrderedJacobianRow],
    weights: Sequence[VertexWeightMap],
    source_position: np.ndarray,
    target_position: np.ndarray,
    back_set: int,
) -> None:
    weight = sqrt(graph.w_con)
    seen: Set[int] = set()
    for entry in weights:
        node = graph.nodes[entry.node]
        if not node.enabled:
            continue
        position = np.asarray(node.position, dtype=np.float64)
        if entry.relative:
            delta = (position - target_position) * entry.weight
            translation = -entry.weight
        else:
            delta = (source_position - position) * entry.weight
            translation = entry.weight
        base = node.id * graph.NUM_VARIABLES - back_set
        for axis, row in enumerate(rows):
            values = (
                (base + axis, delta[0]),
                (base + 3 + axis, delta[1]),
                (base + 6 + axis, delta[2]),
                (base + 9 + axis, translation),
            )
            for column, value in values:
                if node.id in seen:
                    row.add_to(column, value, weight)
                else:
                    row.append(column, value * weight)
        seen.add(node.id)


def _constraint_rows(graph: DeformationGraph, back_set: int) -> List[OrderedJacobianRow]:
    rows: List[OrderedJacobianRow] = []
    capacity = 4 * graph.k * 2
    for constraint in graph.constraints:
        weight_map = graph.vertex_map[constraint.vertex_id]
        influenced = _influenced(graph, weight_map)
        if constraint.relative and not influenced:
            influenced = _influenced(graph, graph.vertex_map[constraint.target_id])
        if not influenced:
            continue

        block = [OrderedJacobianRow(capacity) for _ in range(3)]
        if len(weight_map) >= 2 and not (
            graph.nodes[weight_map[0].node].id < graph.nodes[weight_map[1].node].id
        ):
            raise ValueError(
                f"weights of vertex {constraint.vertex_id} are not sorted by node id"
            )

        source_position = np.asarray(
            graph.source_vertices[constraint.vertex_id], dtype=np.float64
        ).ravel()

        if constraint.relative:
            target_position = np.asarray(
                graph.source_vertices[constraint.target_id], dtype=np.float64
            ).ravel()
            relative_map = graph.vertex_map[constraint.target_id]
            for entry in relative_map:
                entry.relative = True
            mixed = [replace(entry) for entry in weight_map] + [
                replace(entry) for entry in relative_map
            ]
            sort_weight_maps(mixed, graph.nodes)
            _fill_constraint_rows(graph, block, mixed, source_position, target_position, back_set)
        else:
            _fill_constraint_rows(
                graph, block, weight_map, source_position, np.zeros(3), back_set
            )
        rows.extend(block)
    return rows


def sparse_jacobian(graph: DeformationGraph, num_rows: int, num_cols: int, back_set: int) -> Jacobian:
    """Jacobian of the rotation, regularisation and constraint residuals.

    Columns belong to enabled nodes, twelve per node (rotation entries in
    column-major order, then translation), shifted left by ``back_set``.
    Raises ``ValueError`` if the rows built do not number ``num_rows``.
    """
    rows = (
        _rotation_rows(graph, back_set)
        + _regularisation_rows(graph, back_set)
        + _constraint_rows(graph, back_set)
    )
    if len(rows) != num_rows:
        raise ValueError(f"built {len(rows)} jacobian rows, expected {num_rows}")
    jacobian = Jacobian()
    jacobian.assign(rows, num_cols)
    return jacobian