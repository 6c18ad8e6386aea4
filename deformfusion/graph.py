"""Embedded deformation graph: nodes, vertex weighting and constraints."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, MutableSequence, Sequence

import numpy as np

LOOK_BACK = 20


def _vec3(value) -> np.ndarray:
    array = np.array(value, dtype=np.float64).ravel()
    if array.shape != (3,):
        raise ValueError("expected a vector with three components")
    return array


@dataclass(eq=False)
class GraphNode:
    """A node of the deformation graph with its affine transform."""

    id: int
    position: np.ndarray
    rotation: np.ndarray = field(default_factory=lambda: np.eye(3))
    translation: np.ndarray = field(default_factory=lambda: np.zeros(3))
    neighbours: List[int] = field(default_factory=list)
    enabled: bool = True


@dataclass
class VertexWeightMap:
    """The influence of one graph node on a vertex or pose."""

    weight: float
    node: int
    relative: bool = False


@dataclass
class Constraint:
    """A vertex pinned to a position, or tied to another vertex when relative."""

    vertex_id: int
    target_position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    relative: bool = False
    target_id: int = -1


def sort_weight_maps(weights: MutableSequence[VertexWeightMap], nodes: Sequence[GraphNode]) -> None:
    """Sort ``weights`` in place by the id of the node each refers to, stably."""
    weights[:] = sorted(weights, key=lambda entry: nodes[entry.node].id)


class DeformationGraph:
    """A sequential deformation graph over a list of source vertices.

    ``source_vertices`` is kept by reference: vertices appended to it later
    are weighted by :meth:`append_vertices`, and
    :meth:`apply_graph_to_vertices` writes the deformed positions back into it.
    """

    NUM_VARIABLES = 12
    E_ROT_ROWS = 6
    E_REG_ROWS = 3
    E_CON_ROWS = 3

    def __init__(self, k: int, source_vertices: MutableSequence):
        if k < 0:
            raise ValueError("the number of neighbours must not be negative")
        self.k = k
        self.initialised = False
        self.w_rot = 1.0
        self.w_reg = 10.0
        self.w_con = 100.0
        self.source_vertices = source_vertices
        self.nodes: List[GraphNode] = []
        self.graph_cloud: List[np.ndarray] = []
        self.graph_times: List[int] = []
        self.vertex_map: List[List[VertexWeightMap]] = []
        self.pose_map: List[List[VertexWeightMap]] = []
        self.constraints: List[Constraint] = []
        self.last_point_count = 0

    def _require_initialised(self) -> None:
        if not self.initialised:
            raise RuntimeError("the deformation graph has not been initialised")

    def initialise_graph(self, custom_graph, graph_times) -> None:
        """Build the nodes from positions and their (sorted) sample times."""
        cloud = [_vec3(point) for point in custom_graph]
        times = [int(t) for t in graph_times]
        if len(cloud) != len(times):
            raise ValueError("every graph node needs exactly one sample time")
        if len(cloud) < self.k + 1:
            raise ValueError(f"a graph with k={self.k} needs at least {self.k + 1} nodes")
        self.graph_cloud = cloud
        self.graph_times = times
        self.nodes = [GraphNode(id=i, position=point.copy()) for i, point in enumerate(cloud)]
        self._connect_graph_seq()
        self.initialised = True

    def _connect_graph_seq(self) -> None:
        size = len(self.nodes)
        half = self.k // 2
        for i in range(half):
            self.nodes[i].neighbours.extend(n for n in range(self.k + 1) if n != i)
        for i in range(half, size - half):
            for n in range(half):
                self.nodes[i].neighbours.append(i - (n + 1))
                self.nodes[i].neighbours.append(i + (n + 1))
        for i in range(size - half, size):
            self.nodes[i].neighbours.extend(
                n for n in range(size - (self.k + 1), size) if n != i
            )

    def _nearest_time_index(self, time: int) -> int:
        times = self.graph_times
        imin, imax = 0, len(times) - 1
        imid = (imin + imax) // 2
        while imax >= imin:
            imid = (imin + imax) // 2
            if times[imid] < time:
                imin = imid + 1
            elif times[imid] > time:
                imax = imid - 1
            else:
                break
        imin = min(imin, len(times) - 1)
        imax = max(imax, 0)
        d_min = abs(times[imin] - time)
        d_mid = abs(times[imid] - time)
        d_max = abs(times[imax] - time)
        if d_min <= d_mid and d_min <= d_max:
            found = imin
        elif d_mid <= d_min and d_mid <= d_max:
            found = imid
        else:
            found = imax
        return min(found, len(self.graph_cloud) - 1)

    def _weights_for(self, point: np.ndarray, time: int) -> List[VertexWeightMap]:
        found = self._nearest_time_index(time)
        candidates = list(range(found, max(found - LOOK_BACK, -1), -1))
        if len(candidates) != LOOK_BACK:
            candidates += list(range(found + 1, len(self.graph_times)))[: LOOK_BACK - len(candidates)]
        near = sorted(
            ((float(np.linalg.norm(self.graph_cloud[j] - point)), j) for j in candidates),
            key=lambda entry: entry[0],
        )
        if len(near) <= self.k:
            raise ValueError(f"not enough graph nodes near the point to pick {self.k} neighbours")
        d_max = near[self.k][0]
        weights = [
            VertexWeightMap((1.0 - float(np.linalg.norm(point - self.nodes[j].position)) / d_max) ** 2, j)
            for _, j in near[: self.k]
        ]
        total = sum(entry.weight for entry in weights)
        for entry in weights:
            entry.weight /= total
        sort_weight_maps(weights, self.nodes)
        return weights

    def append_vertices(self, vertex_times, original_point_end: int) -> None:
        """Weight every source vertex from the last processed count onwards."""
        self._require_initialised()
        del self.vertex_map[self.last_point_count:]
        self.vertex_map.extend([] for _ in range(self.last_point_count - len(self.vertex_map)))
        for i in range(self.last_point_count, len(self.source_vertices)):
            self.vertex_map.append(self._weights_for(_vec3(self.source_vertices[i]), int(vertex_times[i])))
        self.last_point_count = original_point_end

    def set_poses_seq(self, pose_times, poses) -> None:
        """Weight each 4x4 pose by its translation and time, replacing the pose map."""
        self._require_initialised()
        self.pose_map = [
            self._weights_for(_vec3(np.asarray(pose)[:3, 3]), int(pose_times[i]))
            for i, pose in enumerate(poses)
        ]

    def apply_graph_to_poses(self, poses) -> None:
        """Deform each 4x4 pose in place; rotations are re-orthonormalised."""
        self._require_initialised()
        if len(poses) != len(self.pose_map):
            raise ValueError("the number of poses does not match the pose map")
        for pose, weights in zip(poses, self.pose_map):
            translation = np.asarray(pose[:3, 3], dtype=np.float64)
            new_position = np.zeros(3)
            rotation = np.zeros((3, 3))
            for entry in weights:
                node = self.nodes[entry.node]
                new_position += entry.weight * (
                    node.rotation @ (translation - node.position) + node.position + node.translation
                )
                rotation += entry.weight * node.rotation
            new_rotation = rotation @ np.asarray(pose[:3, :3], dtype=np.float64)
            u, _, vt = np.linalg.svd(new_rotation)
            pose[:3, 3] = new_position
            pose[:3, :3] = u @ vt

    def compute_vertex_position(self, vertex_id: int) -> np.ndarray:
        """The deformed position of a source vertex."""
        self._require_initialised()
        source = _vec3(self.source_vertices[vertex_id])
        position = np.zeros(3)
        for entry in self.vertex_map[vertex_id]:
            node = self.nodes[entry.node]
            position += entry.weight * (
                node.rotation @ (source - node.position) + node.position + node.translation
            )
        return position

    def apply_graph_to_vertices(self) -> None:
        """Replace every source vertex by its deformed position."""
        for i in range(len(self.source_vertices)):
            self.source_vertices[i] = self.compute_vertex_position(i)

    def _put_constraint(self, constraint: Constraint) -> None:
        self._require_initialised()
        for index, existing in enumerate(self.constraints):
            if existing.vertex_id == constraint.vertex_id:
                self.constraints[index] = constraint
                return
        self.constraints.append(constraint)

    def add_constraint(self, vertex_id: int, target) -> None:
        """Pin a vertex to a target position, replacing any constraint on it."""
        self._put_constraint(Constraint(vertex_id, _vec3(target)))

    def add_relative_constraint(self, vertex_id: int, target_id: int) -> None:
        """Tie a vertex to another vertex, replacing any constraint on it."""
        self._put_constraint(Constraint(vertex_id, np.zeros(3), True, target_id))

    def clear_constraints(self) -> None:
        self.constraints.clear()

    def reset_graph(self) -> None:
        """Reset every node's rotation to the identity and its translation likewise."""
        for node in self.nodes:
            node.rotation = np.eye(3)
            # The identity of a 3x1 matrix: a unit first component.
            node.translation = np.eye(3, 1).ravel()

    def non_relative_constraint_error(self) -> float:
        """Summed distance to target over absolute constraints, divided by all constraints."""
        if not self.constraints:
            return float("nan")
        total = sum(
            float(np.linalg.norm(self.compute_vertex_position(c.vertex_id) - c.target_position))
            for c in self.constraints
            if not c.relative
        )
        return total / len(self.constraints)