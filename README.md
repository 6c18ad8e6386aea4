# deformfusion

Building blocks for dense RGB-D surfel mapping, centred on a non-rigid
deformation graph that bends a reconstructed map into shape, together with
the sparse Jacobian and normal-equation solver that such a graph needs.

## What is inside

- `deformfusion.graph`: `DeformationGraph` with its `GraphNode`,
  `VertexWeightMap` and `Constraint` types, and `sort_weight_maps`. The graph
  is built from node positions and their sample times
  (`initialise_graph`), connects each node to `k` sequential neighbours,
  weights map vertices (`append_vertices`) and camera poses
  (`set_poses_seq`) to their nearest nodes, takes absolute
  (`add_constraint`) and relative (`add_relative_constraint`) constraints,
  and applies the node transforms back to vertices
  (`compute_vertex_position`, `apply_graph_to_vertices`) and to 4x4 poses
  (`apply_graph_to_poses`, which re-orthonormalises the rotations).
  `non_relative_constraint_error` reports the mean distance of absolutely
  constrained vertices from their targets.
- `deformfusion.graph_jacobian`: `sparse_jacobian(graph, num_rows,
  num_cols, back_set)`, which builds the rotation, regularisation and
  constraint rows of the graph energy's Jacobian for the nodes whose
  `enabled` flag is set. It raises `ValueError` if the number of rows built
  differs from `num_rows`.
- `deformfusion.jacobian`: `OrderedJacobianRow` (entries appended in
  increasing column order, with `add_to` for summing into a weighted entry)
  and `Jacobian`, which can be turned into a SciPy CSR matrix with
  `to_csr`.
- `deformfusion.cholesky`: `CholeskyDecomp`, which solves the normal
  equations `JᵀJ δ = Jᵀr`. The fill-reducing ordering is computed when
  `first_run` is true and reused until `free_factor` is called.
- `deformfusion.odometry`: `rodrigues` (axis-angle vector to rotation
  matrix) and `compute_update_se3` (compose a six-component twist onto an
  accumulated 4x4 transform).
- `deformfusion.img`: `Img`, a row-major image over a numpy array, indexed
  by flat index or by row and column with `at`.
- `deformfusion.vertex`: the packed 48-byte surfel layout (`SIZE`),
  `Surfel`, `pack_surfel` and `unpack_surfel`.
- `deformfusion.uniform`: shader uniform values as plain data: `Uniform`,
  `UniformType` and `make_uniform`, which infers the type from the value.
- `deformfusion.parse`: command-line lookups `find_arg`, `arg_string`,
  `arg_float` and `arg_int`, plus `shader_dir` and `base_dir`.

## Installing

```
pip install .
```

Run the tests with:

```
pip install .[test]
pytest
```

## Weighting and deforming a map

```python
import numpy as np

from deformfusion.graph import DeformationGraph

vertices = [np.array([float(i), 0.0, 0.0]) for i in range(40)]
times = list(range(40))

graph = DeformationGraph(4, vertices)
graph.initialise_graph(vertices[::2], times[::2])
graph.append_vertices(times, len(vertices))

graph.add_constraint(39, np.array([39.0, 1.0, 0.0]))
print(graph.non_relative_constraint_error())   # 1.0 while the nodes are untouched

graph.apply_graph_to_vertices()                # writes deformed positions into `vertices`
```

## Solving a sparse least-squares step

```python
import numpy as np

from deformfusion.cholesky import CholeskyDecomp
from deformfusion.jacobian import Jacobian, OrderedJacobianRow

first = OrderedJacobianRow(1)
first.append(0, 1.0)
second = OrderedJacobianRow(1)
second.append(1, 2.0)

jacobian = Jacobian()
jacobian.assign([first, second], 2)

solver = CholeskyDecomp()
delta = solver.solve(jacobian, np.array([1.0, 2.0]), True)   # array([1., 1.])
solver.free_factor()
```

## What this package does not do

- It does not run the graph optimisation loop. It provides the Jacobian
  (`sparse_jacobian`) and the solver (`CholeskyDecomp`), but no function
  that computes the graph's residual vector, applies a solved step to the
  node transforms or iterates to convergence; choosing which nodes are
  enabled and counting the rows and columns for `sparse_jacobian` is left to
  the caller.
- It does no rendering, GPU work, camera tracking or frame capture; the
  uniform and surfel types describe data only.
- It has no timing or profiling facilities and no command-line program.