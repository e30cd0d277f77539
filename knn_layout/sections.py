from __future__ import annotations

GRAPH_BUILD = "graph/build"
SIGMA_CALIBRATION = "graph/sigma"
EDGE_BUILDING = "graph/edges"
SYMMETRIZATION = "graph/symmetrize"
CURVE_FIT = "layout/curve"
SCHEDULE = "layout/schedule"
SGD_LOOP = "layout/sgd"
PROGRESS = "layout/progress"
LAYOUT_EXPORT = "layout/export"
