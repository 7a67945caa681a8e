"""terracegen — procedural terraced-terrain mesh generator.

Public API is organised into layers:

- **Core** — mesh containers, height models, errors
- **Stages** — shapes, fragmentation, sculpting, terracing
- **Orchestration** — configuration, pipeline, generator, cancellation
- **Output** — I/O, diagnostics, rendering (requires matplotlib)
"""

# ── Core ────────────────────────────────────────────────────────────
from .models import (
    IndexFormat,
    MeshBuffer,
    TerracedMesh,
    Triangle,
    index_format_for,
)
from .height_models import (
    PLANAR,
    RADIAL,
    HeightModel,
    PlanarHeightModel,
    RadialHeightModel,
)
from .errors import (
    ConfigurationError,
    GenerationCancelled,
    InvalidStateError,
    InvariantViolation,
    TerrainError,
    UnsupportedShapeError,
)

# ── Stages ──────────────────────────────────────────────────────────
from .shapes import (
    IcosahedronGenerator,
    RegularPolygonGenerator,
    ShapeGenerator,
    ShapeKind,
    SquareGenerator,
    TriangleGenerator,
    height_model_for,
    polygon_generator,
    shape_generator_for,
)
from .fragmentation import (
    MeshFragmenter,
    fragment,
    triangle_count_for_depth,
    vertex_count_for_depth,
)
from .curves import HeightCurve
from .noise import symmetric_noise_3d, value_noise_2d
from .sculpting import SculptSettings, Sculptor
from .terracing import (
    GeometryPool,
    TerracedMeshBuilder,
    Terracer,
    classify_triangle,
)

# ── Orchestration ───────────────────────────────────────────────────
from .config import (
    ARCHIPELAGO,
    MESA,
    PLANETOID,
    PRESETS,
    ROLLING_HILLS,
    TerrainConfig,
    even_relative_heights,
    load_config,
    plane_sweep_table,
    save_config,
    terrace_heights,
)
from .cancellation import CancellationToken
from .pipeline import (
    BakeStep,
    CustomStep,
    FragmentStep,
    GenerationState,
    PipelineResult,
    SculptStep,
    ShapeStep,
    StageStep,
    StepResult,
    TerraceStep,
    TerrainPipeline,
    build_pipeline,
)
from .generator import InlineExecution, TerrainGenerator, ThreadExecution

# ── Output ──────────────────────────────────────────────────────────
from .io import load_json, save_json, save_mesh, save_obj
from .diagnostics import mesh_summary, projected_area

__version__ = "0.1.0"
