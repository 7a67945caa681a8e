"""Terrain pipeline — composable step-based generation framework.

Provides :class:`StageStep` (protocol) and :class:`TerrainPipeline`
(sequencer) so that the generation stages (shape, fragment, sculpt,
terrace, bake) can be declared in order and run as a single pipeline
over a shared :class:`GenerationState`.

Usage
-----
>>> from terracegen.pipeline import build_pipeline, GenerationState
>>> from terracegen.config import ROLLING_HILLS
>>>
>>> pipe = build_pipeline(ROLLING_HILLS)
>>> result = pipe.run(GenerationState(ROLLING_HILLS))
>>> result.mesh
TerracedMesh(...)
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Optional,
    Protocol,
    Sequence,
    Union,
    runtime_checkable,
)

from .cancellation import CancellationToken
from .config import TerrainConfig
from .errors import ConfigurationError, InvalidStateError
from .fragmentation import MeshFragmenter
from .height_models import HeightModel
from .models import MeshBuffer, TerracedMesh
from .sculpting import Sculptor
from .shapes import ShapeGenerator
from .terracing import Terracer

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
# State and StageStep protocol
# ═══════════════════════════════════════════════════════════════════


@dataclass
class GenerationState:
    """Mutable working state threaded through the steps of one run."""

    config: TerrainConfig
    cancel: Optional[CancellationToken] = None
    mesh: Optional[MeshBuffer] = None
    terracer: Optional[Terracer] = None
    result: Optional[TerracedMesh] = None

    def require_mesh(self, step: str) -> MeshBuffer:
        if self.mesh is None:
            raise InvalidStateError(f"Step '{step}' needs a mesh; run the shape step first")
        return self.mesh


@dataclass
class StepResult:
    """Artefacts a step reports back, keyed by name (``"seed"``, ``"planes"``)."""

    artefacts: Dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class StageStep(Protocol):
    """One stage of a run.

    A step is anything with a ``name`` and a ``__call__(state)`` that
    mutates the :class:`GenerationState` and may hand back a
    :class:`StepResult`.  Names must be unique within a pipeline.
    """

    @property
    def name(self) -> str:
        ...

    def __call__(self, state: GenerationState) -> Optional[StepResult]:
        ...


# ═══════════════════════════════════════════════════════════════════
# TerrainPipeline
# ═══════════════════════════════════════════════════════════════════

Hook = Callable[[str, int, int], None]
"""``hook(step_name, position, step_count)``, called around every step."""


@dataclass
class PipelineResult:
    """What one run produced.

    Attributes
    ----------
    state : GenerationState
        Working state after the last step; ``state.result`` is the mesh.
    step_results : dict[str, StepResult]
        Artefacts of the steps that reported any.
    elapsed : dict[str, float]
        Seconds spent in each step, in run order.
    """

    state: GenerationState
    step_results: Dict[str, StepResult] = field(default_factory=dict)
    elapsed: Dict[str, float] = field(default_factory=dict)

    @property
    def mesh(self) -> Optional[TerracedMesh]:
        return self.state.result

    @property
    def step_names(self) -> List[str]:
        """Steps that completed, in run order."""
        return list(self.elapsed)

    @property
    def total_elapsed(self) -> float:
        return sum(self.elapsed.values())

    @property
    def seed(self) -> Optional[int]:
        """Noise seed the sculpt step used, or ``None`` if it did not run."""
        sculpt = self.step_results.get("sculpt")
        return None if sculpt is None else sculpt.artefacts.get("seed")

    def artefact(self, step_name: str, key: str) -> Any:
        """``step_results[step_name].artefacts[key]``; ``KeyError`` when absent."""
        return self.step_results[step_name].artefacts[key]


class TerrainPipeline:
    """Runs :class:`StageStep` objects in order over one state.

    Parameters
    ----------
    steps : sequence of StageStep
        Initial steps.  Duplicate names raise :class:`ConfigurationError`
        because results and timings are keyed by name.
    before, after : Hook, optional
        Called around each step.  *after* is skipped for a step that
        raised.

    The state's token is polled before each step, so cancelling between
    stages stops the run with :class:`~errors.GenerationCancelled`.
    """

    def __init__(
        self,
        steps: Optional[Sequence[StageStep]] = None,
        *,
        before: Optional[Hook] = None,
        after: Optional[Hook] = None,
    ) -> None:
        self._steps: List[StageStep] = []
        self._before = before
        self._after = after
        for step in steps or ():
            self.add(step)

    # ── editing ─────────────────────────────────────────────────────

    def _index_of(self, name: str) -> int:
        for i, step in enumerate(self._steps):
            if step.name == name:
                return i
        raise KeyError(f"No step named {name!r} in {self!r}")

    def _check_new(self, step: StageStep) -> None:
        if step.name in self.step_names:
            raise ConfigurationError(f"Pipeline already has a step named {step.name!r}")

    def add(self, step: StageStep) -> "TerrainPipeline":
        """Append *step*; returns the pipeline so calls can be chained."""
        self._check_new(step)
        self._steps.append(step)
        return self

    def insert(self, where: Union[int, str], step: StageStep) -> "TerrainPipeline":
        """Put *step* at position *where*, or just before the step named *where*.

        Usage::

            pipe.insert("terrace", CustomStep("flatten", flatten))
        """
        self._check_new(step)
        index = self._index_of(where) if isinstance(where, str) else where
        self._steps.insert(index, step)
        return self

    # ── execution ───────────────────────────────────────────────────

    def run(self, state: GenerationState) -> PipelineResult:
        """Run every step against *state* and collect timings and artefacts."""
        result = PipelineResult(state=state)
        count = len(self._steps)
        for position, step in enumerate(self._steps):
            if state.cancel is not None:
                state.cancel.raise_if_cancelled()
            name = step.name
            if self._before is not None:
                self._before(name, position, count)

            started = time.perf_counter()
            report = step(state)
            result.elapsed[name] = time.perf_counter() - started
            if report is not None:
                result.step_results[name] = report
            logger.debug("%s: step %d of %d in %.3fs", name, position + 1, count, result.elapsed[name])

            if self._after is not None:
                self._after(name, position, count)
        return result

    # ── introspection ───────────────────────────────────────────────

    @property
    def step_names(self) -> List[str]:
        return [step.name for step in self._steps]

    def __len__(self) -> int:
        return len(self._steps)

    def __repr__(self) -> str:
        return f"TerrainPipeline([{', '.join(self.step_names)}])"


# ═══════════════════════════════════════════════════════════════════
# Built-in steps
# ═══════════════════════════════════════════════════════════════════


@dataclass
class ShapeStep:
    """Creates the seed mesh from a :class:`~shapes.ShapeGenerator`."""

    generator: ShapeGenerator

    @property
    def name(self) -> str:
        return "shape"

    def __call__(self, state: GenerationState) -> Optional[StepResult]:
        state.mesh = self.generator.generate()
        return StepResult(artefacts={
            "vertices": state.mesh.vertex_count,
            "triangles": state.mesh.triangle_count,
        })


@dataclass
class FragmentStep:
    """Subdivides the current mesh."""

    fragmenter: MeshFragmenter

    @property
    def name(self) -> str:
        return "fragment"

    def __call__(self, state: GenerationState) -> Optional[StepResult]:
        state.mesh = self.fragmenter.fragment(state.require_mesh(self.name))
        return StepResult(artefacts={"triangles": state.mesh.triangle_count})


@dataclass
class SculptStep:
    """Displaces the current mesh with noise.

    The resolved seed is returned as artefact ``"seed"``.
    """

    sculptor: Sculptor

    @property
    def name(self) -> str:
        return "sculpt"

    def __call__(self, state: GenerationState) -> Optional[StepResult]:
        self.sculptor.sculpt(state.require_mesh(self.name))
        return StepResult(artefacts={"seed": self.sculptor.seed})


@dataclass
class TerraceStep:
    """Slices the sculpted mesh at the given absolute heights."""

    heights: Sequence[float]
    height_model: HeightModel

    @property
    def name(self) -> str:
        return "terrace"

    def __call__(self, state: GenerationState) -> Optional[StepResult]:
        terracer = Terracer(state.require_mesh(self.name), self.heights, self.height_model)
        terracer.terrace(cancel=state.cancel)
        state.terracer = terracer
        return StepResult(artefacts={"planes": terracer.planes})


@dataclass
class BakeStep:
    """Bakes the terraced geometry into the final :class:`TerracedMesh`."""

    @property
    def name(self) -> str:
        return "bake"

    def __call__(self, state: GenerationState) -> Optional[StepResult]:
        if state.terracer is None:
            raise InvalidStateError("Step 'bake' needs a terraced mesh; run the terrace step first")
        state.result = state.terracer.bake()
        return StepResult(artefacts={
            "vertices": state.result.vertex_count,
            "index_format": state.result.index_format,
        })


@dataclass
class CustomStep:
    """Inline step from an arbitrary callable.

    Usage::

        step = CustomStep("flatten", lambda state: state.mesh.vertices.__setitem__(
            (slice(None), 1), 0.0
        ))
        pipe.insert(3, step)
    """

    _name: str
    fn: Callable[[GenerationState], Optional[StepResult]]

    @property
    def name(self) -> str:
        return self._name

    def __call__(self, state: GenerationState) -> Optional[StepResult]:
        return self.fn(state)


def build_pipeline(
    config: TerrainConfig,
    *,
    noise: Optional[Callable[[float, float], float]] = None,
    before: Optional[Hook] = None,
    after: Optional[Hook] = None,
) -> TerrainPipeline:
    """Assemble the standard five-step pipeline for *config*.

    *config* must carry a concrete seed when reproducibility matters;
    an unset seed is resolved here, once.
    """
    model = config.height_model
    sculptor = Sculptor(
        config.sculpt,
        model,
        config.min_height,
        config.max_height,
        noise=noise,
    )
    return TerrainPipeline(
        [
            ShapeStep(config.shape_generator()),
            FragmentStep(MeshFragmenter(config.depth, model)),
            SculptStep(sculptor),
            TerraceStep(config.terrace_heights, model),
            BakeStep(),
        ],
        before=before,
        after=after,
    )
