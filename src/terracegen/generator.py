"""High-level generator — runs the pipeline synchronously or off-thread.

Usage
-----
>>> from terracegen import TerrainGenerator, ROLLING_HILLS
>>> with TerrainGenerator(ROLLING_HILLS) as gen:
...     mesh = gen.generate()

From async code the same run is pushed onto an executor::

    mesh = await gen.generate_async()
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Any, Callable, Optional

from .cancellation import CancellationToken
from .config import TerrainConfig
from .errors import ConfigurationError
from .models import TerracedMesh
from .pipeline import GenerationState, PipelineResult, build_pipeline

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
# Execution strategies
# ═══════════════════════════════════════════════════════════════════


class InlineExecution:
    """Run on the calling thread."""

    def run(self, fn: Callable[..., Any], *args: Any) -> Any:
        return fn(*args)

    def shutdown(self) -> None:
        pass


class ThreadExecution:
    """Run on a worker thread and block until it finishes."""

    def __init__(self, max_workers: int = 1) -> None:
        self.executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="terracegen")

    def run(self, fn: Callable[..., Any], *args: Any) -> Any:
        return self.executor.submit(fn, *args).result()

    def shutdown(self) -> None:
        self.executor.shutdown(wait=True)


# ═══════════════════════════════════════════════════════════════════
# TerrainGenerator
# ═══════════════════════════════════════════════════════════════════


class TerrainGenerator:
    """Owns a configuration and produces :class:`TerracedMesh` es from it.

    Parameters
    ----------
    config : TerrainConfig
        Validated eagerly; anything else raises :class:`ConfigurationError`.
    execution : InlineExecution | ThreadExecution, optional
        Where :meth:`generate` runs the pipeline (inline by default).
    noise : callable, optional
        Replacement ``noise2d(x, y) -> [0, 1]`` passed to the sculptor.

    :meth:`close` (or leaving the ``with`` block) cancels every run that
    is still in flight.
    """

    def __init__(
        self,
        config: TerrainConfig,
        *,
        execution=None,
        noise: Optional[Callable[[float, float], float]] = None,
    ) -> None:
        if not isinstance(config, TerrainConfig):
            raise ConfigurationError(f"Expected a TerrainConfig, got {type(config).__name__}")
        self.config = config
        self.execution = execution if execution is not None else InlineExecution()
        self.noise = noise
        self._token = CancellationToken()

    # ── running ─────────────────────────────────────────────────────

    def _prepare(self, cancel: Optional[CancellationToken]):
        token = CancellationToken.linked(self._token, cancel)
        token.raise_if_cancelled()
        seed = self.config.sculpt.resolve_seed()
        return self.config.with_seed(seed), token

    def _run(self, config: TerrainConfig, token: CancellationToken) -> PipelineResult:
        pipeline = build_pipeline(config, noise=self.noise)
        result = pipeline.run(GenerationState(config, cancel=token))
        mesh = result.mesh
        logger.info(
            "generated %s terrain: depth=%d seed=%s terraces=%d vertices=%d in %.2fs",
            config.shape.value, config.depth, config.sculpt.seed,
            mesh.terrace_count, mesh.vertex_count, result.total_elapsed,
        )
        return result

    def run(self, cancel: Optional[CancellationToken] = None) -> PipelineResult:
        """Run the full pipeline and return this run's :class:`PipelineResult`.

        The result carries the mesh, the per-step timings and the seed
        actually used (``result.seed``).  Nothing
        about the run is stored on the generator.

        Raises
        ------
        GenerationCancelled
            If *cancel* (or :meth:`close`) fires before the mesh is baked.
        """
        config, token = self._prepare(cancel)
        return self.execution.run(self._run, config, token)

    def generate(self, cancel: Optional[CancellationToken] = None) -> TerracedMesh:
        """Run the full pipeline and return the baked mesh."""
        return self.run(cancel).mesh

    async def generate_async(
        self,
        cancel: Optional[CancellationToken] = None,
        *,
        executor: Optional[Executor] = None,
        build: Optional[Callable[[TerracedMesh], Any]] = None,
    ) -> Any:
        """Run the pipeline in *executor* (the loop's default when ``None``).

        A token that is already cancelled raises immediately without
        submitting any work.  If the awaiting task itself is cancelled,
        the worker is told to stop at its next check.  *build* runs on
        the awaiting thread and its return value replaces the mesh.
        """
        config, token = self._prepare(cancel)
        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(executor, self._run, config, token)
        except asyncio.CancelledError:
            token.cancel()
            raise
        if build is not None:
            return build(result.mesh)
        return result.mesh

    # ── lifecycle ───────────────────────────────────────────────────

    @property
    def closed(self) -> bool:
        return self._token.cancelled

    def close(self) -> None:
        self._token.cancel()
        self.execution.shutdown()

    def __enter__(self) -> "TerrainGenerator":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"TerrainGenerator(shape={self.config.shape.value}, depth={self.config.depth})"
