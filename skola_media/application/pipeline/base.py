from __future__ import annotations

from dataclasses import dataclass, field
from typing import (
    Any,
    Dict,
    List,
    Optional,
    Protocol,
    runtime_checkable,
    Mapping,
    ClassVar,
    TypedDict,
)
import logging
from abc import ABC, abstractmethod
from time import perf_counter
from enum import Enum
import uuid


@dataclass(slots=True)
class PipelineContext:
    """State shared by the steps of one upload run.

    - input: the caller's request (object key, URI, content type, flags)
    - artifacts: values produced by steps for later steps, plus the run id
      under a reserved key
    """

    RUN_ID_KEY: ClassVar[str] = "_run_id"

    input: Mapping[str, Any]
    artifacts: Dict[str, Any] = field(default_factory=dict)

    def set(self, key: str, value: Any) -> None:
        self.artifacts[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        return self.artifacts.get(key, default)

    def has(self, key: str) -> bool:
        return key in self.artifacts

    def require(self, keys: List[str]) -> None:
        missing = [k for k in keys if k not in self.artifacts]
        if missing:
            raise KeyError(f"Missing required context keys: {', '.join(missing)}")

    def get_run_id(self) -> Optional[str]:
        return self.get(self.RUN_ID_KEY, None)

    def set_run_id(self, run_id: str) -> None:
        self.set(self.RUN_ID_KEY, run_id)

    def ensure_run_id(self) -> str:
        rid = self.get_run_id()
        if not rid:
            rid = str(self.input.get("object_key") or uuid.uuid4())
            self.set_run_id(rid)
        return rid


class StepStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


@runtime_checkable
class Step(Protocol):
    async def __call__(
        self, context: PipelineContext
    ) -> None:  # pragma: no cover - protocol
        ...


logger = logging.getLogger(__name__)


class BaseStep(ABC):
    """Pipeline step with skip check and status tracking.

    Steps run exactly once; retrying is done where it matters (chunks) or by
    the caller with a fresh request.
    """

    name: str = "base_step"

    required_keys: List[str] = []

    status: StepStatus = StepStatus.PENDING
    last_error: Optional[Exception] = None
    duration: float = 0.0
    attempts: int = 0

    async def __call__(self, context: PipelineContext) -> None:
        self.last_error = None
        self.attempts = 0

        if not self.validate_inputs(context):
            missing = [k for k in self.required_keys if not context.has(k)]
            raise KeyError(
                f"Missing required inputs for step '{self.name}': {', '.join(missing)}"
            )

        if self.can_skip(context):
            self.status = StepStatus.SKIPPED
            self.on_skip(context)
            return

        self.attempts = 1
        self.status = StepStatus.RUNNING
        self.on_start(context)
        start = perf_counter()
        try:
            await self.run(context)
            self.status = StepStatus.COMPLETED
        except Exception as e:  # noqa: BLE001
            self.last_error = e
            self.status = StepStatus.FAILED
            raise
        finally:
            self.duration = perf_counter() - start
            self.on_finish(context, self.duration)

    @abstractmethod
    async def run(
        self, context: PipelineContext
    ) -> None:  # pragma: no cover - abstract
        ...

    # Hooks
    def on_start(self, context: PipelineContext) -> None:
        logger.debug("Step %s start", self.name)

    def on_finish(self, context: PipelineContext, duration: float) -> None:
        logger.info(
            "Step %s finished in %.3fs with status=%s attempts=%d run_id=%s",
            self.name,
            duration,
            self.status.value,
            self.attempts,
            context.get_run_id(),
        )

    def on_skip(self, context: PipelineContext) -> None:
        logger.info("Step %s skipped", self.name)

    def validate_inputs(self, context: PipelineContext) -> bool:
        if not self.required_keys:
            return True
        return all(context.has(k) for k in self.required_keys)

    def can_skip(self, context: PipelineContext) -> bool:
        return False


class StepResult(TypedDict):  # pragma: no cover - typing helper
    name: str
    status: str
    duration: float
    error: Optional[str]
    attempts: int


class PipelineResult(TypedDict):  # pragma: no cover - typing helper
    success: bool
    duration: float
    steps: List[StepResult]
    error: Optional[str]
    context: PipelineContext


class Pipeline:
    def __init__(self, steps: List[Step], *, fail_fast: bool = True):
        self._steps = steps
        self.fail_fast = fail_fast

    @property
    def step_names(self) -> List[str]:
        return [getattr(s, "name", s.__class__.__name__) for s in self._steps]

    async def execute(self, context: PipelineContext) -> PipelineResult:
        context.ensure_run_id()

        pipeline_start = perf_counter()
        results: Dict[str, Any] = {
            "success": False,
            "duration": 0.0,
            "steps": [],
            "error": None,
        }

        for step in self._steps:
            step_info: Dict[str, Any] = {
                "name": getattr(step, "name", step.__class__.__name__),
                "status": StepStatus.PENDING.value,
                "duration": 0.0,
                "error": None,
                "attempts": 0,
            }
            results["steps"].append(step_info)

            step_start = perf_counter()
            try:
                await step(context)
                step_info["status"] = getattr(
                    step, "status", StepStatus.COMPLETED
                ).value
            except Exception as e:  # noqa: BLE001
                step_info["status"] = StepStatus.FAILED.value
                step_info["error"] = str(e)
                results["error"] = results["error"] or str(e)
                if self.fail_fast:
                    raise
            finally:
                step_info["attempts"] = int(getattr(step, "attempts", 1) or 1)
                step_info["duration"] = perf_counter() - step_start

        results["duration"] = perf_counter() - pipeline_start
        # skipped steps count as done
        results["success"] = all(
            s.get("status") in (StepStatus.COMPLETED.value, StepStatus.SKIPPED.value)
            for s in results["steps"]
        )
        results["context"] = context
        return results


class Middleware(Protocol):  # pragma: no cover - optional extension point
    def __call__(self, step: Step) -> Step: ...


def make_logging_middleware(
    logger_obj: logging.Logger | None = None,
    level_before: int = logging.DEBUG,
    level_after: int = logging.INFO,
) -> Middleware:
    """Return a middleware that logs step name, run id, status and duration."""
    _log = logger_obj or logger

    def _middleware(step: Step) -> Step:
        class _Wrapped:
            def __init__(self, inner: Step):
                self._inner = inner

            def __getattr__(self, item):  # delegate 'name', 'status', ...
                return getattr(self._inner, item)

            async def __call__(self, context: PipelineContext) -> None:
                step_name = getattr(self._inner, "name", self._inner.__class__.__name__)
                rid = context.get_run_id()
                _log.log(level_before, "[run_id=%s] Step %s BEGIN", rid, step_name)
                _start = perf_counter()
                try:
                    await self._inner(context)
                finally:
                    status = getattr(self._inner, "status", StepStatus.PENDING)
                    _log.log(
                        level_after,
                        "[run_id=%s] Step %s END status=%s duration=%.3fs",
                        rid,
                        step_name,
                        getattr(status, "value", str(status)),
                        perf_counter() - _start,
                    )

        return _Wrapped(step)

    return _middleware
