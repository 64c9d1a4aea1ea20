from __future__ import annotations

from typing import List

from skola_media.application.pipeline.base import Middleware, Pipeline, Step


class PipelineFactory:
    """Fluent builder for Pipelines; middlewares wrap every added step.

    Example:
        pipeline = PipelineFactory(middlewares=[mw]).add(step1).add(step2).build()
    """

    def __init__(self, *, middlewares: List[Middleware] | None = None, fail_fast: bool = True):
        self._steps: List[Step] = []
        self._middlewares = list(middlewares or [])
        self._fail_fast = fail_fast

    def add(self, step: Step) -> "PipelineFactory":
        wrapped = step
        for mw in self._middlewares:
            wrapped = mw(wrapped)
        self._steps.append(wrapped)
        return self

    def add_if(self, condition: bool, step: Step) -> "PipelineFactory":
        if condition:
            self.add(step)
        return self

    def build(self) -> Pipeline:
        return Pipeline(self._steps, fail_fast=self._fail_fast)
