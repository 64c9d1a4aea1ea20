from __future__ import annotations

from typing import List

from pydantic import ValidationError

from skola_media.application.models import AttachmentDescriptor
from skola_media.application.pipeline.base import BaseStep, PipelineContext
from skola_media.core.pyd_schemas import AttachmentRequest


class ValidateRequestStep(BaseStep):
    """Input:  context.input (object_key, local_uri, content_type, want_thumbnail)
    Output: request, descriptor
    """

    name = "validate_request"

    async def run(self, context: PipelineContext) -> None:  # type: ignore[override]
        try:
            request = AttachmentRequest.model_validate(dict(context.input or {}))
        except ValidationError as e:
            lines: List[str] = []
            for err in e.errors():
                loc = ".".join(str(p) for p in err.get("loc", []))
                lines.append(f"{loc}: {err.get('msg', 'invalid input')}")
            raise ValueError("\n".join(lines)) from e

        context.set("request", request)
        context.set(
            "descriptor",
            AttachmentDescriptor.create(request.local_uri, request.content_type),
        )
        context.ensure_run_id()
