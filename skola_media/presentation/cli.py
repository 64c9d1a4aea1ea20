from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from skola_media.application.use_cases.upload_attachment import (
    UploadCoordinator,
    describe_failure,
)
from skola_media.core.exceptions import MediaUploadError
from skola_media.core.logging_config import configure_logging
from skola_media.infrastructure.adapters import LoggingProgressObserver
from skola_media.infrastructure.adapters.bundles.media import get_media_adapter_bundle


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="skola-media",
        description="Upload attachments and videos to Skola storage and print JSON to stdout",
    )
    parser.add_argument("--scratch-dir", help="Directory for temporary copies")
    parser.add_argument("--log-level", help="Override LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    up = sub.add_parser("upload", help="Upload an image or PDF attachment")
    up.add_argument("object_key")
    up.add_argument("path", help="Local path or URI of the file")
    up.add_argument("--content-type", required=True)
    up.add_argument("--thumbnail", action="store_true", help="Also upload a resized preview")

    video = sub.add_parser("upload-video", help="Upload a video, chunked when large")
    video.add_argument("object_key")
    video.add_argument("path")
    video.add_argument("--content-type", default="video/mp4")

    url = sub.add_parser("url", help="Print a signed URL for an object")
    url.add_argument("object_key")
    url.add_argument("--prefer-thumbnail", action="store_true")
    url.add_argument("--legacy", action="store_true", help="Use the legacy bucket")

    return parser


async def _dispatch(args: argparse.Namespace) -> Dict[str, Any]:
    coordinator = UploadCoordinator(get_media_adapter_bundle(scratch_dir=args.scratch_dir))

    if args.command == "upload":
        result = await coordinator.upload_attachment(
            args.object_key, args.path, args.content_type, args.thumbnail
        )
        return asdict(result)
    if args.command == "upload-video":
        result = await coordinator.upload_video(
            args.object_key,
            args.path,
            args.content_type,
            progress=LoggingProgressObserver(),
        )
        return asdict(result)
    signed = await coordinator.resolve_url(
        args.object_key, args.prefer_thumbnail, legacy=args.legacy
    )
    return {"object_key": args.object_key, "url": signed}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        output = asyncio.run(_dispatch(args))
    except MediaUploadError as e:
        logger.error("%s failed: %s", args.command, e)
        print(json.dumps({"error": describe_failure(e), "code": e.error_code}, ensure_ascii=False))
        return 1
    except Exception as e:  # noqa: BLE001
        logger.error("%s failed unexpectedly: %s", args.command, e)
        logger.debug("Unexpected failure details", exc_info=True)
        print(json.dumps({"error": describe_failure(e), "code": None}, ensure_ascii=False))
        return 1

    print(json.dumps(output, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
