"""Register a course and refresh its POI from the provider."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Sequence

from coursepoi.config import get_settings
from coursepoi.courses import (
    CourseNotFoundError,
    CoursePOIService,
    CourseRecord,
    EmptyResultError,
    StorageError,
    build_store,
)
from coursepoi.providers import ProviderError

LOGGER = logging.getLogger("coursepoi.refresh")


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("course_id", help="Course id in the course store")
    parser.add_argument(
        "--api-course-id",
        dest="api_course_id",
        help="Provider course id; registers the course when it is not stored yet",
    )
    parser.add_argument("--name", dest="name", help="Course name used on register")
    parser.add_argument(
        "--force",
        dest="force",
        action="store_true",
        help="Refresh even when the cached POI is still fresh",
    )
    parser.add_argument(
        "--log-level", dest="log_level", default="INFO", help="Logging level"
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO)
    )

    settings = get_settings()
    if not settings.provider_enabled:
        LOGGER.warning("GOLF_API_KEY not configured; no provider fetch is attempted")

    try:
        store = build_store(settings)
        if args.api_course_id and store.get(args.course_id) is None:
            store.save_course(
                CourseRecord(
                    id=args.course_id, name=args.name, api_course_id=args.api_course_id
                )
            )
            LOGGER.info(
                "registered course %s (%s)", args.course_id, args.api_course_id
            )
        service = CoursePOIService(store, settings=settings)
        result = service.lookup(args.course_id, force_refresh=args.force)
    except CourseNotFoundError:
        LOGGER.error(
            "course %s not found; pass --api-course-id to register it", args.course_id
        )
        return 2
    except (EmptyResultError, ProviderError, StorageError) as exc:
        LOGGER.error("course %s: no poi available: %s", args.course_id, exc)
        return 1
    except ValueError as exc:
        LOGGER.error("course %s: %s", args.course_id, exc)
        return 1

    poi = result.poi
    summary = {
        "courseId": poi.course_id,
        "holes": len(poi.holes),
        "features": poi.feature_count,
        "refreshed": result.refreshed,
        "stale": result.stale,
        "updatedAt": poi.last_refreshed.isoformat() if poi.last_refreshed else None,
    }
    print(json.dumps(summary, indent=2))
    if not poi.has_poi_data:
        LOGGER.error("course %s: no poi available", args.course_id)
        return 1
    return 1 if result.storage_error else 0


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    raise SystemExit(main())
