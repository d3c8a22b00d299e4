from __future__ import annotations

import json
import logging
import os
import re
import threading
from datetime import datetime
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any, Dict, List, Optional, Protocol

from pydantic import ValidationError

from coursepoi.config import Settings, get_settings

from .errors import StorageError
from .schemas import CourseRecord, HolePOI, dump_holes

_LOG = logging.getLogger(__name__)

SAFE_COURSE_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")


class CourseStore(Protocol):
    def get(self, course_id: str) -> Optional[CourseRecord]: ...

    def find_by_api_id(self, api_course_id: str) -> Optional[CourseRecord]: ...

    def save_course(self, record: CourseRecord) -> CourseRecord: ...

    def replace_poi(
        self, course_id: str, holes: List[HolePOI], refreshed_at: datetime
    ) -> CourseRecord: ...

    def mark_attempt(self, course_id: str, attempted_at: datetime) -> None: ...


def _sanitize_course_id(course_id: str) -> str:
    if not SAFE_COURSE_ID_RE.match(course_id):
        raise ValueError(f"Invalid course_id for filesystem usage: {course_id!r}")
    return course_id


class FileCourseStore:
    """One JSON document per course, replaced atomically on every write."""

    def __init__(self, base_dir: Path | str | None = None) -> None:
        base = Path(base_dir or get_settings().store_dir).expanduser()
        self._base_dir = base.resolve()
        self._lock = threading.Lock()

    def _path(self, course_id: str) -> Path:
        return self._base_dir / f"{_sanitize_course_id(course_id)}.json"

    def _read(self, path: Path) -> Optional[CourseRecord]:
        if not path.exists():
            return None
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
            return CourseRecord.model_validate(payload)
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            raise StorageError(f"unreadable course record {path.name}: {exc}") from exc

    def _write(self, record: CourseRecord) -> None:
        path = self._path(record.id)
        payload = record.model_dump(mode="json", exclude_none=True)
        try:
            self._base_dir.mkdir(parents=True, exist_ok=True)
            with NamedTemporaryFile(
                "w", dir=self._base_dir, delete=False, encoding="utf-8"
            ) as tmp:
                json.dump(payload, tmp, indent=2, sort_keys=True)
                tmp.flush()
                os.fsync(tmp.fileno())
                temp_name = tmp.name
            os.replace(temp_name, path)
        except OSError as exc:
            raise StorageError(f"failed to write course {record.id}: {exc}") from exc

    def get(self, course_id: str) -> Optional[CourseRecord]:
        try:
            path = self._path(course_id)
        except ValueError:
            return None
        with self._lock:
            return self._read(path)

    def find_by_api_id(self, api_course_id: str) -> Optional[CourseRecord]:
        if not self._base_dir.exists():
            return None
        with self._lock:
            for path in sorted(self._base_dir.glob("*.json")):
                try:
                    record = self._read(path)
                except StorageError as exc:
                    _LOG.warning("skipping %s in provider id scan: %s", path.name, exc)
                    continue
                if record is not None and record.api_course_id == api_course_id:
                    return record
        return None

    def save_course(self, record: CourseRecord) -> CourseRecord:
        with self._lock:
            self._write(record)
        return record

    def replace_poi(
        self, course_id: str, holes: List[HolePOI], refreshed_at: datetime
    ) -> CourseRecord:
        with self._lock:
            current = self._read(self._path(course_id))
            if current is None:
                raise StorageError(f"course {course_id} disappeared before write")
            updated = current.model_copy(
                update={"poi": list(holes), "updated_at": refreshed_at}
            )
            self._write(updated)
        return updated

    def mark_attempt(self, course_id: str, attempted_at: datetime) -> None:
        with self._lock:
            current = self._read(self._path(course_id))
            if current is None:
                return
            self._write(current.model_copy(update={"poi_attempted_at": attempted_at}))


class SupabaseCourseStore:
    """Course rows in the hosted ``courses`` table."""

    def __init__(self, client: Any, table: str = "courses") -> None:
        self._client = client
        self._table = table

    def _select_one(self, column: str, value: str) -> Optional[CourseRecord]:
        try:
            response = (
                self._client.table(self._table)
                .select("*")
                .eq(column, value)
                .limit(1)
                .execute()
            )
        except Exception as exc:
            raise StorageError(f"supabase select failed: {exc}") from exc
        rows = getattr(response, "data", None) or []
        if not rows:
            return None
        try:
            return CourseRecord.model_validate(_row_to_record(rows[0]))
        except ValidationError as exc:
            raise StorageError(f"malformed course row {value}: {exc}") from exc

    def _update(self, course_id: str, values: Dict[str, Any]) -> List[Dict[str, Any]]:
        try:
            response = (
                self._client.table(self._table)
                .update(values)
                .eq("id", course_id)
                .execute()
            )
        except Exception as exc:
            raise StorageError(f"supabase update failed: {exc}") from exc
        return getattr(response, "data", None) or []

    def get(self, course_id: str) -> Optional[CourseRecord]:
        return self._select_one("id", course_id)

    def find_by_api_id(self, api_course_id: str) -> Optional[CourseRecord]:
        return self._select_one("api_course_id", api_course_id)

    def save_course(self, record: CourseRecord) -> CourseRecord:
        payload = record.model_dump(mode="json", exclude_none=True)
        try:
            self._client.table(self._table).upsert(payload).execute()
        except Exception as exc:
            raise StorageError(f"supabase upsert failed: {exc}") from exc
        return record

    def replace_poi(
        self, course_id: str, holes: List[HolePOI], refreshed_at: datetime
    ) -> CourseRecord:
        # poi and updated_at are written in one statement.
        rows = self._update(
            course_id,
            {"poi": dump_holes(holes), "updated_at": refreshed_at.isoformat()},
        )
        if not rows:
            raise StorageError(f"course {course_id} not found for poi update")
        try:
            return CourseRecord.model_validate(_row_to_record(rows[0]))
        except ValidationError:
            _LOG.warning("course %s: unexpected row after update", course_id)
            return CourseRecord(id=course_id, poi=list(holes), updated_at=refreshed_at)

    def mark_attempt(self, course_id: str, attempted_at: datetime) -> None:
        self._update(course_id, {"poi_attempted_at": attempted_at.isoformat()})


def _row_to_record(row: Dict[str, Any]) -> Dict[str, Any]:
    keys = ("id", "name", "api_course_id", "poi", "updated_at", "poi_attempted_at")
    data = {key: row.get(key) for key in keys}
    data["id"] = str(data["id"])
    if data["api_course_id"] is not None:
        data["api_course_id"] = str(data["api_course_id"])
    if not isinstance(data["poi"], list):
        data["poi"] = None
    return data


def build_store(settings: Settings | None = None) -> CourseStore:
    settings = settings or get_settings()
    if settings.store_backend == "supabase":
        if not settings.supabase_url or not settings.supabase_key:
            raise StorageError("Missing Supabase credentials in environment variables")
        from supabase import create_client

        client = create_client(settings.supabase_url, settings.supabase_key)
        _LOG.info("using supabase course store at %s", settings.supabase_url)
        return SupabaseCourseStore(client)
    _LOG.info("using file course store at %s", settings.store_dir)
    return FileCourseStore(settings.store_dir)


__all__ = [
    "CourseStore",
    "FileCourseStore",
    "SupabaseCourseStore",
    "build_store",
]
