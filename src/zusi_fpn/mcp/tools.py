from __future__ import annotations

import asyncio
import dataclasses
import json
import logging
from pathlib import Path

from mcp import types
from mcp.server.fastmcp import FastMCP

from zusi_fpn.application.fahrplan_service import FahrplanService
from zusi_fpn.domain.exceptions import TrainGenerationError, ZusiFpnError
from zusi_fpn.infrastructure.time_utils import format_duration

logger = logging.getLogger(__name__)

_RESULT_URI = "mcp://zusi-fpn/result"


def _as_resource(json_str: str) -> list[types.EmbeddedResource]:
    """Wrap a JSON string as an embedded resource so the LLM does not narrate it."""
    return [
        types.EmbeddedResource(
            type="resource",
            resource=types.TextResourceContents(
                uri=_RESULT_URI,  # type: ignore[arg-type]
                mimeType="application/json",
                text=json_str,
            ),
        )
    ]


def _error_json(message: str, **extra: str) -> str:
    return json.dumps({"error": message, **extra}, ensure_ascii=False)


def _handle_exception(exc: Exception) -> list[types.EmbeddedResource]:
    if isinstance(exc, TrainGenerationError):
        return _as_resource(_error_json(str(exc), train=exc.train_number))
    if isinstance(exc, ZusiFpnError):
        return _as_resource(_error_json(str(exc)))
    if isinstance(exc, ValueError):
        return _as_resource(_error_json(str(exc)))
    logger.exception("Unexpected error in MCP tool: %s", exc)
    return _as_resource(_error_json("An unexpected error occurred."))


def _require_path(value: str, name: str) -> Path:
    if not value.strip():
        raise ValueError(f"{name} cannot be empty")
    return Path(value.strip())


def register_tools(mcp: FastMCP, fahrplan_svc: FahrplanService) -> None:
    """Bind all @mcp.tool decorators. Called once during server setup."""

    @mcp.tool()
    async def generate_fahrplan(config_path: str) -> list[types.EmbeddedResource]:
        """Generate a Zusi timetable (.fpn) with all train and printed timetable files.

        Args:
            config_path: Path to the <ZusiEnvironment> configuration XML file.
        """
        try:
            path = _require_path(config_path, "config_path")
            result = await asyncio.to_thread(fahrplan_svc.generate_fahrplan, path)
            payload = {
                "fahrplan": str(result.fahrplan_path),
                "trains": [str(p) for p in result.train_paths],
                "timetables": [str(p) for p in result.ptt_paths],
                "count": len(result.train_paths),
            }
            return _as_resource(json.dumps(payload, ensure_ascii=False))
        except Exception as exc:
            return _handle_exception(exc)

    @mcp.tool()
    async def apply_schedule(
        schedule_path: str,
        trn_paths: list[str],
    ) -> list[types.EmbeddedResource]:
        """Re-time train files in place according to a schedule.

        Files that fail are reported individually; the others are still updated.

        Args:
            schedule_path: Path to the schedule XML file.
            trn_paths: Train (.trn) files to update.
        """
        try:
            schedule = _require_path(schedule_path, "schedule_path")
            if not trn_paths:
                return _as_resource(_error_json("trn_paths cannot be empty"))
            paths = [_require_path(p, "trn_paths entry") for p in trn_paths]
            results = await asyncio.to_thread(fahrplan_svc.apply_schedule, schedule, paths)
            payload = {
                "results": [
                    {"path": str(r.path), "ok": r.ok, "error": str(r.error) if r.error else None}
                    for r in results
                ],
                "failed": sum(1 for r in results if not r.ok),
            }
            return _as_resource(json.dumps(payload, ensure_ascii=False))
        except Exception as exc:
            return _handle_exception(exc)

    @mcp.tool()
    async def generate_schedule(trn_path: str, schedule_path: str) -> list[types.EmbeddedResource]:
        """Extract the schedule (driving and stop times) of a train file and write it.

        Args:
            trn_path: Train (.trn) file to read.
            schedule_path: Where to write the schedule XML file.
        """
        try:
            trn = _require_path(trn_path, "trn_path")
            target = _require_path(schedule_path, "schedule_path")
            schedule = await asyncio.to_thread(fahrplan_svc.generate_schedule, trn, target)
            entries = [
                {
                    **dataclasses.asdict(e),
                    "driving_time": format_duration(e.driving_time),
                    "stop_time": format_duration(e.stop_time) if e.stop_time is not None else None,
                }
                for e in schedule.entries
            ]
            payload = {"schedule": str(target), "entries": entries, "count": len(entries)}
            return _as_resource(json.dumps(payload, default=str, ensure_ascii=False))
        except Exception as exc:
            return _handle_exception(exc)
