"""STDIO JSON-line server exposing mirror and sectioning tools."""

from __future__ import annotations

import argparse
import json
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from edit_mirror.config import CliOverrides, ServiceConfig, load_effective_config
from edit_mirror.items import InconsistentStateError, ItemWorkspace
from edit_mirror.logging import JsonlEventLogger, OversizedInputError, sanitize_arguments
from edit_mirror.mirror import EditorLauncher, MirrorIOError
from edit_mirror.mirror.file_mirror import SleepFn
from edit_mirror.security import PathBlockedError, PolicyBlockedError
from edit_mirror.tools.builtin import register_builtin_tools
from edit_mirror.tools.registry import ToolDispatchError, ToolRegistry


@dataclass(slots=True, frozen=True)
class Request:
    """Normalized incoming request."""

    request_id: str
    method: str
    params: dict[str, object]


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for server startup configuration."""
    parser = argparse.ArgumentParser(prog="edit-mirror")
    parser.add_argument("--root", required=False, default=".")
    parser.add_argument("--data-dir", required=False, default=None)
    parser.add_argument("--mirror-dir", required=False, default=None)
    parser.add_argument("--suffix", required=False, default=None)
    parser.add_argument("--poll-interval-ms", type=int, required=False, default=None)
    parser.add_argument("--settle-samples", type=int, required=False, default=None)
    parser.add_argument("--max-text-bytes", type=int, required=False, default=None)
    parser.add_argument(
        "--force-overwrite", choices=("true", "false"), required=False, default=None
    )
    return parser


ERROR_CODES: tuple[tuple[type[Exception], str], ...] = (
    (MirrorIOError, "MIRROR_IO_ERROR"),
    (OversizedInputError, "OVERSIZED_INPUT"),
    (InconsistentStateError, "INCONSISTENT_STATE"),
)


def _envelope(
    request_id: str,
    result: dict[str, object],
    blocked: bool = False,
    error: dict[str, str] | None = None,
) -> dict[str, object]:
    response: dict[str, object] = {
        "request_id": request_id,
        "ok": error is None,
        "result": result,
        "warnings": [],
        "blocked": blocked,
    }
    if error is not None:
        response["error"] = error
    return response


def success_envelope(request_id: str, result: dict[str, object]) -> dict[str, object]:
    return _envelope(request_id, result)


def error_envelope(request_id: str, code: str, message: str) -> dict[str, object]:
    return _envelope(request_id, {}, error={"code": code, "message": message})


def blocked_envelope(request_id: str, reason: str, hint: str) -> dict[str, object]:
    """Envelope for a request refused by path or size policy."""
    return _envelope(
        request_id,
        {"reason": reason, "hint": hint},
        blocked=True,
        error={"code": "BLOCKED", "message": reason},
    )


class StdioServer:
    """Line-oriented request router over the mirror tool registry."""

    def __init__(
        self,
        config: ServiceConfig,
        launcher: EditorLauncher | None = None,
        sleep: SleepFn = time.sleep,
    ) -> None:
        self._config = config
        self._limits = config.limits
        self._event_logger = JsonlEventLogger(
            path=config.data_dir / "events.jsonl",
            max_event_bytes=config.limits.max_event_bytes,
        )
        self._workspace = ItemWorkspace(
            config,
            event_logger=self._event_logger,
            launcher=launcher,
            sleep=sleep,
        )
        self._registry = ToolRegistry()
        register_builtin_tools(
            self._registry,
            workspace=self._workspace,
            config=config,
            read_events=self._event_logger.read,
        )
        self._request_counter = 0

    @property
    def workspace(self) -> ItemWorkspace:
        return self._workspace

    def serve(self, in_stream: TextIO, out_stream: TextIO) -> None:
        """Answer each non-blank input line with exactly one JSON response line."""
        for raw_line in in_stream:
            line = raw_line.strip()
            if not line:
                continue
            response = self.handle_json_line(line)
            out_stream.write(json.dumps(response, sort_keys=True) + "\n")
            out_stream.flush()

    def handle_json_line(self, raw_line: str) -> dict[str, object]:
        try:
            payload = json.loads(raw_line)
        except json.JSONDecodeError:
            request_id = self.next_request_id()
            response = error_envelope(request_id, "INVALID_JSON", "Request must be valid JSON.")
            self.log_request(
                request_id, "invalid_json", {"raw_line_length": len(raw_line)}, response
            )
            return response
        return self.handle_payload(payload)

    def handle_payload(self, payload: object) -> dict[str, object]:
        """Validate, dispatch and log one parsed request."""
        request = self.parse_request(payload)
        if isinstance(request, dict):
            request_id = str(request["request_id"])
            self.log_request(request_id, "invalid_request", {}, request)
            return request

        call = self._unwrap_call(request)
        if isinstance(call, dict):
            self.log_request(request.request_id, request.method, {}, call)
            return call
        tool_name, arguments = call

        response = self._dispatch(request.request_id, tool_name, arguments)
        self.log_request(request.request_id, tool_name, arguments, response)
        return response

    def parse_request(self, payload: object) -> Request | dict[str, object]:
        """Return a Request, or the error envelope describing why there is none."""
        if not isinstance(payload, dict):
            return error_envelope(
                self.next_request_id(), "INVALID_REQUEST", "Request must be an object."
            )

        request_id = self.extract_request_id(payload.get("id"))
        method = payload.get("method")
        params = payload.get("params", {})
        if not isinstance(method, str) or not method:
            return error_envelope(
                request_id, "INVALID_REQUEST", "Request method must be a non-empty string."
            )
        if not isinstance(params, dict):
            return error_envelope(request_id, "INVALID_PARAMS", "Request params must be an object.")
        return Request(request_id=request_id, method=method, params=params)

    def extract_request_id(self, request_id: object) -> str:
        if isinstance(request_id, str) and request_id:
            return request_id
        if isinstance(request_id, int) and not isinstance(request_id, bool):
            return str(request_id)
        return self.next_request_id()

    def next_request_id(self) -> str:
        self._request_counter += 1
        return f"req-{self._request_counter:06d}"

    @staticmethod
    def _unwrap_call(
        request: Request,
    ) -> tuple[str, dict[str, object]] | dict[str, object]:
        """Resolve the tool name and arguments, unwrapping ``tools/call``."""
        if request.method != "tools/call":
            return request.method, request.params
        name = request.params.get("name")
        arguments = request.params.get("arguments", {})
        if not isinstance(name, str) or not name:
            return error_envelope(
                request.request_id,
                "INVALID_PARAMS",
                "tools/call params.name must be a non-empty string.",
            )
        if not isinstance(arguments, dict):
            return error_envelope(
                request.request_id,
                "INVALID_PARAMS",
                "tools/call params.arguments must be an object.",
            )
        return name, arguments

    def _dispatch(
        self, request_id: str, tool_name: str, arguments: dict[str, object]
    ) -> dict[str, object]:
        try:
            result = self._registry.dispatch(name=tool_name, arguments=arguments)
        except (PathBlockedError, PolicyBlockedError) as error:
            return blocked_envelope(request_id, error.reason, error.hint)
        except ToolDispatchError as error:
            return error_envelope(request_id, error.code, error.message)
        except Exception as error:
            for error_type, code in ERROR_CODES:
                if isinstance(error, error_type):
                    return error_envelope(request_id, code, str(error))
            return error_envelope(
                request_id, "INTERNAL_ERROR", "Unhandled server error while executing tool."
            )
        return self._limit_response_size(request_id, success_envelope(request_id, result))

    def _limit_response_size(
        self, request_id: str, response: dict[str, object]
    ) -> dict[str, object]:
        encoded = json.dumps(response, sort_keys=True).encode("utf-8")
        if len(encoded) <= self._limits.max_total_bytes_per_response:
            return response
        return blocked_envelope(
            request_id,
            "Response exceeds max_total_bytes_per_response limit.",
            "Request a smaller item or fewer sections.",
        )

    def log_request(
        self,
        request_id: str,
        tool_name: str,
        arguments: dict[str, object],
        response: dict[str, object],
    ) -> None:
        """Record one request event; argument values are reduced to shapes and sizes."""
        error = response.get("error")
        error_code = error.get("code") if isinstance(error, dict) else None
        self._event_logger.log(
            "request",
            ok=bool(response.get("ok", False)),
            request_id=request_id,
            tool=tool_name,
            blocked=bool(response.get("blocked", False)),
            error_code=error_code,
            arguments=sanitize_arguments(arguments),
        )


def create_server(
    root: str,
    cli_overrides: CliOverrides | None = None,
    launcher: EditorLauncher | None = None,
    sleep: SleepFn = time.sleep,
) -> StdioServer:
    """Create a configured STDIO server instance."""
    config = load_effective_config(root=Path(root).resolve(), overrides=cli_overrides)
    return StdioServer(config=config, launcher=launcher, sleep=sleep)


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for the edit-mirror server process."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    force_overwrite: bool | None = None
    if args.force_overwrite == "true":
        force_overwrite = True
    if args.force_overwrite == "false":
        force_overwrite = False
    overrides = CliOverrides(
        data_dir=Path(args.data_dir).resolve() if args.data_dir is not None else None,
        mirror_dir=Path(args.mirror_dir).resolve() if args.mirror_dir is not None else None,
        suffix=args.suffix,
        poll_interval_ms=args.poll_interval_ms,
        settle_samples=args.settle_samples,
        force_overwrite=force_overwrite,
        max_text_bytes=args.max_text_bytes,
    )
    server = create_server(root=args.root, cli_overrides=overrides)
    server.serve(in_stream=sys.stdin, out_stream=sys.stdout)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
