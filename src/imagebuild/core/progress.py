"""
Build progress output.

A ProgressWriter bundles the sinks one build reports to: plain stream
formatters for human-readable lines and a ProgressOutput for structured
progress events (layer pushes, pulls). Both render either as text or as
JSON lines, depending on how the writer was created.
"""

import json
import sys
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, TextIO, Union

from pydantic import BaseModel, ConfigDict, Field

JSON_LINE_END = "\r\n"


class JSONProgress(BaseModel):
    """Byte counters for a progress event."""

    current: Optional[int] = None
    total: Optional[int] = None

    def render(self) -> str:
        if self.total:
            return f"{self.current or 0}/{self.total}"
        if self.current:
            return str(self.current)
        return ""


class JSONError(BaseModel):
    code: Optional[int] = None
    message: str = ""


class JSONMessage(BaseModel):
    """A single progress event as emitted by the engine or registry."""

    model_config = ConfigDict(
        validate_by_name=True,
        serialize_by_alias=True,
    )

    stream: Optional[str] = None
    status: Optional[str] = None
    id: Optional[str] = None
    progress: Optional[str] = None
    progress_detail: Optional[JSONProgress] = Field(
        default=None, alias="progressDetail"
    )
    error_message: Optional[str] = Field(default=None, alias="error")
    error_detail: Optional[JSONError] = Field(default=None, alias="errorDetail")
    aux: Optional[Dict[str, Any]] = None

    @property
    def error(self) -> Optional[str]:
        """Error text carried by the event, if any."""
        if self.error_detail and self.error_detail.message:
            return self.error_detail.message
        return self.error_message

    def render_text(self) -> str:
        """Render as a human-readable line (without line ending)."""
        if self.error:
            return f"ERROR: {self.error}"
        if self.stream is not None:
            return self.stream.rstrip("\n")
        progress = self.progress
        if not progress and self.progress_detail:
            progress = self.progress_detail.render()
        parts = [f"{self.id}:" if self.id else "", self.status or "", progress or ""]
        return " ".join(part for part in parts if part)


class StreamFormatter:
    """Writer that wraps raw text into the configured output format."""

    def __init__(self, out: TextIO, json_format: bool = False):
        self.out = out
        self.json_format = json_format

    def write(self, text: str) -> int:
        """Write text; in JSON mode each write becomes one ``stream`` message."""
        if self.json_format:
            payload = JSONMessage(stream=text).model_dump_json(exclude_none=True)
            self.out.write(payload + JSON_LINE_END)
        else:
            self.out.write(text)
        self.out.flush()
        return len(text)

    def flush(self) -> None:
        self.out.flush()


class ProgressOutput:
    """Sink for structured progress events."""

    def __init__(self, out: TextIO, json_format: bool = False):
        self.out = out
        self.json_format = json_format

    def write_progress(self, message: Union[JSONMessage, Dict[str, Any]]) -> None:
        """
        Write one progress event.

        Args:
            message: Event model or the raw decoded event dict
        """
        if not isinstance(message, JSONMessage):
            message = JSONMessage.model_validate(message)

        if self.json_format:
            self.out.write(message.model_dump_json(exclude_none=True) + JSON_LINE_END)
        else:
            line = message.render_text()
            if not line:
                return
            self.out.write(line + "\n")
        self.out.flush()


def new_progress_output(output: Union[StreamFormatter, TextIO]) -> ProgressOutput:
    """Derive a structured progress output writing to the same destination."""
    if isinstance(output, StreamFormatter):
        return ProgressOutput(output.out, json_format=output.json_format)
    return ProgressOutput(output)


@dataclass
class ProgressWriter:
    """Per-build bundle of output sinks."""

    output: TextIO
    stdout_formatter: StreamFormatter
    stderr_formatter: StreamFormatter
    progress_output: ProgressOutput

    @classmethod
    def from_stream(
        cls, out: Optional[TextIO] = None, json_format: bool = False
    ) -> "ProgressWriter":
        """
        Create a writer that reports everything to one stream.

        Args:
            out: Destination stream (defaults to sys.stdout)
            json_format: Emit JSON lines instead of plain text

        Returns:
            ProgressWriter instance
        """
        out = out if out is not None else sys.stdout
        stdout = StreamFormatter(out, json_format=json_format)
        return cls(
            output=out,
            stdout_formatter=stdout,
            stderr_formatter=StreamFormatter(out, json_format=json_format),
            progress_output=new_progress_output(stdout),
        )


def decode_json_lines(text: str) -> List[Dict[str, Any]]:
    """Decode a JSON-lines progress transcript, skipping blank lines."""
    return [json.loads(line) for line in text.splitlines() if line.strip()]
