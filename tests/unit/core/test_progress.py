"""Tests for progress formatting."""

import io
import json

from imagebuild.core.progress import (
    JSONMessage,
    ProgressOutput,
    ProgressWriter,
    StreamFormatter,
    decode_json_lines,
    new_progress_output,
)


class TestJSONMessage:
    def test_parses_engine_event(self):
        message = JSONMessage.model_validate(
            {
                "status": "Pushing",
                "id": "a1b2c3",
                "progressDetail": {"current": 512, "total": 2048},
            }
        )
        assert message.status == "Pushing"
        assert message.progress_detail.total == 2048
        assert message.render_text() == "a1b2c3: Pushing 512/2048"

    def test_error_detail_takes_precedence(self):
        message = JSONMessage.model_validate(
            {"error": "short", "errorDetail": {"message": "detailed failure"}}
        )
        assert message.error == "detailed failure"
        assert message.render_text() == "ERROR: detailed failure"

    def test_serializes_with_aliases(self):
        message = JSONMessage(status="Pushed", id="a1", progress_detail={"current": 1})
        payload = json.loads(message.model_dump_json(exclude_none=True))
        assert payload == {"status": "Pushed", "id": "a1", "progressDetail": {"current": 1}}

    def test_stream_line(self):
        assert JSONMessage(stream="Step 1/2 : FROM busybox\n").render_text() == (
            "Step 1/2 : FROM busybox"
        )


class TestStreamFormatter:
    def test_text_mode_passes_through(self):
        out = io.StringIO()
        written = StreamFormatter(out).write("hello\n")
        assert written == 6
        assert out.getvalue() == "hello\n"

    def test_json_mode_wraps_stream(self):
        out = io.StringIO()
        StreamFormatter(out, json_format=True).write("hello\n")
        assert out.getvalue() == '{"stream":"hello\\n"}\r\n'


class TestProgressOutput:
    def test_text_mode(self):
        out = io.StringIO()
        ProgressOutput(out).write_progress({"status": "Preparing", "id": "layer1"})
        assert out.getvalue() == "layer1: Preparing\n"

    def test_empty_event_is_skipped_in_text_mode(self):
        out = io.StringIO()
        ProgressOutput(out).write_progress({"progressDetail": {}})
        assert out.getvalue() == ""

    def test_json_mode(self):
        out = io.StringIO()
        ProgressOutput(out, json_format=True).write_progress(
            JSONMessage(status="Pushed", id="layer1")
        )
        assert decode_json_lines(out.getvalue()) == [{"status": "Pushed", "id": "layer1"}]

    def test_derived_from_formatter_keeps_format(self):
        out = io.StringIO()
        progress = new_progress_output(StreamFormatter(out, json_format=True))
        assert progress.out is out
        assert progress.json_format

    def test_derived_from_plain_stream(self):
        out = io.StringIO()
        progress = new_progress_output(out)
        assert progress.out is out
        assert not progress.json_format


class TestProgressWriter:
    def test_from_stream_shares_destination(self):
        out = io.StringIO()
        writer = ProgressWriter.from_stream(out, json_format=True)

        writer.stdout_formatter.write("built\n")
        writer.progress_output.write_progress({"status": "Pushed"})

        assert decode_json_lines(out.getvalue()) == [
            {"stream": "built\n"},
            {"status": "Pushed"},
        ]
