"""Tests for IPC message decoding and result digestion."""
import json

import pytest

from runner.protocol import (
    ErrorMessage,
    ProgressMessage,
    SuccessMessage,
    TaskOutput,
    decode_message,
    digest_success,
    format_diagnostic,
    format_progress,
)


class TestDecodeMessage:
    def test_progress(self):
        msg = decode_message('{"type":"progress","message":"Scanning","percent":42}')
        assert isinstance(msg, ProgressMessage)
        assert msg.message == "Scanning"
        assert msg.percent == 42

    def test_progress_without_percent(self):
        msg = decode_message('{"type":"progress","message":"Working"}')
        assert isinstance(msg, ProgressMessage)
        assert msg.percent == 0

    @pytest.mark.parametrize("percent", [-1, 101, 255])
    def test_progress_out_of_range(self, percent):
        assert decode_message(json.dumps({"type": "progress", "message": "x", "percent": percent})) is None

    def test_success(self):
        msg = decode_message('{"type":"success","data":{"a":[1,2]}}')
        assert isinstance(msg, SuccessMessage)
        assert msg.data == {"a": [1, 2]}

    def test_success_with_scalar_data(self):
        msg = decode_message('{"type":"success","data":"done"}')
        assert isinstance(msg, SuccessMessage)
        assert msg.data == "done"

    def test_error(self):
        msg = decode_message('{"type":"error","message":"boom"}')
        assert isinstance(msg, ErrorMessage)
        assert msg.message == "boom"

    def test_extra_fields_ignored(self):
        assert isinstance(decode_message('{"type":"error","message":"x","code":7}'), ErrorMessage)

    @pytest.mark.parametrize("line", [
        "plain text",
        "{not json",
        '{"type":"unknown","message":"x"}',
        '{"message":"no type"}',
        '{"type":"error"}',
        '{"type":"progress","percent":5}',
        "[1, 2, 3]",
    ])
    def test_non_protocol_lines(self, line):
        assert decode_message(line) is None


class TestFormatting:
    def test_progress_text(self):
        assert format_progress(ProgressMessage(type="progress", message="Loading", percent=5)) == "⏳ [05%] Loading"
        assert format_progress(ProgressMessage(type="progress", message="Done", percent=100)) == "⏳ [100%] Done"

    def test_diagnostic_text(self):
        assert format_diagnostic("debug: hi") == "📝 debug: hi"


class TestDigestSuccess:
    def test_table(self):
        output = digest_success({"table": {"headers": ["A", "B"], "rows": [["1", "2"]]}})
        assert output.headers == ["A", "B"]
        assert output.rows == [["1", "2"]]
        assert output.raw is None
        assert output.raw_json is None

    def test_table_from_wire_line(self):
        msg = decode_message('{"type":"success","data":{"table":{"headers":["A","B"],"rows":[["1","2"]]}}}')
        assert digest_success(msg.data) == TaskOutput(headers=["A", "B"], rows=[["1", "2"]])

    def test_non_string_cells_become_empty(self):
        output = digest_success({"table": {"headers": ["A", 5], "rows": [[1, None, "x"]]}})
        assert output.headers == ["A", ""]
        assert output.rows == [["", ""]]

    def test_rows_are_rectangular(self):
        output = digest_success({"table": {"headers": ["A", "B", "C"], "rows": [["1"], ["1", "2", "3", "4"]]}})
        assert output.rows == [["1", "", ""], ["1", "2", "3"]]

    def test_non_list_rows_skipped(self):
        output = digest_success({"table": {"headers": ["A"], "rows": [["ok"], "bad", {"x": 1}]}})
        assert output.rows == [["ok"]]

    def test_missing_headers_and_rows(self):
        output = digest_success({"table": {}})
        assert output.headers == []
        assert output.rows == []
        assert output.raw is None

    def test_rows_without_headers_kept_as_is(self):
        output = digest_success({"table": {"rows": [["a", "b"], ["c"]]}})
        assert output.rows == [["a", "b"], ["c"]]

    def test_message_and_file_path(self):
        output = digest_success({
            "table": {"headers": ["A"], "rows": []},
            "message": "3 findings",
            "file_path": "/tmp/report.csv",
        })
        assert output.message == "3 findings"
        assert output.file_path == "/tmp/report.csv"

    def test_no_table_keeps_raw(self):
        data = {"action": "Offboard Initialization", "id": "42"}
        output = digest_success(data)
        assert output.headers == []
        assert output.raw == data
        assert json.loads(output.raw_json) == data
        assert output.raw_json.startswith("{\n")

    def test_message_only_payload_is_raw(self):
        output = digest_success({"message": "Tenant is clean"})
        assert output.message is None
        assert output.raw == {"message": "Tenant is clean"}

    def test_list_payload_is_raw(self):
        assert digest_success([1, 2]).raw == [1, 2]

    def test_null_payload_renders_as_null(self):
        output = digest_success(None)
        assert output.raw is None
        assert output.raw_json == "null"

    def test_empty_output_has_no_json(self):
        assert TaskOutput().raw_json is None

    def test_output_is_immutable(self):
        output = digest_success({"table": {"headers": ["A"], "rows": []}})
        with pytest.raises(AttributeError):
            output.message = "changed"
