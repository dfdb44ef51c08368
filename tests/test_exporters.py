# Copyright 2025 Ralph Lemke
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Tests for exporters."""

import json

import pytest

from tinker_notebook.formatting.exporters import (
    CsvExporter,
    Exporter,
    JsonExporter,
    TextExporter,
    exporter_for,
)


class TestLookup:
    """Tests for exporter_for()."""

    def test_by_name(self):
        assert isinstance(exporter_for("json"), JsonExporter)
        assert isinstance(exporter_for("CSV"), CsvExporter)
        assert isinstance(exporter_for("Text"), TextExporter)

    def test_unknown(self):
        with pytest.raises(ValueError, match="available: csv, json, text"):
            exporter_for("xml")

    def test_protocol(self):
        assert isinstance(exporter_for("json"), Exporter)


class TestJsonExporter:
    """Tests for JsonExporter."""

    def test_indented(self):
        assert JsonExporter().export({"a": [1]}) == '{\n  "a": [\n    1\n  ]\n}'

    def test_integer_keys(self):
        assert json.loads(JsonExporter().export({0: "x"})) == {"0": "x"}


class TestCsvExporter:
    """Tests for CsvExporter."""

    def test_list_of_records(self):
        data = [{"id": 1, "name": "Ada"}, {"id": 2, "email": "b@x"}]
        assert CsvExporter().export(data) == "id,name,email\n1,Ada,\n2,,b@x\n"

    def test_single_record(self):
        assert CsvExporter().export({"a": 1, "b": None}) == "a,b\n1,\n"

    def test_plain_list(self):
        assert CsvExporter().export([1, "two"]) == "1\ntwo\n"

    def test_quoting(self):
        assert CsvExporter().export({"note": 'say "hi", ok'}) == 'note\n"say ""hi"", ok"\n'

    def test_nested_values_as_json(self):
        assert CsvExporter().export({"tags": ["a", "b"]}) == 'tags\n"[""a"", ""b""]"\n'

    def test_json_string_input(self):
        assert CsvExporter().export('{"a": true}') == "a\ntrue\n"

    def test_plain_string_passthrough(self):
        assert CsvExporter().export("just text") == "just text"

    def test_none(self):
        assert CsvExporter().export(None) == ""


class TestTextExporter:
    """Tests for TextExporter."""

    def test_string(self):
        assert TextExporter().export("raw") == "raw"

    def test_structure(self):
        assert TextExporter().export([1]) == "[\n  1\n]"

    def test_scalar(self):
        assert TextExporter().export(3) == "3"
        assert TextExporter().export(None) == ""
