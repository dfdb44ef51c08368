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

"""Conversion of decoded output into export text.

Exporters only produce strings; choosing a destination and writing the
file is left to the host.
"""

import csv
import io
import json
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Exporter(Protocol):
    """Protocol for exporters."""

    format_name: str

    def export(self, data: Any) -> str: ...


class JsonExporter:
    """Exports data as indented JSON."""

    format_name = "json"

    def export(self, data: Any) -> str:
        return json.dumps(data, indent=2, default=str, ensure_ascii=False)


class CsvExporter:
    """Exports data as CSV.

    A list of mappings becomes one row per item under the union of their
    keys. A single mapping becomes a header row and one data row. Any other
    list becomes one value per line. Nested values are written as JSON.
    """

    format_name = "csv"

    def export(self, data: Any) -> str:
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except ValueError:
                return data
        if data is None:
            return ""

        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")

        if isinstance(data, list) and data and isinstance(data[0], dict):
            headers: list[str] = []
            for item in data:
                if isinstance(item, dict):
                    for key in item:
                        if str(key) not in headers:
                            headers.append(str(key))
            writer.writerow(headers)
            for item in data:
                row = item if isinstance(item, dict) else {}
                values = {str(key): value for key, value in row.items()}
                writer.writerow(
                    [self._cell(values[h]) if h in values else "" for h in headers]
                )
        elif isinstance(data, dict):
            writer.writerow([str(key) for key in data])
            writer.writerow([self._cell(value) for value in data.values()])
        elif isinstance(data, list):
            for item in data:
                writer.writerow([self._cell(item)])
        else:
            writer.writerow([self._cell(data)])

        return buffer.getvalue()

    @staticmethod
    def _cell(value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (dict, list)):
            return json.dumps(value, default=str, ensure_ascii=False)
        return str(value)


class TextExporter:
    """Exports strings as-is and anything else as indented JSON."""

    format_name = "text"

    def export(self, data: Any) -> str:
        if isinstance(data, str):
            return data
        if data is None:
            return ""
        if isinstance(data, (dict, list)):
            return json.dumps(data, indent=2, default=str, ensure_ascii=False)
        return str(data)


EXPORTERS: dict[str, type] = {
    JsonExporter.format_name: JsonExporter,
    CsvExporter.format_name: CsvExporter,
    TextExporter.format_name: TextExporter,
}


def exporter_for(format_name: str) -> Exporter:
    """Look up an exporter by format name (case-insensitive).

    Raises:
        ValueError: If no exporter handles the format
    """
    exporter_class = EXPORTERS.get(format_name.lower())
    if exporter_class is None:
        available = ", ".join(sorted(EXPORTERS))
        raise ValueError(f"No exporter for format '{format_name}' (available: {available})")
    return exporter_class()
