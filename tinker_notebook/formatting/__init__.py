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

"""Output classification, rendering and export."""

from .chain import NO_OUTPUT_MESSAGE, FormatterChain
from .detector import OutputType, classify
from .dump import DumpDecoder, decode_dump
from .exporters import CsvExporter, Exporter, JsonExporter, TextExporter, exporter_for
from .formatters import (
    ForeignArrayFormatter,
    ForeignObjectFormatter,
    FormattedOutput,
    Formatter,
    FormattingOptions,
    JsonFormatter,
    ScalarFormatter,
)

__all__ = [
    # Classification
    "OutputType",
    "classify",
    # Decoding
    "DumpDecoder",
    "decode_dump",
    # Formatting
    "FormattingOptions",
    "FormattedOutput",
    "Formatter",
    "JsonFormatter",
    "ForeignArrayFormatter",
    "ForeignObjectFormatter",
    "ScalarFormatter",
    "FormatterChain",
    "NO_OUTPUT_MESSAGE",
    # Export
    "Exporter",
    "JsonExporter",
    "CsvExporter",
    "TextExporter",
    "exporter_for",
]
