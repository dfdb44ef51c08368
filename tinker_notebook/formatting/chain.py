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

"""First-match formatter dispatch.

The probe order is explicit and fixed:

    JSON -> foreign array -> foreign object -> registered custom -> scalar

Custom formatters are inserted before the scalar fallback, so registering
one can never shadow the built-in structural formatters.
"""

import logging

from ..entities import ExecutionResult
from .detector import OutputType
from .formatters import (
    ForeignArrayFormatter,
    ForeignObjectFormatter,
    FormattedOutput,
    Formatter,
    FormattingOptions,
    JsonFormatter,
    ScalarFormatter,
)

logger = logging.getLogger(__name__)

NO_OUTPUT_MESSAGE = "No output generated"


class FormatterChain:
    """Ordered list of formatters probed with ``can_format``."""

    def __init__(self) -> None:
        self._builtin: list[Formatter] = [
            JsonFormatter(),
            ForeignArrayFormatter(),
            ForeignObjectFormatter(),
        ]
        self._custom: list[Formatter] = []
        self._fallback = ScalarFormatter()

    def register_formatter(self, formatter: Formatter) -> None:
        """Add a custom formatter ahead of the scalar fallback.

        Raises:
            TypeError: If formatter does not implement the Formatter protocol
        """
        if not isinstance(formatter, Formatter):
            raise TypeError(f"{formatter!r} does not implement the Formatter protocol")
        self._custom.append(formatter)
        logger.debug("Registered formatter '%s'", formatter.name)

    @property
    def formatters(self) -> list[Formatter]:
        """All formatters in probe order."""
        return [*self._builtin, *self._custom, self._fallback]

    def find_formatter(self, output: str) -> Formatter:
        """Return the first formatter accepting output (the fallback accepts all)."""
        for formatter in self.formatters:
            try:
                accepted = formatter.can_format(output)
            except Exception:
                logger.exception("Formatter '%s' failed to probe output", formatter.name)
                continue
            if accepted:
                return formatter
        return self._fallback

    def format(self, output: str, options: FormattingOptions | None = None) -> FormattedOutput:
        """Render output with the first accepting formatter.

        A custom formatter that raises is logged and replaced by the scalar
        fallback; the built-in formatters do not raise.
        """
        options = options if options is not None else FormattingOptions()
        formatter = self.find_formatter(output)
        logger.debug("Formatting output with '%s'", formatter.name)
        try:
            return formatter.format(output, options)
        except Exception:
            if formatter is self._fallback:
                raise
            logger.exception("Formatter '%s' failed, using scalar fallback", formatter.name)
            return self._fallback.format(output, options)

    def format_result(
        self,
        result: ExecutionResult,
        options: FormattingOptions | None = None,
    ) -> FormattedOutput:
        """Render an execution result's output; blank output gets a notice."""
        if not result.output.strip():
            return FormattedOutput(
                text=NO_OUTPUT_MESSAGE,
                data=None,
                output_type=OutputType.SCALAR_STRING,
                formatter=self._fallback.name,
            )
        return self.format(result.output, options)
