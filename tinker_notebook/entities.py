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

"""Execution result and block state entities.

Both serialize to the plain dictionaries stored in the block state
document. Timestamps use a fixed UTC text format so they round-trip
losslessly.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from .states import BlockState

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def format_timestamp(value: datetime) -> str:
    """Render a datetime in the persisted timestamp format (UTC)."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(TIMESTAMP_FORMAT)


def parse_timestamp(text: str) -> datetime:
    """Parse a persisted timestamp back into an aware UTC datetime."""
    return datetime.strptime(text, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of running one fragment through an external executor.

    Attributes:
        output: Captured standard output
        error: Captured error text, if any
        exit_code: Process exit code
        execution_time: Wall-clock duration in milliseconds
    """

    output: str
    error: str | None = None
    exit_code: int = 0
    execution_time: int = 0

    @property
    def failed(self) -> bool:
        """Check if the execution reported an error."""
        return bool(self.error) or self.exit_code != 0

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "output": self.output,
            "exitCode": self.exit_code,
            "executionTime": self.execution_time,
        }
        if self.error is not None:
            data["error"] = self.error
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExecutionResult":
        return cls(
            output=data.get("output", ""),
            error=data.get("error"),
            exit_code=int(data.get("exitCode", 0)),
            execution_time=int(data.get("executionTime", 0)),
        )


@dataclass
class StateEntry:
    """Lifecycle record for one fragment id.

    Attributes:
        id: Fragment identifier
        state: BlockState value
        last_result: Most recent result stored with a state change
        last_execution_time: When the state last changed
    """

    id: str
    state: str = BlockState.NOT_EXECUTED
    last_result: ExecutionResult | None = None
    last_execution_time: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "state": self.state}
        if self.last_result is not None:
            data["lastResult"] = self.last_result.to_dict()
        if self.last_execution_time is not None:
            data["lastExecutionTime"] = format_timestamp(self.last_execution_time)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StateEntry":
        """Create from a persisted dictionary.

        Raises:
            KeyError: If the id is missing
            ValueError: If the state or timestamp is malformed
        """
        state = data.get("state", BlockState.NOT_EXECUTED)
        if not BlockState.is_valid(state):
            raise ValueError(f"Unknown block state '{state}'")
        last_result = data.get("lastResult")
        timestamp = data.get("lastExecutionTime")
        return cls(
            id=data["id"],
            state=state,
            last_result=ExecutionResult.from_dict(last_result) if last_result else None,
            last_execution_time=parse_timestamp(timestamp) if timestamp else None,
        )
