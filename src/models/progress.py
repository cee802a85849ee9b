"""Session-scoped batch progress snapshot.

Polling clients read these over HTTP in camelCase
(``progressPercent``, ``eventsParsed`` ...); Python code uses snake_case.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class BatchProgress(BaseModel):
    """Latest state of one session's batch job.

    Snapshots are replaced wholesale on every update via
    ``model_copy(update={...})``.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    progress_percent: int = Field(default=0, ge=0, le=100)
    message: str = ""
    events_total: int = 0
    events_parsed: int = 0
    artists_found: int = 0
    links_created: int = 0
    stubs_created: int = 0
    completed: bool = False
    cancelled: bool = False
    error: str | None = None
    run_id: str | None = None

    def to_api(self) -> dict:
        return self.model_dump(by_alias=True)
