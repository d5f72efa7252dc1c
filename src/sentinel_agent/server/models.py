from typing import List, Optional

from pydantic import BaseModel, Field, StrictFloat, StrictInt, StrictStr

# Strict types: a string duration or a boolean count is rejected rather than
# coerced. StrictFloat still accepts JSON integers.


class SlowQueryPayload(BaseModel):
    sql: StrictStr = ""
    duration_ms: StrictFloat = 0.0


class IngestPayload(BaseModel):
    """Body posted by the probe at the end of every request."""

    method: Optional[StrictStr] = None
    uri: Optional[StrictStr] = None
    duration_ms: StrictFloat = 0.0
    memory_mb: StrictFloat = 0.0
    query_count: StrictInt = 0
    slow_queries: Optional[List[SlowQueryPayload]] = None
    timestamp: Optional[StrictStr] = None


class PathRequest(BaseModel):
    path: str = Field(min_length=1, max_length=4096)
