import math
from typing import Any, Literal

from pydantic import BaseModel, Field, computed_field


class SuggestedReply(BaseModel):
    answer: str = Field("", description="Draft text to send to the customer")
    source: str = Field("", description="Historical email that most influenced the draft")
    justification: str = Field("", description="Why the examples were adjusted the way they were")


class MatchProperties(BaseModel):
    # Upstream schema changed over time; every field is optional.
    my_reply: str = ""
    category: str = ""
    replying_to: str = ""
    replying_to_thread: str = ""
    type: str = ""
    customer_name: str = ""
    customer_email: str = ""
    date: str = ""


def percentage_from_distance(distance: float) -> int:
    """Similarity as a whole percentage, rounding halves up."""
    return int(math.floor((1 - distance) * 100 + 0.5))


class HistoricalMatch(BaseModel):
    id: str
    properties: MatchProperties = Field(default_factory=MatchProperties)
    similarity_distance: float = 1.0

    @computed_field
    @property
    def match_percentage(self) -> int:
        return percentage_from_distance(self.similarity_distance)

    @classmethod
    def from_record(cls, record: dict[str, Any], position: int = 0) -> "HistoricalMatch":
        additional = record.get("_additional") or {}

        props = {}
        for name in MatchProperties.model_fields:
            value = record.get(name)
            if value is None:
                continue
            props[name] = value if isinstance(value, str) else str(value)

        try:
            distance = float(additional.get("distance"))
        except (TypeError, ValueError):
            distance = 1.0

        return cls(
            id=str(additional.get("id") or f"match-{position + 1}"),
            properties=MatchProperties(**props),
            similarity_distance=distance,
        )


class Notice(BaseModel):
    level: Literal["error", "warning", "success", "info"] = "info"
    message: str


class RequestOutcome(BaseModel):
    suggestion: SuggestedReply | None = None
    historical_matches: list[HistoricalMatch] = Field(default_factory=list)
    error: str | None = None
    used_fallback: bool = False
    notices: list[Notice] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """No relevant history found, which is not an error."""
        return self.error is None and self.suggestion is None and not self.historical_matches


class SuggestReplyRequest(BaseModel):
    customer_email: str = Field(..., description="The inbound customer message, pasted as-is")


class ConfigStatus(BaseModel):
    endpoint_url: str
    has_search_api_key: bool
    has_model_api_key: bool
    timeout_ms: int
    missing: list[str]
