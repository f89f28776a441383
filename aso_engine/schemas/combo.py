"""Token and combo schemas."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

TextSource = Literal["title", "subtitle", "title+subtitle"]
GenerationType = Literal["sequential", "stopword_bridged", "cross_element", "semantic_pair"]
ComboIntentClass = Literal["learning", "outcome", "brand", "noise"]
ValueTier = Literal["branded", "generic", "low_value"]

# Dedup tie-break: higher wins when relevance scores are equal.
GENERATION_TYPE_PRIORITY: dict[str, int] = {
    "semantic_pair": 4,
    "cross_element": 3,
    "stopword_bridged": 2,
    "sequential": 1,
}


class Token(BaseModel):
    """A single word extracted from a listing field."""

    model_config = ConfigDict(frozen=True)

    text: str
    raw: str
    position: int = Field(ge=0)
    source: TextSource = "title"
    relevance: int = Field(default=1, ge=0, le=3)
    matched_pattern_id: str | None = None


class Combo(BaseModel):
    """A candidate keyword phrase of 2-4 tokens."""

    text: str
    tokens: list[str]
    generation_type: GenerationType
    relevance_score: float = Field(ge=0.0)
    source: TextSource
    intent_class: ComboIntentClass | None = None
    value_tier: ValueTier | None = None
    is_low_value: bool = False
    low_value_reason: str | None = None

    @property
    def length(self) -> int:
        return len(self.tokens)


class ComboGenerationResult(BaseModel):
    """Deduplicated combos split into valuable and low-value partitions."""

    valuable: list[Combo] = Field(default_factory=list)
    low_value: list[Combo] = Field(default_factory=list)

    @property
    def all_combos(self) -> list[Combo]:
        return [*self.valuable, *self.low_value]
