"""Intent pattern schemas."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

IntentType = Literal["informational", "commercial", "transactional", "navigational"]
PatternScope = Literal["base", "vertical", "market", "client", "app"]

# Fixed order used for distributions and dominant-intent tie-breaks.
INTENT_TYPES: tuple[IntentType, ...] = (
    "informational",
    "commercial",
    "transactional",
    "navigational",
)

SCOPE_SPECIFICITY: dict[str, int] = {
    "base": 0,
    "vertical": 1,
    "market": 2,
    "client": 3,
    "app": 4,
}


class IntentPattern(BaseModel):
    """A single token intent matching rule."""

    model_config = ConfigDict(frozen=True)

    id: str
    pattern: str = Field(min_length=1, max_length=255)
    intent_type: IntentType
    weight: float = Field(default=1.0, ge=0.1, le=3.0)
    priority: int = Field(default=50, ge=0, le=200)
    scope: PatternScope = "base"
    scope_key: str | None = None
    is_regex: bool = False
    case_sensitive: bool = False
    word_boundary: bool = True
    is_active: bool = True
    example: str | None = None

    @field_validator("pattern")
    @classmethod
    def _strip_pattern(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("pattern must not be blank")
        return stripped

    @field_validator("scope_key")
    @classmethod
    def _normalize_scope_key(cls, value: str | None) -> str | None:
        if value is None:
            return None
        stripped = value.strip()
        return stripped or None

    @model_validator(mode="after")
    def _check_scope_key(self) -> "IntentPattern":
        if self.scope == "base" and self.scope_key is not None:
            raise ValueError("base-scope patterns must not carry a scope_key")
        if self.scope != "base" and self.scope_key is None:
            raise ValueError(f"{self.scope}-scope patterns require a scope_key")
        return self

    @property
    def specificity(self) -> int:
        return SCOPE_SPECIFICITY[self.scope]

    @property
    def identity(self) -> tuple[str, str, str | None]:
        """Uniqueness key within the pattern store."""
        return (self.pattern, self.scope, self.scope_key)
