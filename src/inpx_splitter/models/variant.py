"""Data models for catalog variants."""

from pydantic import BaseModel, Field

MARKER_PATTERN = "*.info"


class Variant(BaseModel):
    """A named partition of the catalog defined by keep patterns."""

    tag: str = Field(min_length=1)
    record_glob: str  # Matches record (.inp) files only
    marker_pattern: str = MARKER_PATTERN

    @property
    def keep_patterns(self) -> list[str]:
        """Patterns that survive pruning: markers plus this variant's records."""
        return [self.marker_pattern, self.record_glob]

    @classmethod
    def for_tag(cls, tag: str) -> "Variant":
        """Build a variant using the standard `*<tag>-*.inp` record naming."""
        return cls(tag=tag, record_glob=f"*{tag}-*.inp")


DEFAULT_VARIANTS: tuple[Variant, ...] = (
    Variant.for_tag("fb2"),
    Variant.for_tag("usr"),
)
