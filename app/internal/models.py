from enum import Enum
from typing import Literal, Protocol, Sequence

from pydantic import BaseModel, ConfigDict, Field


class PersonInfo(BaseModel):
    """A person credited on a library item (actor, director, writer...)."""

    model_config = ConfigDict(frozen=True)  # pyright: ignore[reportUnannotatedClassAttribute]

    name: str
    type: str | None = None
    role: str | None = None


class HasPeople(Protocol):
    @property
    def people(self) -> Sequence[PersonInfo] | None: ...


class LibraryItem(BaseModel):
    """Minimal library item carrying people references."""

    model_config = ConfigDict(frozen=True)  # pyright: ignore[reportUnannotatedClassAttribute]

    id: str
    name: str
    people: tuple[PersonInfo, ...] | None = None


class ImageType(str, Enum):
    primary = "Primary"
    banner = "Banner"
    backdrop = "Backdrop"


class ImageCategory(str, Enum):
    """Key types understood by the upstream image query endpoint."""

    poster = "poster"
    series = "series"
    fanart = "fanart"


DEFAULT_IMAGE_CATEGORIES: tuple[ImageCategory, ...] = (
    ImageCategory.poster,
    ImageCategory.series,
    ImageCategory.fanart,
)


class ImageCandidate(BaseModel):
    model_config = ConfigDict(frozen=True)  # pyright: ignore[reportUnannotatedClassAttribute]

    url: str
    thumbnail_url: str | None = None
    type: ImageType | None = None
    language: str | None = None
    width: int | None = None
    height: int | None = None
    community_rating: float | None = None
    vote_count: int | None = None
    provider_name: str
    rating_type: Literal["score", "likes"] = "score"


class ImageSubject(BaseModel):
    """The item artwork is requested for."""

    name: str
    kind: str = "series"
    provider_ids: dict[str, str] = Field(default_factory=dict)
    preferred_metadata_language: str | None = None


class CategoryOutcome(BaseModel):
    category: ImageCategory
    status: Literal["ok", "failed", "cancelled"]
    candidates: list[ImageCandidate] = Field(default_factory=list)
    error: str | None = None


class AggregationResult(BaseModel):
    outcomes: list[CategoryOutcome] = Field(default_factory=list)

    @property
    def candidates(self) -> list[ImageCandidate]:
        """All candidates, concatenated in category order."""
        return [c for outcome in self.outcomes for c in outcome.candidates]

    @property
    def failed_categories(self) -> list[ImageCategory]:
        return [o.category for o in self.outcomes if o.status == "failed"]

    @property
    def cancelled_categories(self) -> list[ImageCategory]:
        return [o.category for o in self.outcomes if o.status == "cancelled"]
