# app/features/illustrations/schemas.py
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

Mood = Literal["calm", "exciting", "magical", "adventurous", "cozy"]
ArtStyle = Literal["classic-picture-book", "watercolor", "modern-flat", "whimsical"]
ProviderStyle = Literal["vivid", "natural"]
AspectRatio = Literal["square", "portrait", "landscape"]
ImageSize = Literal["1024x1024", "1024x1792", "1792x1024"]

# ----- Story input -----

class SubjectAppearance(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    skin_tone: Optional[str] = Field(None, alias="skinTone")
    hair_color: Optional[str] = Field(None, alias="hairColor")
    hair_style: Optional[str] = Field(None, alias="hairStyle")

    def traits(self) -> Dict[str, str]:
        """Non-empty traits; the literal 'none' means unset."""
        out = {}
        for key in ("skin_tone", "hair_color", "hair_style"):
            val = (getattr(self, key) or "").strip()
            if val and val.lower() != "none":
                out[key] = val
        return out

    @property
    def has_traits(self) -> bool:
        return bool(self.traits())


class Subject(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    appearance: Optional[SubjectAppearance] = None


class StoryText(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: str
    theme: str
    child_name: str = Field(..., description="Primary subject")
    children: List[Subject] = Field(default_factory=list, description="Secondary subjects")
    appearance: Optional[SubjectAppearance] = None
    ai_description: Optional[str] = Field(None, description="Description derived from a profile picture")

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "StoryText":
        """
        Build from a stored story record. Multi-child records list every child
        under `children`; the first one is the primary subject.
        """
        children = [Subject.model_validate(c) for c in (record.get("children") or [])]
        child_name = record.get("child_name") or (children[0].name if children else "")
        appearance = record.get("appearance")
        if children and not record.get("child_name"):
            appearance = appearance or children[0].appearance
            children = children[1:]
        return cls(
            content=record.get("content") or "",
            theme=record.get("theme") or "Fantasy",
            child_name=child_name,
            children=children,
            appearance=SubjectAppearance.model_validate(appearance) if isinstance(appearance, Mapping) else appearance,
            ai_description=record.get("ai_description"),
        )

# ----- Pipeline values -----

class CharacterTier(str, Enum):
    PHOTO = "photo"
    APPEARANCE = "appearance"
    GENERIC = "generic"


class CharacterDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    tier: CharacterTier
    name: str
    description: Optional[str] = None
    friends_clause: Optional[str] = None

    @property
    def include_character(self) -> bool:
        return self.tier is not CharacterTier.GENERIC


class SceneDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int                 # position among selected scenes
    candidate_index: int       # position among all candidates
    excerpt: str
    key_moment: str
    mood: Mood


class IllustrationPrompt(BaseModel):
    model_config = ConfigDict(frozen=True)

    scene_index: int
    total_scenes: int
    text: str
    art_style: ArtStyle
    mood: Mood
    includes_character: bool


class GenerationStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    FULL_SUCCESS = "full_success"
    PARTIAL_SUCCESS = "partial_success"
    FAILED = "failed"


class GenerationResult(BaseModel):
    scene_index: int
    provider_url: Optional[str] = None
    error: Optional[str] = None
    systemic: bool = False

    @property
    def ok(self) -> bool:
        return bool(self.provider_url)


class GenerationBatch(BaseModel):
    status: GenerationStatus = GenerationStatus.PENDING
    results: List[GenerationResult] = Field(default_factory=list)

    @property
    def successes(self) -> List[GenerationResult]:
        return [r for r in self.results if r.ok]


class UploadResult(BaseModel):
    scene_index: int
    original_url: str
    storage_url: Optional[str] = None
    success: bool = False


class PublishOutcome(BaseModel):
    uploads: List[UploadResult] = Field(default_factory=list)
    final_urls: List[str] = Field(default_factory=list)
    durable: bool = False


class StoryImageSet(BaseModel):
    story_id: str
    final_urls: List[str] = Field(default_factory=list)
    has_images: bool = False

# ----- HTTP -----

class GenerateImagesRequest(BaseModel):
    style: Optional[ProviderStyle] = Field(None, description="Provider style hint override")
    appearance: Optional[SubjectAppearance] = Field(None, description="Overrides the stored primary appearance")


class ImageUrlsData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    image_urls: List[str] = Field(default_factory=list, alias="imageUrls")


class ImagesResponse(BaseModel):
    success: bool = True
    data: ImageUrlsData


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
