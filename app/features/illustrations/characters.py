# app/features/illustrations/characters.py
from __future__ import annotations

from typing import List, Optional

from app.features.illustrations.schemas import (
    CharacterDescriptor,
    CharacterTier,
    StoryText,
    Subject,
    SubjectAppearance,
)

SKIN_TONE_WORDING = {
    "light": "fair skin tone",
    "medium-light": "light-medium skin tone",
    "medium": "medium skin tone",
    "medium-dark": "medium-dark skin tone",
    "dark": "rich dark skin tone",
}


def describe_traits(appearance: Optional[SubjectAppearance]) -> Optional[str]:
    """
    Physical wording for the given traits only, e.g.
    "medium skin tone, curly brown hair". None when nothing is modeled.
    """
    if appearance is None:
        return None
    traits = appearance.traits()
    parts: List[str] = []

    skin = traits.get("skin_tone")
    if skin:
        parts.append(SKIN_TONE_WORDING.get(skin.lower(), f"{skin} skin tone"))

    hair = " ".join(v for v in (traits.get("hair_style"), traits.get("hair_color")) if v)
    if hair:
        parts.append(f"{hair} hair")

    return ", ".join(parts) or None


def friends_clause(friends: List[Subject]) -> Optional[str]:
    named = [f for f in friends if (f.name or "").strip()]
    if not named:
        return None
    mentions = []
    for friend in named:
        traits = describe_traits(friend.appearance)
        mentions.append(f"{friend.name} with {traits}" if traits else friend.name)
    return "With friends: " + ", ".join(mentions)


def determine_tier(ai_description: Optional[str], appearance: Optional[SubjectAppearance]) -> CharacterTier:
    if ai_description and ai_description.strip():
        return CharacterTier.PHOTO
    if appearance is not None and appearance.has_traits:
        return CharacterTier.APPEARANCE
    return CharacterTier.GENERIC


def build_character_descriptor(
    story: StoryText,
    *,
    appearance_override: Optional[SubjectAppearance] = None,
) -> CharacterDescriptor:
    """
    Decide how the primary subject may be drawn.

    photo      -> the stored profile-picture description, verbatim
    appearance -> name plus the modeled traits
    generic    -> the subject is left out of the pictures entirely
    """
    appearance = appearance_override if appearance_override is not None else story.appearance
    tier = determine_tier(story.ai_description, appearance)

    if tier is CharacterTier.GENERIC:
        return CharacterDescriptor(tier=tier, name=story.child_name)

    if tier is CharacterTier.PHOTO:
        description = story.ai_description.strip()
    else:
        description = describe_traits(appearance)

    return CharacterDescriptor(
        tier=tier,
        name=story.child_name,
        description=description,
        friends_clause=friends_clause(story.children),
    )
