# app/features/illustrations/prompt.py
import re
from typing import Optional

from app.features.illustrations.schemas import (
    ArtStyle,
    CharacterDescriptor,
    IllustrationPrompt,
    Mood,
    SceneDescriptor,
)
from app.features.illustrations.styles import ART_STYLES, palette_for

MAX_PROMPT_CHARS = 1500
MIN_MOMENT_CHARS = 50

_PRONOUN_RE = re.compile(r"\b(he|she|they|him|her|them)\b", re.IGNORECASE)
_PERSON_RE = re.compile(r"character|person|child", re.IGNORECASE)


def _environment_moment(moment: str, subject_name: str) -> str:
    if subject_name:
        moment = re.sub(re.escape(subject_name), "the scene", moment, flags=re.IGNORECASE)
    moment = _PRONOUN_RE.sub("it", moment)
    return _PERSON_RE.sub("element", moment)


def _render(
    *,
    moment: str,
    art_style: ArtStyle,
    mood: Mood,
    character: Optional[CharacterDescriptor],
    page: int,
    total: int,
    theme: str,
) -> str:
    guide = ART_STYLES[art_style]
    palette = palette_for(theme)
    mood_word = mood.capitalize()

    continuity = (
        f"Story continuity: this is page {page} of {total}. Use exactly the same art style "
        f"({guide.label}), line weight, color palette and rendering technique as every other page."
    )

    if character is not None and character.include_character:
        name = character.name
        friends = f" {character.friends_clause}." if character.friends_clause else ""
        return (
            f"Children's book illustration: {moment}\n\n"
            f"Character: {name}, {character.description}.{friends} Make {name} the clear focal point "
            f"with expressive {mood} emotion. Keep character appearance consistent with this description.\n\n"
            f"Art style ({guide.label}): {guide.summary()}\n\n"
            f"Colors ({theme}): {palette.summary()}\n\n"
            f"Composition: {name} in lower third or center (rule of thirds). Simple background with "
            "2-4 elements. Clear depth with foreground/background layers.\n\n"
            f"Mood: {mood_word}, warm, safe, perfect for bedtime.\n\n"
            f"{continuity}\n\n"
            "Professional quality, single focused moment, ages 3-8, never scary.\n\n"
            "NO: text, words, letters, speech bubbles, multiple scenes, cluttered backgrounds, "
            "photorealism, dark elements."
        )

    return (
        f"Children's book illustration: {moment}\n\n"
        f"Focus: Beautiful {theme.lower()} environment and setting. NO characters or people. "
        "Focus entirely on the landscape, scenery and atmosphere.\n\n"
        f"Art style ({guide.label}): {guide.summary()}\n\n"
        f"Colors ({theme}): {palette.summary()}\n\n"
        "Composition: clear focal point in the environment, 2-4 main elements, "
        "foreground, middle ground and background layers.\n\n"
        f"Mood: {mood_word}, atmospheric, immersive, inviting.\n\n"
        f"{continuity}\n\n"
        "Professional quality, single focused scene, ages 3-8, never scary.\n\n"
        "NO: people, characters, animals with human features, text, words, letters, "
        "multiple scenes, cluttered backgrounds, photorealism, dark elements."
    )


def compose_prompt(
    scene: SceneDescriptor,
    *,
    art_style: ArtStyle,
    mood: Mood,
    character: Optional[CharacterDescriptor],
    total_scenes: int,
    theme: str,
    subject_name: str = "",
) -> IllustrationPrompt:
    """
    One finished prompt for one scene. Pure: style, mood and character are
    computed once per story by the caller and only read here.
    """
    include = bool(character is not None and character.include_character)
    moment = scene.key_moment
    if not include:
        moment = _environment_moment(moment, subject_name or (character.name if character else ""))

    kwargs = dict(art_style=art_style, mood=mood, character=character if include else None,
                  page=scene.index + 1, total=total_scenes, theme=theme)
    text = _render(moment=moment, **kwargs)

    # Over-long prompts lose the tail of the moment, never the style block
    if len(text) > MAX_PROMPT_CHARS and len(moment) > MIN_MOMENT_CHARS:
        excess = len(text) - MAX_PROMPT_CHARS
        keep = max(MIN_MOMENT_CHARS, len(moment) - excess)
        text = _render(moment=moment[:keep].rstrip(), **kwargs)

    return IllustrationPrompt(
        scene_index=scene.index,
        total_scenes=total_scenes,
        text=text,
        art_style=art_style,
        mood=mood,
        includes_character=include,
    )
