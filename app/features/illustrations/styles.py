# app/features/illustrations/styles.py
"""
Art style and mood selection.

The art style is chosen once per story and shared by every page; the mood is
read from each scene and may change from page to page.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Tuple

from app.features.illustrations.schemas import ArtStyle, Mood

# Tone label used when picking the story-wide style
STORY_TONE: Mood = "exciting"
DEFAULT_THEME = "Fantasy"


@dataclass(frozen=True)
class ArtStyleGuide:
    label: str
    description: str
    techniques: str
    characteristics: Tuple[str, ...]
    reference_artist: str

    def summary(self) -> str:
        return (
            f"{self.description}. {self.techniques}. "
            f"{', '.join(self.characteristics[:3])}. Inspired by {self.reference_artist} style."
        )


@dataclass(frozen=True)
class ColorPalette:
    primary: str
    secondary: str
    lighting: str
    mood: str

    def summary(self) -> str:
        return f"{self.primary}, {self.secondary}. {self.lighting}. {self.mood}."


ART_STYLES: Dict[str, ArtStyleGuide] = {
    "classic-picture-book": ArtStyleGuide(
        label="classic-picture-book",
        description="Warm, timeless children's book illustration style",
        techniques="Watercolor and ink, hand-drawn quality, slightly imperfect lines add charm",
        characteristics=("Simple, bold shapes", "Clear outlines with varied line weight", "Soft color blending"),
        reference_artist="Eric Carle",
    ),
    "watercolor": ArtStyleGuide(
        label="watercolor",
        description="Soft, dreamy watercolor illustration",
        techniques="Wet-on-wet watercolor, color bleeding, transparent layers",
        characteristics=("Soft edges and gentle transitions", "Light, airy feeling", "Visible brush strokes"),
        reference_artist="Beatrix Potter",
    ),
    "modern-flat": ArtStyleGuide(
        label="modern-flat",
        description="Contemporary flat design with bold colors",
        techniques="Digital illustration, geometric shapes, flat colors",
        characteristics=("Minimal shading", "Bold, vibrant colors", "Geometric simplified forms"),
        reference_artist="Herve Tullet",
    ),
    "whimsical": ArtStyleGuide(
        label="whimsical",
        description="Playful, imaginative illustration with personality",
        techniques="Mixed media feel, expressive lines, creative details",
        characteristics=("Exaggerated features", "Playful proportions", "Creative textures"),
        reference_artist="Quentin Blake",
    ),
}

THEME_COLOR_PALETTES: Dict[str, ColorPalette] = {
    "Space": ColorPalette(
        "Deep indigo and cosmic purple", "Bright star white and silver",
        "Soft glow from stars and planets, rim lighting on character",
        "Sense of wonder and infinite possibility",
    ),
    "Ocean": ColorPalette(
        "Turquoise and sea blue", "Sandy yellows and coral pinks",
        "Filtered underwater sunbeams, caustic light patterns",
        "Peaceful exploration with pockets of excitement",
    ),
    "Fantasy": ColorPalette(
        "Royal purple and soft pink", "Sparkle silver and gold accents",
        "Magical sparkles, soft ethereal glow, warm ambient light",
        "Magical and full of wonder",
    ),
    "Nature": ColorPalette(
        "Forest green and earth brown", "Sky blue and cloud white",
        "Warm natural sunlight filtering through leaves, golden hour",
        "Peaceful, grounded, alive",
    ),
    "Dinosaurs": ColorPalette(
        "Prehistoric greens and earth tones", "Volcanic oranges and rocky grays",
        "Strong prehistoric sun, dramatic shadows",
        "Adventurous and slightly wild",
    ),
    "Superhero": ColorPalette(
        "Bold primary colors - red, blue, yellow", "City grays and steel",
        "Dynamic lighting, strong highlights, heroic backlighting",
        "Powerful, energetic, triumphant",
    ),
    "Princess": ColorPalette(
        "Soft pinks and royal purples", "Pearl white and cream",
        "Soft, flattering light with sparkly highlights",
        "Elegant, magical, regal",
    ),
    "Robots": ColorPalette(
        "Metallic silvers and blues", "Circuit board greens and tech oranges",
        "Cool LED lighting, screen glows, technical precision",
        "Innovative, precise, friendly technology",
    ),
    "Adventure": ColorPalette(
        "Earth tones - browns, greens, sand", "Sky blue and cloud white",
        "Dynamic outdoor lighting, sun breaking through clouds",
        "Exciting, brave, exploratory",
    ),
    "Magic": ColorPalette(
        "Deep mystical purple and violet", "Starlight silver and moon white",
        "Magical glows, mysterious shadows, enchanted ambiance",
        "Mysterious, wonderful, transformative",
    ),
    "Friendship": ColorPalette(
        "Warm yellows and friendly oranges", "Gentle pinks and happy greens",
        "Warm, inviting light that brings people together",
        "Warm, joyful, connected",
    ),
    "Learning": ColorPalette(
        "Smart blues and knowledge greens", "Paper whites and book browns",
        "Clear, bright lighting that enhances focus",
        "Curious, inspired, accomplished",
    ),
    "Pirates": ColorPalette(
        "Ocean blues and ship wood browns", "Sail white and rope tan",
        "Bright nautical sun, sparkling water reflections",
        "Adventurous, playful, treasure-hunting excitement",
    ),
}

# First matching category wins
_MOOD_CUES: List[Tuple[Mood, re.Pattern]] = [
    ("calm", re.compile(r"sleep|rest|calm|peaceful|gentle|quiet|soft")),
    ("magical", re.compile(r"magic|spell|fairy|enchant|glow|sparkle|transform")),
    ("exciting", re.compile(r"climb|jump|run|fly|race|chase|adventure|explore")),
    ("adventurous", re.compile(r"discover|journey|quest|brave|mountain|ocean|forest")),
    ("cozy", re.compile(r"home|hug|friend|warm|comfort|safe|together")),
]


def determine_mood(excerpt: str) -> Mood:
    lower = (excerpt or "").lower()
    for mood, cue in _MOOD_CUES:
        if cue.search(lower):
            return mood
    return "exciting"


def select_art_style(theme: str, tone: str = STORY_TONE) -> ArtStyle:
    if tone in ("calm", "cozy"):
        return "watercolor"
    if theme in ("Fantasy", "Magic") or tone == "magical":
        return "whimsical"
    if theme in ("Robots", "Superhero"):
        return "modern-flat"
    return "classic-picture-book"


def palette_for(theme: str) -> ColorPalette:
    return THEME_COLOR_PALETTES.get(theme) or THEME_COLOR_PALETTES[DEFAULT_THEME]
