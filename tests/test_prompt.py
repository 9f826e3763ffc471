# tests/test_prompt.py
import pytest

from app.features.illustrations.characters import build_character_descriptor
from app.features.illustrations.prompt import MAX_PROMPT_CHARS, compose_prompt
from app.features.illustrations.schemas import SceneDescriptor, StoryText, SubjectAppearance
from app.features.illustrations.service import build_prompts
from app.features.illustrations.styles import ART_STYLES, determine_mood, palette_for, select_art_style
from tests.fakes import OCEAN_STORY


def _scene(moment="Emma found a tiny crab under a rock", index=1) -> SceneDescriptor:
    return SceneDescriptor(index=index, candidate_index=index, excerpt=moment, key_moment=moment, mood="cozy")


def _descriptor(appearance=None):
    story = StoryText(content="", theme="Ocean", child_name="Emma", appearance=appearance)
    return build_character_descriptor(story)

# --------------------
# style & mood
# --------------------

@pytest.mark.parametrize("text,mood", [
    ("They fell asleep under the stars", "calm"),
    ("A magic spell lit the room", "magical"),
    ("She climbed the tallest tree", "exciting"),
    ("The long journey began at dawn", "adventurous"),
    ("A warm hug at home", "cozy"),
    ("Nothing special here", "exciting"),
])
def test_determine_mood(text, mood):
    assert determine_mood(text) == mood


def test_select_art_style():
    assert select_art_style("Ocean") == "classic-picture-book"
    assert select_art_style("Fantasy") == "whimsical"
    assert select_art_style("Magic") == "whimsical"
    assert select_art_style("Robots") == "modern-flat"
    assert select_art_style("Ocean", "calm") == "watercolor"


def test_unknown_theme_uses_fantasy_palette():
    assert palette_for("Cooking") == palette_for("Fantasy")

# --------------------
# composer
# --------------------

def test_prompt_with_character_embeds_all_parts():
    p = compose_prompt(
        _scene(), art_style="watercolor", mood="cozy",
        character=_descriptor(SubjectAppearance(hairColor="brown")),
        total_scenes=5, theme="Ocean",
    )
    assert p.includes_character is True
    assert p.scene_index == 1 and p.total_scenes == 5
    assert "Emma found a tiny crab under a rock" in p.text
    assert "Emma, brown hair" in p.text
    assert "page 2 of 5" in p.text
    assert "(watercolor)" in p.text
    assert ART_STYLES["watercolor"].description in p.text
    assert "Mood: Cozy" in p.text
    assert palette_for("Ocean").primary in p.text


def test_generic_subject_gets_environment_only_prompt():
    p = compose_prompt(
        _scene(), art_style="watercolor", mood="cozy",
        character=_descriptor(), total_scenes=3, theme="Ocean", subject_name="Emma",
    )
    assert p.includes_character is False
    assert "Emma" not in p.text
    assert "hair" not in p.text
    assert "skin" not in p.text
    assert "NO characters or people" in p.text
    assert "the scene found a tiny crab" in p.text


def test_composer_is_pure():
    kwargs = dict(art_style="modern-flat", mood="exciting", character=_descriptor(),
                  total_scenes=4, theme="Robots", subject_name="Emma")
    assert compose_prompt(_scene(), **kwargs) == compose_prompt(_scene(), **kwargs)


def test_long_moment_is_trimmed_to_fit():
    moment = "Emma ran " + "across the endless golden sand " * 80
    p = compose_prompt(
        _scene(moment), art_style="classic-picture-book", mood="exciting",
        character=_descriptor(SubjectAppearance(hairColor="brown")),
        total_scenes=5, theme="Ocean",
    )
    assert len(p.text) <= MAX_PROMPT_CHARS
    assert "Emma, brown hair" in p.text
    assert "Emma ran across the endless" in p.text

# --------------------
# story-level
# --------------------

def test_ocean_story_prompts_share_one_style_and_describe_hair():
    story = StoryText(content=OCEAN_STORY, theme="Ocean", child_name="Emma",
                      appearance=SubjectAppearance(hairColor="brown"))
    prompts = build_prompts(story)
    assert len(prompts) == 5
    assert {p.art_style for p in prompts} == {"classic-picture-book"}
    assert all("brown hair" in p.text for p in prompts)
    assert [p.scene_index for p in prompts] == [0, 1, 2, 3, 4]
    assert len({p.mood for p in prompts}) > 1
