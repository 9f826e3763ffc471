# app/features/illustrations/scenes.py
from __future__ import annotations

import re
from typing import List

from app.features.illustrations.schemas import SceneDescriptor
from app.features.illustrations.styles import determine_mood
from app.logger import get_logger

log = get_logger(__name__)

MIN_CANDIDATE_CHARS = 50
MIN_SCENES = 3
MAX_SCENES = 5

_ACTION_VERBS = (
    "discovered", "found", "saw", "met", "touched", "held", "climbed", "jumped",
    "ran", "flew", "opened", "closed", "picked", "grabbed", "hugged", "smiled",
    "laughed", "cried", "looked", "gazed", "pointed", "waved", "danced", "sang",
    "played", "built", "created", "drew", "painted",
)
_PROGRESSIVE_RE = re.compile(r"\b(?:was |were |is |are |started |began )([\w\s]+ing)", re.IGNORECASE)
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]")
_SPECIAL_CHARS_RE = re.compile(r"[^\w\s.,!?-]")
_WS_RE = re.compile(r"\s+")

# -------------------------------------------------------------------
# Segmentation
# -------------------------------------------------------------------

def _segments(content: str, sep: str) -> List[str]:
    return [s.strip() for s in content.split(sep) if len(s.strip()) > MIN_CANDIDATE_CHARS]

def split_candidates(content: str) -> List[str]:
    """
    Narrative-beat candidates in text order.

    Paragraphs (blank-line separated) longer than 50 chars. If that gives
    fewer than 3, single line breaks are tried as well and the richer
    segmentation wins. Short stories stay short; nothing is padded.
    """
    candidates = _segments(content or "", "\n\n")
    if len(candidates) < MIN_SCENES:
        by_line = _segments(content or "", "\n")
        if len(by_line) > len(candidates):
            candidates = by_line
    return candidates

def select_indices(n: int) -> List[int]:
    """
    Pick min(5, max(3, n)) candidate positions out of n (all of them when
    n < 3). First and last are always in; interior picks are spread evenly
    and stay in order.
    """
    if n <= 0:
        return []
    if n <= MAX_SCENES:
        return list(range(n))

    slots = MAX_SCENES - 2
    interior = list(range(1, n - 1))
    m = len(interior)
    picks = [interior[int((i + 0.5) * m / slots)] for i in range(slots)]
    return [0] + picks + [n - 1]

# -------------------------------------------------------------------
# Key visual moment
# -------------------------------------------------------------------

def clean_moment(text: str) -> str:
    return _WS_RE.sub(" ", _SPECIAL_CHARS_RE.sub("", text or "")).strip()

def extract_key_moment(text: str, subject_name: str) -> str:
    """
    The one sentence worth drawing: the sentence holding a clear action
    (a progressive verb, or the subject doing something), else the first
    sentence with some substance.
    """
    patterns = [_PROGRESSIVE_RE]
    if subject_name:
        patterns.append(re.compile(
            rf"{re.escape(subject_name.lower())}[^.!?]*?\b({'|'.join(_ACTION_VERBS)})\b",
            re.IGNORECASE,
        ))

    sentences = _SENTENCE_SPLIT_RE.split(text)
    for pattern in patterns:
        match = pattern.search(text)
        if not match:
            continue
        needle = match.group(0).lower()
        for sentence in sentences:
            if needle in sentence.lower():
                return clean_moment(sentence)

    meaningful = [s for s in sentences if len(s.strip()) > 20]
    if meaningful:
        return clean_moment(meaningful[0])
    return clean_moment(text[:200])

# -------------------------------------------------------------------
# Public API
# -------------------------------------------------------------------

def extract_scenes(content: str, subject_name: str) -> List[SceneDescriptor]:
    """
    Segment story text and select the scenes to illustrate, in text order.
    """
    candidates = split_candidates(content)
    chosen = select_indices(len(candidates))
    if len(candidates) < MIN_SCENES:
        log.warning(f"only {len(candidates)} scene candidate(s) found; illustrating what is there")

    scenes = []
    for position, cand_idx in enumerate(chosen):
        excerpt = candidates[cand_idx]
        scenes.append(SceneDescriptor(
            index=position,
            candidate_index=cand_idx,
            excerpt=excerpt,
            key_moment=extract_key_moment(excerpt, subject_name),
            mood=determine_mood(excerpt),
        ))
    log.debug(f"selected candidates {chosen} of {len(candidates)}")
    return scenes
