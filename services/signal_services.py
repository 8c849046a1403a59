"""Message and journal text scanners.

analyze_signal scores a message for entropy (conflict), integration (repair)
and expansion (warmth) markers; calculate_seda turns grounding, inflation and
distress words into a 0..100 stability risk with a tone directive.
"""
from __future__ import annotations
import re
from typing import Dict, List, Tuple

from utils.scoring import round_half_up

ENTROPY_MARKERS: Dict[str, int] = {
    # direct conflict
    "always": 3, "never": 3, "fault": 4, "blame": 4, "wrong": 3,
    "stupid": 5, "hate": 5, "pathetic": 5, "useless": 5, "disgusting": 5,
    # passive-aggressive
    "fine": 2, "whatever": 3, "forget it": 4, "nothing": 2, "okay then": 3,
    # pressure / demand
    "need to talk": 3, "we need": 2, "right now": 3, "immediately": 3,
    "how could you": 4, "disappointed": 3, "expected more": 3,
    # guilt induction
    "after everything": 4, "sacrificed": 4, "all i do": 3, "ungrateful": 5,
    # withdrawal
    "done": 2, "over this": 3, "leaving": 3, "can't anymore": 4,
    # escalation
    "screaming": 4, "furious": 4, "unbelievable": 3, "last straw": 4,
}

INTEGRATION_MARKERS: Dict[str, int] = {
    "thinking about": 2, "been reflecting": 3, "realize": 3, "understand": 2,
    "sorry": 2, "apologize": 3, "my part": 3, "working on": 2,
    "appreciate": 2, "grateful": 2, "hear you": 3, "both": 2,
    "can we talk": 2, "want to understand": 3, "help me see": 3,
    "my perspective": 2, "your perspective": 3,
}

EXPANSION_MARKERS: Dict[str, int] = {
    "love": 2, "proud": 2, "beautiful": 2, "inspired": 3,
    "together": 2, "grow": 2, "support": 2, "trust": 3,
    "safe": 2, "home": 2, "peace": 3, "grateful": 3,
    "excited": 2, "looking forward": 3, "thank you": 2,
}

GROUNDING_RE = re.compile(r"job|work|kids|rent|food|sleep|gym")
INFLATION_RE = re.compile(r"god|chosen|matrix|download|frequency|saved|prophet|angel")
DISTRESS_RE = re.compile(r"stuck|pain|dying|help|can't|never|impossible|broken")

TONE_BY_STATUS = {"SAFE": "LOGIC_MODE", "CAUTION": "HOLDING_SPACE", "DANGER": "CRISIS_MODE"}


def _scan(lower: str, markers: Dict[str, int]) -> Tuple[int, List[str]]:
    # Substring counts, so "done" also hits "abandoned".
    score = 0
    found: List[str] = []
    for phrase, weight in markers.items():
        hits = lower.count(phrase)
        if hits:
            score += hits * weight
            found.append(phrase)
    return score, found


def density_level(entropy: int) -> str:
    if entropy >= 70:
        return "CRITICAL"
    if entropy >= 45:
        return "HIGH"
    if entropy >= 20:
        return "MODERATE"
    return "LOW"


def _insight(spectrum: str, density: str, integration: int) -> Dict[str, str]:
    if spectrum == "ENTROPY":
        if density == "CRITICAL":
            return {
                "flag": "High entropy detected. Prepare before reading.",
                "body": "This message carries significant structural load. The language patterns suggest active conflict, blame, or pressure. Reading this without preparation may trigger a reactive response.",
                "preparation": "Ground first. Take three breaths. This is their architecture expressing friction, not a verdict on your worth. Respond from your authority, not your conditioning.",
            }
        if density == "HIGH":
            return {
                "flag": "Elevated entropy. The signal is warm.",
                "body": "Conflict markers are present but not overwhelming. The sender may be processing frustration or making demands. There is space for a measured response.",
                "preparation": "Read slowly. Notice where your body tightens; that is conditioning, not truth. Wait before responding. If your authority is Emotional, sleep on it.",
            }
        return {
            "flag": "Mild entropy. Slight tension in the signal.",
            "body": "Some friction markers detected, but the overall load is manageable. This may be passive tension rather than active conflict.",
            "preparation": "Read normally but stay aware. If irritation rises, pause and check whether it is the message or something it triggered from before.",
        }
    if spectrum == "EXPANSION":
        return {
            "flag": "Expansion signal. The message carries warmth.",
            "body": "Connection and appreciation markers dominate. This signal is structurally supportive; it is safe to receive openly.",
            "preparation": "Let it land. Many people deflect positive signals because their architecture is conditioned for friction. Practice receiving.",
        }
    if integration > 30:
        return {
            "flag": "Integration in progress. They are processing.",
            "body": "The sender is actively working through something: repair attempts, reflection, or shared processing. This is a constructive signal.",
            "preparation": "Match their openness. If they are offering repair, receive it without deflecting.",
        }
    return {
        "flag": "Neutral signal. Low emotional charge.",
        "body": "The message has minimal emotional markers. It may be logistical or surface-level communication.",
        "preparation": "No special preparation needed. Respond at your natural pace.",
    }


def analyze_signal(text: str) -> Dict[str, object]:
    """Entropy / integration / expansion densities (0..100) for a message."""
    if not text or not text.strip():
        return {
            "entropy": 0, "integration": 0, "expansion": 0,
            "spectrum": "INTEGRATION",
            "density": "LOW",
            "flag": "No signal to analyze.",
            "body": "Paste or type a message to scan its emotional architecture.",
            "preparation": "",
            "markerCount": 0,
            "topMarkers": [],
        }

    lower = text.lower()
    e_score, e_found = _scan(lower, ENTROPY_MARKERS)
    i_score, i_found = _scan(lower, INTEGRATION_MARKERS)
    x_score, x_found = _scan(lower, EXPANSION_MARKERS)

    # per-ten-words density
    normalizer = max(len(text.split()) / 10.0, 1.0)
    entropy = min(100, round_half_up(e_score / normalizer * 8))
    integration = min(100, round_half_up(i_score / normalizer * 8))
    expansion = min(100, round_half_up(x_score / normalizer * 8))

    spectrum = "INTEGRATION"
    if entropy > integration and entropy > expansion:
        spectrum = "ENTROPY"
    if expansion > integration and expansion > entropy:
        spectrum = "EXPANSION"
    density = density_level(entropy)

    all_found = e_found + i_found + x_found
    top = list(dict.fromkeys(all_found))[:5]
    return {
        "entropy": entropy,
        "integration": integration,
        "expansion": expansion,
        "spectrum": spectrum,
        "density": density,
        **_insight(spectrum, density, integration),
        "markerCount": len(all_found),
        "topMarkers": top,
    }


def quick_entropy_scan(text: str) -> Dict[str, object]:
    entropy = int(analyze_signal(text)["entropy"])  # type: ignore[arg-type]
    level = {"CRITICAL": "critical", "HIGH": "hot", "MODERATE": "warm"}.get(density_level(entropy), "safe")
    return {"score": entropy, "level": level}


def calculate_seda(text: str) -> Dict[str, object]:
    """Stability risk 0..100 (100 = highest risk) with status and tone directive."""
    lower = (text or "").lower()
    grounding = len(GROUNDING_RE.findall(lower))
    inflation = len(INFLATION_RE.findall(lower))
    distress = len(DISTRESS_RE.findall(lower))

    score = max(0, min(100, 50 + inflation * 5 + distress * 3 - grounding * 4))
    status = "DANGER" if score > 80 else "CAUTION" if score > 50 else "SAFE"
    return {
        "score": score,
        "status": status,
        "flags": {"grounding": grounding, "inflation": inflation, "distress": distress},
        "toneDirective": TONE_BY_STATUS[status],
    }
