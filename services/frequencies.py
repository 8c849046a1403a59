"""Gene-key frequency table: shadow, gift and siddhi for each of the 64 gates."""
from __future__ import annotations
from typing import Dict, NamedTuple


class GeneKey(NamedTuple):
    shadow: str
    gift: str
    siddhi: str
    victimState: str


UNKNOWN = GeneKey("Unknown", "Unknown", "Unknown", "Unknown")

GENE_KEYS: Dict[int, GeneKey] = {
    1: GeneKey("Entropy", "Freshness", "Beauty", "Numbness"),
    2: GeneKey("Dislocation", "Orientation", "Unity", "Lost"),
    3: GeneKey("Chaos", "Innovation", "Innocence", "Overwhelmed"),
    4: GeneKey("Intolerance", "Understanding", "Forgiveness", "Righteousness"),
    5: GeneKey("Impatience", "Patience", "Timelessness", "Rushing"),
    6: GeneKey("Conflict", "Diplomacy", "Peace", "Defensiveness"),
    7: GeneKey("Division", "Guidance", "Virtue", "Dictatorship"),
    8: GeneKey("Mediocrity", "Style", "Exquisiteness", "Hollowness"),
    9: GeneKey("Inertia", "Determination", "Invincibility", "Distraction"),
    10: GeneKey("Self-Obsession", "Naturalness", "Being", "Narcissism"),
    11: GeneKey("Obscurity", "Idealism", "Light", "Delusion"),
    12: GeneKey("Vanity", "Discrimination", "Purity", "Malice"),
    13: GeneKey("Discord", "Discernment", "Empathy", "Pessimism"),
    14: GeneKey("Compromise", "Competence", "Bounteousness", "Enslavement"),
    15: GeneKey("Dullness", "Magnetism", "Florescence", "Emptiness"),
    16: GeneKey("Indifference", "Versatility", "Mastery", "Laziness"),
    17: GeneKey("Opinion", "Farsightedness", "Omniscience", "Dogma"),
    18: GeneKey("Judgment", "Integrity", "Perfection", "Inferiority"),
    19: GeneKey("Co-Dependence", "Sensitivity", "Sacrifice", "Isolation"),
    20: GeneKey("Superficiality", "Self Assurance", "Presence", "Absent"),
    21: GeneKey("Control", "Authority", "Valour", "Subjugation"),
    22: GeneKey("Dishonour", "Graciousness", "Grace", "Victimhood"),
    23: GeneKey("Complexity", "Simplicity", "Quintessence", "Fragmentation"),
    24: GeneKey("Addiction", "Invention", "Silence", "Anxiety"),
    25: GeneKey("Constriction", "Acceptance", "Universal Love", "Ignorance"),
    26: GeneKey("Pride", "Artfulness", "Invisibility", "Manipulation"),
    27: GeneKey("Selfishness", "Altruism", "Selflessness", "Self-Sacrifice"),
    28: GeneKey("Purposelessness", "Totality", "Immortality", "Fear of Death"),
    29: GeneKey("Half-Heartedness", "Commitment", "Devotion", "Over-Commitment"),
    30: GeneKey("Desire", "Lightness", "Rapture", "Seriousness"),
    31: GeneKey("Arrogance", "Leadership", "Humility", "Deference"),
    32: GeneKey("Failure", "Preservation", "Veneration", "Alarmism"),
    33: GeneKey("Forgetting", "Mindfulness", "Revelation", "Vengeance"),
    34: GeneKey("Force", "Strength", "Majesty", "Bullying"),
    35: GeneKey("Hunger", "Adventure", "Boundlessness", "Boredom"),
    36: GeneKey("Turbulence", "Humanity", "Compassion", "Crisis"),
    37: GeneKey("Weakness", "Equality", "Tenderness", "Sentimentality"),
    38: GeneKey("Struggle", "Perseverance", "Honour", "Battle"),
    39: GeneKey("Provocation", "Dynamism", "Liberation", "Violence"),
    40: GeneKey("Exhaustion", "Resolve", "Divine Will", "Burnout"),
    41: GeneKey("Fantasy", "Anticipation", "Emanation", "Dreaming"),
    42: GeneKey("Expectation", "Detachment", "Celebration", "Disappointment"),
    43: GeneKey("Deafness", "Insight", "Epiphany", "Noise"),
    44: GeneKey("Interference", "Teamwork", "Synarchy", "Distrust"),
    45: GeneKey("Dominance", "Synergy", "Communion", "Poverty"),
    46: GeneKey("Seriousness", "Delight", "Ecstasy", "Frivolity"),
    47: GeneKey("Oppression", "Transmutation", "Transfiguration", "Hopelessness"),
    48: GeneKey("Inadequacy", "Resourcefulness", "Wisdom", "Uncertainty"),
    49: GeneKey("Reaction", "Revolution", "Rebirth", "Rejection"),
    50: GeneKey("Corruption", "Equilibrium", "Harmony", "Irresponsibility"),
    51: GeneKey("Agitation", "Initiative", "Awakening", "Shock"),
    52: GeneKey("Stress", "Restraint", "Stillness", "Pressure"),
    53: GeneKey("Immaturity", "Expansion", "Superabundance", "Stagnation"),
    54: GeneKey("Greed", "Aspiration", "Ascension", "Ambition"),
    55: GeneKey("Victimization", "Freedom", "Freedom", "Complaining"),
    56: GeneKey("Distraction", "Enrichment", "Intoxication", "Wandering"),
    57: GeneKey("Unease", "Intuition", "Clarity", "Hesitation"),
    58: GeneKey("Dissatisfaction", "Vitality", "Bliss", "Interference"),
    59: GeneKey("Dishonesty", "Intimacy", "Transparency", "Exclusion"),
    60: GeneKey("Limitation", "Realism", "Justice", "Structure"),
    61: GeneKey("Psychosis", "Inspiration", "Sanctity", "Thinking"),
    62: GeneKey("Intellect", "Precision", "Impeccability", "Obsessive Detail"),
    63: GeneKey("Doubt", "Inquiry", "Truth", "Suspicion"),
    64: GeneKey("Confusion", "Imagination", "Illumination", "Analysis Paralysis"),
}


def get_frequency(gate: int) -> GeneKey:
    return GENE_KEYS.get(gate, UNKNOWN)
