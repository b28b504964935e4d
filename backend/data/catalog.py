"""
Reference Catalog — static decks for the murder-mystery game.

  - 50 evidence cards (key evidence the murderer can choose)
  - 50 method cards (means of murder)
  - 2 fixed tiles (cause of death, location) always on the board
  - 24 regular scene tiles, 6 options each

All helpers are pure apart from their randomness source; pass a seeded
random.Random for deterministic draws.
"""
import random
from typing import Iterable, List, Optional, Tuple

from models.game import ClueTile, EvidenceCard, MethodCard


def _evidence(rows: Iterable[str], category: str, start: int) -> List[EvidenceCard]:
    return [
        EvidenceCard(id=f"evidence-{start + i:03d}", name=name, category=category)
        for i, name in enumerate(rows)
    ]


def _methods(rows: Iterable[str], category: str, start: int) -> List[MethodCard]:
    return [
        MethodCard(id=f"method-{start + i:03d}", name=name, category=category)
        for i, name in enumerate(rows)
    ]


EVIDENCE_CARDS: Tuple[EvidenceCard, ...] = tuple(
    _evidence([
        "Knife", "Pistol", "Rope", "Axe", "Hammer", "Scissors", "Screwdriver",
        "Baseball bat", "Broken bottle", "Candlestick", "Frying pan", "Pillow",
        "Electric cable", "Plastic bag", "Rock",
    ], "Weapon", 1)
    + _evidence([
        "Mobile phone", "Key", "Letter", "Photograph", "Watch", "Ring", "Wallet",
        "Glasses", "Necklace", "Handkerchief", "Gloves", "Credit card", "Passport",
        "USB stick", "Cigarette",
    ], "Object", 16)
    + _evidence([
        "Poison", "Medication", "Alcohol", "Perfume", "White powder", "Bleach",
        "Petrol", "Insecticide", "Syringe", "Antifreeze",
    ], "Substance", 31)
    + _evidence([
        "Clothing fibres", "Hair", "Fingerprints", "Soil", "Broken glass", "Blood",
        "Paint", "Duct tape", "Handwritten note", "Receipt",
    ], "Trace", 41)
)

METHOD_CARDS: Tuple[MethodCard, ...] = tuple(
    _methods([
        "Stabbed", "Shot", "Beaten", "Strangled", "Beheaded", "Crushed",
        "Dismembered", "Slashed", "Throat cut", "Run over", "Impaled", "Stoned",
        "Acid attack", "Mutilated", "Pierced",
    ], "Violent", 1)
    + _methods([
        "Poisoned", "Asphyxiated", "Drowned", "Smothered", "Injected", "Intoxicated",
        "Hypothermia", "Starvation", "Dehydration", "Overdose", "Sedated to death",
        "Oxygen deprivation", "Allergic reaction", "Induced heart attack",
        "Buried alive",
    ], "Silent", 16)
    + _methods([
        "Fall", "Electrocuted", "Traffic accident", "Fire", "Drowning accident",
        "Explosion", "Household accident", "Falling object", "Workplace accident",
        "Gas leak",
    ], "Accidental", 31)
    + _methods([
        "Staged suicide", "Robbery gone wrong", "Crime of passion", "Settling scores",
        "Animal attack", "Disappearance", "Natural death", "Botched kidnapping",
        "Food poisoning", "Medical error",
    ], "Staged", 41)
)

CAUSE_OF_DEATH_TILE = ClueTile(
    id="tile-cause",
    title="Cause of Death",
    options=("Suffocation", "Severe trauma", "Poisoning", "Blood loss", "Illness", "Other"),
)

LOCATION_TILE = ClueTile(
    id="tile-location",
    title="Location of Crime",
    options=("Home", "Office", "Street", "Vehicle", "Public place", "Abandoned place"),
)

SCENE_TILES: Tuple[ClueTile, ...] = tuple(
    ClueTile(id=f"tile-{i + 1:03d}", title=title, options=tuple(options))
    for i, (title, options) in enumerate([
        ("Time of Crime", ["Small hours", "Morning", "Midday", "Afternoon", "Evening", "Unknown"]),
        ("State of the Body", ["Intact", "Disfigured", "Dismembered", "Burnt", "Frozen", "Decomposed"]),
        ("Killer's Personality", ["Cold", "Impulsive", "Meticulous", "Sadistic", "Remorseful", "Professional"]),
        ("Weather", ["Sunny", "Rainy", "Snowy", "Windy", "Hot", "Cloudy"]),
        ("Day of the Week", ["Mon-Wed", "Thursday", "Friday", "Saturday", "Sunday", "Holiday"]),
        ("Relation to Victim", ["Family", "Friend", "Colleague", "Lover", "Stranger", "Enemy"]),
        ("Traces Left", ["Fingerprint", "DNA", "Eyewitness", "Video", "Audio", "None"]),
        ("Motive", ["Money", "Revenge", "Jealousy", "Secret", "Madness", "No clear motive"]),
        ("Duration of Crime", ["Seconds", "Minutes", "Hours", "Days", "Well planned", "Opportunistic"]),
        ("Killer's Clothing", ["Formal", "Casual", "Disguised", "Uniform", "Dark clothes", "Ordinary"]),
        ("Killer's Profile", ["Male", "Female", "Young", "Adult", "Elderly", "Unclear"]),
        ("Social Standing", ["Rich", "Middle class", "Poor", "Famous", "Anonymous", "Known criminal"]),
        ("Killer's Occupation", ["Professional", "Labourer", "Student", "Unemployed", "Retired", "Illegal"]),
        ("Transport", ["On foot", "Car", "Motorbike", "Public transport", "Bicycle", "Already there"]),
        ("Size of Weapon", ["Tiny", "Small", "Medium", "Large", "Huge", "No physical weapon"]),
        ("Victim's Expression", ["Peaceful", "Surprised", "Terrified", "Angry", "Sad", "Blank"]),
        ("Number of Victims", ["One", "Two", "Three or more", "Whole family", "Group", "Only the target"]),
        ("Evidence at the Scene", ["Abundant", "Scarce", "Cleaned up", "Planted", "Chaotic", "None"]),
        ("Position of the Body", ["Face up", "Face down", "Sitting", "Standing", "Hidden", "Posed"]),
        ("Indoors or Outdoors", ["Indoors", "Outdoors", "Both", "Underground", "High up", "Water"]),
        ("Complexity of Crime", ["Simple", "Elaborate", "Chaotic", "Ritualistic", "Technical", "Brutal"]),
        ("Witnesses", ["None", "One", "Several", "Crowd", "Cameras", "Animals"]),
        ("Lighting", ["Broad daylight", "Dark night", "Artificial", "Dim", "Flickering", "Natural"]),
        ("Sound", ["Silent", "Loud", "Music", "Screams", "Gunshot", "Muffled"]),
    ])
)


def _rng(rng: Optional[random.Random]) -> random.Random:
    return rng if rng is not None else random.Random()


def shuffled_evidence_deck(rng: Optional[random.Random] = None) -> List[EvidenceCard]:
    deck = list(EVIDENCE_CARDS)
    _rng(rng).shuffle(deck)
    return deck


def shuffled_method_deck(rng: Optional[random.Random] = None) -> List[MethodCard]:
    deck = list(METHOD_CARDS)
    _rng(rng).shuffle(deck)
    return deck


def random_scene_tiles(
    count: int,
    exclude_ids: Iterable[str] = (),
    rng: Optional[random.Random] = None,
) -> List[ClueTile]:
    """Draw `count` distinct regular scene tiles, skipping `exclude_ids`."""
    excluded = set(exclude_ids)
    available = [t for t in SCENE_TILES if t.id not in excluded]
    return _rng(rng).sample(available, min(count, len(available)))


def fixed_cause_of_death_tile() -> ClueTile:
    return CAUSE_OF_DEATH_TILE


def fixed_location_tile() -> ClueTile:
    return LOCATION_TILE


def all_tiles() -> List[ClueTile]:
    """Every regular scene tile, unselected and unlocked (the initial pool)."""
    return list(SCENE_TILES)
