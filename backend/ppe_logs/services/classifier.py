"""Equipment category classification from free-text garment descriptions."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ClassificationRule:
    """All keyword groups must match; any alternative inside a group may match."""

    tag: str
    keyword_groups: tuple[tuple[str, ...], ...]

    def matches(self, text: str) -> bool:
        return all(
            any(keyword in text for keyword in group)
            for group in self.keyword_groups
        )


FALLBACK_TAG = "other"

# Evaluated top to bottom, first match wins. Coat rules sit above everything
# else because tunic descriptions routinely mention other garment words.
CLASSIFICATION_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule("fire_tunic", (("COAT",), ("GOLD PBI", "TITAN"))),
    ClassificationRule("rtc_tunic", (("COAT",), ("HI VIS",))),
    ClassificationRule("trousers", (("TROUSER",),)),
    ClassificationRule("fire_gloves", (("FIRE FIGHTER GLOVE",),)),
    ClassificationRule("rtc_gloves", (("RESCUE GLOVE", "RSQ"),)),
    ClassificationRule("boots", (("BOOT",),)),
    ClassificationRule("hood", (("HOOD",),)),
    ClassificationRule("helmet", (("HEL", "HELMET", "HEROS"),)),
    ClassificationRule("half_mask", (("HALF",), ("MASK",))),
    ClassificationRule("ba_mask", (("BA",), ("MASK",))),
)

CATEGORY_LABELS: dict[str, str] = {
    "fire_tunic": "Fire Tunic",
    "rtc_tunic": "RTC Tunic",
    "fire_gloves": "Fire Gloves",
    "rtc_gloves": "RTC Gloves",
    "trousers": "Trousers",
    "boots": "Boots",
    "helmet": "Helmet",
    "hood": "Fire Hood",
    "half_mask": "Half-Mask Respirator",
    "ba_mask": "BA Mask",
    FALLBACK_TAG: "Other",
}

CATEGORY_TAGS: tuple[str, ...] = tuple(rule.tag for rule in CLASSIFICATION_RULES) + (FALLBACK_TAG,)


def classify(description: str | None) -> str:
    """Map a garment description to a category tag. Never raises."""
    text = (description or "").upper()
    for rule in CLASSIFICATION_RULES:
        if rule.matches(text):
            return rule.tag
    return FALLBACK_TAG


def category_label(tag: str | None) -> str:
    if not tag:
        return CATEGORY_LABELS[FALLBACK_TAG]
    return CATEGORY_LABELS.get(tag, tag)
