from __future__ import annotations

import pytest

from ppe_logs.services.classifier import (
    CATEGORY_LABELS,
    CATEGORY_TAGS,
    FALLBACK_TAG,
    category_label,
    classify,
)


@pytest.mark.parametrize(
    ("description", "expected"),
    [
        ("FIRE COAT GOLD PBI MATRIX", "fire_tunic"),
        ("Titan structural coat", "fire_tunic"),
        ("RTC COAT HI VIS YELLOW", "rtc_tunic"),
        ("FIRE TROUSER GOLD PBI", "trousers"),
        ("FIRE FIGHTER GLOVE GAUNTLET", "fire_gloves"),
        ("RESCUE GLOVE", "rtc_gloves"),
        ("RSQ EXTRICATION", "rtc_gloves"),
        ("LEATHER BOOT", "boots"),
        ("FLASH HOOD", "hood"),
        ("HEROS TITAN", "helmet"),
        ("HALF MASK P3", "half_mask"),
        ("BA FACE MASK", "ba_mask"),
    ],
)
def test_classify_maps_descriptions_to_tags(description: str, expected: str) -> None:
    assert classify(description) == expected


def test_gold_pbi_coat_wins_over_lower_priority_keywords() -> None:
    description = "COAT GOLD PBI WITH TROUSER LOOP, BOOT STRAP AND HOOD"

    assert classify(description) == "fire_tunic"


def test_coat_without_fabric_keyword_falls_through_to_later_rules() -> None:
    assert classify("COAT HANGER") == FALLBACK_TAG
    assert classify("COAT WITH HOOD") == "hood"


def test_half_mask_outranks_ba_mask() -> None:
    assert classify("BA HALF MASK") == "half_mask"


@pytest.mark.parametrize("description", ["", None, "   ", "SOMETHING UNRELATED", "ÄÖÜ ??"])
def test_unmatched_descriptions_fall_back_to_other(description) -> None:
    assert classify(description) == FALLBACK_TAG


def test_every_tag_has_a_label() -> None:
    assert set(CATEGORY_TAGS) == set(CATEGORY_LABELS)
    assert category_label("fire_tunic") == "Fire Tunic"
    assert category_label(None) == "Other"
    assert category_label("unknown_tag") == "unknown_tag"
