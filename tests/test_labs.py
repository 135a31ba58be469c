# tests/test_labs.py
import pytest

from hormone_health.hormones import Hormone, empty_scores
from hormone_health.lab_adjustment import adjust_scores_with_labs
from hormone_health.lab_analysis import (
    REFERENCE_RANGES,
    analyze_lab_values,
    parse_lab_values,
)


def scores(**kw):
    s = empty_scores()
    for name, value in kw.items():
        s[Hormone(name)] = value
    return s


# ------------------------------------------------------------
# Parsing + findings
# ------------------------------------------------------------
def test_parse_skips_blank_and_junk():
    labs = {"free_t": "3.2", "dhea": "", "lh": "abc", "tsh": None, "insulin": "30", "hba1c": "nan"}
    assert parse_lab_values(labs) == {"free_testosterone": 3.2, "fasting_insulin": 30.0}


def test_parse_accepts_numbers_and_lab_keys():
    assert parse_lab_values({"fasting_insulin": 12, "t3": 2.0}) == {"t3": 2.0, "fasting_insulin": 12.0}


def test_no_labs_no_findings():
    assert analyze_lab_values({}) == []
    assert analyze_lab_values(None) == []


def test_in_range_labs_no_findings():
    assert analyze_lab_values({"free_t": "1.0", "tsh": "2.0", "hba1c": "5.7"}) == []


def test_all_findings_in_order():
    labs = {"free_t": "3", "dhea": "400", "lh": "30", "fsh": "5", "tsh": "6",
            "insulin": "30", "hba1c": "6.1"}
    assert analyze_lab_values(labs) == [
        "Elevated free testosterone suggests androgen excess",
        "High DHEA can indicate adrenal stress or PCOS",
        "LH/FSH ratio >2 suggests PCOS",
        "Elevated TSH suggests hypothyroidism",
        "High insulin suggests insulin resistance",
        "Elevated HbA1c suggests blood sugar dysregulation",
    ]


def test_both_elevated_wins_over_ratio():
    # ratio 2.5 would also match, but "both > 10" is checked first
    assert analyze_lab_values({"lh": "30", "fsh": "12"}) == [
        "Elevated LH and FSH suggest diminished ovarian reserve"
    ]


def test_lh_without_fsh_is_ignored():
    assert analyze_lab_values({"lh": "30"}) == []


def test_zero_fsh_does_not_raise():
    assert analyze_lab_values({"lh": "5", "fsh": "0"}) == []


# ------------------------------------------------------------
# Score adjustment
# ------------------------------------------------------------
def test_no_labs_leaves_scores_alone():
    before = scores(androgens=5, thyroid=2)
    adjusted, conflicts = adjust_scores_with_labs(before, {})
    assert adjusted == before
    assert conflicts == []


def test_input_is_not_mutated():
    before = scores(androgens=5)
    adjust_scores_with_labs(before, {"free_testosterone": 3.2})
    assert before[Hormone.ANDROGENS] == 5


def test_high_testosterone_confirms_symptoms():
    adjusted, conflicts = adjust_scores_with_labs(scores(androgens=5), {"free_testosterone": 3.2})
    assert adjusted[Hormone.ANDROGENS] == 7
    assert len(conflicts) == 1
    assert "confirms" in conflicts[0]
    assert "3.2 ng/dL" in conflicts[0]


def test_high_testosterone_without_symptoms_is_subclinical():
    adjusted, conflicts = adjust_scores_with_labs(scores(), {"free_testosterone": 3.2})
    assert adjusted[Hormone.ANDROGENS] == 1
    assert "subclinical" in conflicts[0]


@pytest.mark.parametrize("androgens, expected, notes", [(4, 2, 1), (3, 3, 0)])
def test_low_testosterone_conflicts_only_with_strong_symptoms(androgens, expected, notes):
    adjusted, conflicts = adjust_scores_with_labs(scores(androgens=androgens), {"free_testosterone": 0.05})
    assert adjusted[Hormone.ANDROGENS] == expected
    assert len(conflicts) == notes


def test_high_dhea_can_fire_twice():
    adjusted, conflicts = adjust_scores_with_labs(scores(androgens=5, cortisol=2), {"dhea": 400})
    assert adjusted[Hormone.ANDROGENS] == 6
    assert adjusted[Hormone.CORTISOL] == 3
    assert conflicts == [
        "High DHEA (400 μg/dL) suggests adrenal stress - supports cortisol imbalance",
        "High DHEA (400 μg/dL) can contribute to androgen excess",
    ]


def test_low_dhea_supports_cortisol():
    adjusted, conflicts = adjust_scores_with_labs(scores(cortisol=3), {"dhea": 20})
    assert adjusted[Hormone.CORTISOL] == 4
    assert "adrenal fatigue" in conflicts[0]


def test_pcos_pattern():
    before = scores(androgens=3, insulin=2)
    adjusted, conflicts = adjust_scores_with_labs(before, {"lh": 15, "fsh": 6, "fasting_insulin": 30})
    assert adjusted[Hormone.ANDROGENS] == 5
    # +1 from the ratio, +2 from confirmed high insulin
    assert adjusted[Hormone.INSULIN] == 5
    assert conflicts[0].startswith("LH/FSH ratio of 2.5 strongly suggests PCOS")
    assert conflicts[1] == "PCOS pattern (LH/FSH ratio 2.5) typically involves insulin resistance"
    assert "confirms insulin resistance" in conflicts[2]


def test_both_elevated_lh_fsh_boosts_estrogen():
    adjusted, conflicts = adjust_scores_with_labs(scores(estrogen=2), {"lh": 12, "fsh": 11})
    assert adjusted[Hormone.ESTROGEN] == 3
    assert "diminished ovarian reserve" in conflicts[0]


def test_thyroid_conflict():
    adjusted, conflicts = adjust_scores_with_labs(scores(thyroid=6), {"tsh": 0.2, "t3": 5.0})
    assert adjusted[Hormone.THYROID] == 5
    assert conflicts == [
        "Low TSH (0.2 μIU/mL) suggests hyperthyroidism - conflicts with hypothyroid symptoms"
    ]


def test_low_t3_supports_thyroid():
    adjusted, _ = adjust_scores_with_labs(scores(thyroid=2), {"t3": 2.0})
    assert adjusted[Hormone.THYROID] == 3


def test_subclinical_findings_without_symptoms():
    adjusted, conflicts = adjust_scores_with_labs(scores(), {"tsh": 6.0, "fasting_insulin": 28})
    assert adjusted[Hormone.THYROID] == 1
    assert adjusted[Hormone.INSULIN] == 1
    assert all("subclinical" in c for c in conflicts)


def test_low_insulin_conflict():
    adjusted, conflicts = adjust_scores_with_labs(scores(insulin=5), {"fasting_insulin": 2})
    assert adjusted[Hormone.INSULIN] == 4
    assert "conflicts" in conflicts[0]


@pytest.mark.parametrize("hba1c, expected", [(6.0, 3), (5.7, 2)])
def test_hba1c_threshold(hba1c, expected):
    adjusted, _ = adjust_scores_with_labs(scores(insulin=2), {"hba1c": hba1c})
    assert adjusted[Hormone.INSULIN] == expected


def test_scores_clamped_at_zero():
    adjusted, _ = adjust_scores_with_labs({"androgens": -3, "thyroid": 1}, {})
    assert adjusted[Hormone.ANDROGENS] == 0
    assert all(v >= 0 for v in adjusted.values())


def test_string_keys_and_survey_lab_keys():
    adjusted, _ = adjust_scores_with_labs({"androgens": 5}, {"free_t": "3.2"})
    assert adjusted[Hormone.ANDROGENS] == 7
    assert set(adjusted) == set(Hormone)


def test_rules_read_incoming_scores_not_running_totals():
    # free-T lifts androgens 0 → 1, but DHEA and the LH/FSH ratio still see 0
    labs = {"free_testosterone": 3.2, "dhea": 400, "lh": 15, "fsh": 5}
    adjusted, conflicts = adjust_scores_with_labs(scores(), labs)
    assert adjusted[Hormone.ANDROGENS] == 1
    assert len(conflicts) == 1
    assert "subclinical androgen excess" in conflicts[0]


@pytest.mark.parametrize("labs, base, text", [
    ({"free_testosterone": 0.00005}, scores(androgens=4), "Low testosterone (0.00005 ng/dL)"),
    ({"fasting_insulin": 1234567.89}, scores(insulin=1), "High fasting insulin (1234567.89 "),
    ({"dhea": 400.0}, scores(cortisol=1), "High DHEA (400 "),
    ({"tsh": 4.75}, scores(thyroid=1), "Elevated TSH (4.75 "),
])
def test_lab_values_printed_in_full(labs, base, text):
    _, conflicts = adjust_scores_with_labs(base, labs)
    assert conflicts[0].startswith(text)


def test_zero_fsh_skips_ratio():
    adjusted, conflicts = adjust_scores_with_labs(scores(androgens=3), {"lh": 5, "fsh": 0})
    assert adjusted[Hormone.ANDROGENS] == 3
    assert conflicts == []


def test_reference_range_table_is_complete():
    assert set(REFERENCE_RANGES) == {
        "free_testosterone", "dhea", "lh", "fsh", "tsh", "t3", "fasting_insulin", "hba1c",
    }
