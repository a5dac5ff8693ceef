import pytest

from linksender.orchestration.follow_up import FOLLOW_UP_RULES, classify_follow_up, has_been_seen


@pytest.mark.parametrize(
    "note",
    [
        None,
        "",
        "   ",
        "VM",
        "lvm 3/2",
        "Confirmed",
        "conf - cancel?",
        "recently seen",
        "Seen yesterday by PA",
        "was seen last week",
        "already seen",
        "needs labs",
        "unseen",
        "sw",
    ],
)
def test_notes_that_do_not_mark_patient_as_seen(note):
    assert has_been_seen(note) is False


@pytest.mark.parametrize(
    "note",
    [
        "cancelled",
        "Pt canceled",
        "resched to Fri",
        "sent doxy",
        "no f/u",
        "NOFU",
        "no fu needed",
        "3/15/2025",
        "f/u 4-2",
        "RS",
        "rs tomorrow",
        "3w",
        "3 wks",
        "2 weeks",
        "3 weeks with Dr. Lee",
        "2 wk with PA",
        "w",
        "2m",
        "6 mo",
        "1 month",
        "3 months with labs",
        "seen",
        "labs, seen",
        "Seen by MD",
    ],
)
def test_notes_that_mark_patient_as_seen(note):
    assert has_been_seen(note) is True


def test_voicemail_rule_outranks_later_rules():
    rule = classify_follow_up("lvm, rs 3/4")

    assert rule is not None
    assert rule.name == "voicemail_or_confirmed"
    assert rule.seen is False


def test_seen_exclusion_only_applies_after_earlier_rules():
    assert classify_follow_up("recently seen, 2 weeks with Dr").name == "follow_up_weeks"
    assert classify_follow_up("been seen").name == "seen_previously"


def test_week_patterns_are_anchored():
    assert classify_follow_up("3 weeks ago") is None
    assert has_been_seen("every 3 wks or so") is False


def test_rules_are_ordered_and_named():
    names = [rule.name for rule in FOLLOW_UP_RULES]

    assert names[0] == "voicemail_or_confirmed"
    assert names[-1] == "seen"
    assert len(names) == len(set(names))


def test_blank_note_has_no_rule():
    assert classify_follow_up("  ") is None
