import pytest
from datetime import date
from pydantic import ValidationError

from models import Course, Identity, Profile, ProfileUpdate, Round


# ================================================================
# Identity
# ================================================================

def test_identity_is_immutable():
    ident = Identity(id="u1", display_name="Ada Lovelace")
    with pytest.raises(ValidationError):
        ident.display_name = "Someone Else"


# ================================================================
# Profile
# ================================================================

def test_profile_default_for_identity():
    ident = Identity(
        id="u1",
        display_name="Ada Lovelace",
        email="ada@example.com",
        photo_url="https://img/ada.png",
        phone_number="+15551234567",
    )
    p = Profile.default_for(ident)

    assert p.id == "u1"
    assert p.display_name == "Ada Lovelace"
    assert p.email == "ada@example.com"
    assert p.photo_url == "https://img/ada.png"
    assert p.phone_number == "+15551234567"
    assert p.total_rounds == 0
    assert p.total_courses == 0
    assert p.handicap is None
    assert p.most_played_course_id is None


def test_profile_handicap_range():
    Profile(id="u1", handicap=-10)
    Profile(id="u1", handicap=54)

    with pytest.raises(ValidationError):
        Profile(id="u1", handicap=54.1)

    with pytest.raises(ValidationError):
        Profile(id="u1", handicap=-11)


def test_profile_counters_non_negative():
    with pytest.raises(ValidationError):
        Profile(id="u1", total_rounds=-1)


def test_profile_assignment_is_validated():
    p = Profile(id="u1")
    p.handicap = 12.4
    assert p.handicap == 12.4

    with pytest.raises(ValidationError):
        p.handicap = 99


def test_profile_merged_applies_only_given_fields():
    p = Profile(id="u1", display_name="Ada", home_course_name="Links", total_rounds=3)
    merged = p.merged({"home_course_name": "Pines"})

    assert merged.home_course_name == "Pines"
    assert merged.display_name == "Ada"
    assert merged.total_rounds == 3
    assert p.home_course_name == "Links"   # original untouched


def test_profile_first_name():
    assert Profile(id="u1", display_name="Ada Lovelace").first_name == "Ada"
    assert Profile(id="u1").first_name is None


def test_profile_update_changes_only_set_fields():
    update = ProfileUpdate(handicap=8.2, home_course_location=None)
    assert update.changes() == {"handicap": 8.2, "home_course_location": None}


def test_profile_update_rejects_unknown_fields():
    with pytest.raises(ValidationError):
        ProfileUpdate(total_rounds=100)


# ================================================================
# Course
# ================================================================

def test_course_requires_name():
    with pytest.raises(ValidationError):
        Course(name="   ")

    c = Course(name="  Pebble Beach ")
    assert c.name == "Pebble Beach"


def test_course_defaults():
    c = Course(name="Pebble Beach")
    assert c.latitude == 0
    assert c.longitude == 0
    assert c.country == ""
    assert c.times_played == 0
    assert not c.has_coordinates


def test_course_rating_range():
    with pytest.raises(ValidationError):
        Course(name="X", rating=5.5)


def test_course_matches_name_or_location():
    c = Course(name="Torrey Pines", location="San Diego, CA")
    assert c.matches("torrey")
    assert c.matches("DIEGO")
    assert not c.matches("pebble")


# ================================================================
# Round
# ================================================================

def test_round_requires_date():
    with pytest.raises(ValidationError):
        Round(course_id="c1", course_name="Links")


def test_round_slope_range():
    Round(course_id="c1", course_name="Links", date=date(2024, 5, 1), slope=55)
    with pytest.raises(ValidationError):
        Round(course_id="c1", course_name="Links", date=date(2024, 5, 1), slope=156)


def test_nine_hole_round_is_accepted():
    r = Round(
        course_id="c1", course_name="Pitch & Putt", date=date(2025, 6, 1),
        score=34, par=30, rating=29.8, slope=98,
    )
    assert r.to_par() == 4
    assert r.score_differential() == round((113 / 98) * (34 - 29.8), 1)


def test_round_to_par_and_differential():
    r = Round(
        course_id="c1", course_name="Links", date=date(2024, 5, 1),
        score=85, par=72, rating=71.5, slope=130,
    )
    assert r.to_par() == 13
    assert r.score_differential() == round((113 / 130) * (85 - 71.5), 1)
    assert r.year == 2024


def test_round_to_par_unknown():
    r = Round(course_id="c1", course_name="Links", date=date(2024, 5, 1), score=85)
    assert r.to_par() is None
    assert r.score_differential() is None
