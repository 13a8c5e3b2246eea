import pytest

from jamtools.semver import (
    Constraint,
    SemverError,
    Version,
    new_constraint,
    parse_version,
    strict_parse_version,
)


def test_loose_parse_accepts_v_prefix():
    assert parse_version("v1.0.0") == parse_version("1.0.0")
    assert str(parse_version("v1.0.0")) == "1.0.0"


def test_loose_parse_keeps_original_text():
    assert parse_version("v1.6.7").original == "v1.6.7"


def test_loose_parse_fills_missing_parts():
    assert parse_version("1.2") == parse_version("1.2.0")
    assert parse_version("3") == parse_version("3.0.0")


def test_loose_parse_components():
    version = parse_version("4.5.6-beta.1+build")
    assert (version.major, version.minor, version.patch) == (4, 5, 6)
    assert version.prerelease == "beta.1"
    assert version.metadata == "build"


def test_malformed_version_raises():
    with pytest.raises(SemverError, match="invalid semantic version"):
        parse_version("v1.xx")


def test_strict_parse_rejects_prefix_and_short_forms():
    with pytest.raises(SemverError):
        strict_parse_version("v1.2.3")
    with pytest.raises(SemverError):
        strict_parse_version("1.2")
    with pytest.raises(SemverError):
        strict_parse_version("")


def test_strict_parse_matches_loose_for_full_versions():
    assert strict_parse_version("2.3.4") == parse_version("2.3.4")


def test_strict_parse_rejects_leading_zero():
    with pytest.raises(SemverError):
        strict_parse_version("01.2.3")


def test_ordering_is_numeric():
    versions = [parse_version(t) for t in ["1.10.0", "1.2.0", "1.1.2", "2.3.2"]]
    assert [str(v) for v in sorted(versions)] == ["1.1.2", "1.2.0", "1.10.0", "2.3.2"]


def test_prerelease_sorts_before_release():
    assert parse_version("1.0.0-alpha") < parse_version("1.0.0")
    assert parse_version("1.0.0-alpha") < parse_version("1.0.0-alpha.1")
    assert parse_version("1.0.0-alpha.2") < parse_version("1.0.0-beta")


def test_metadata_is_ignored_for_equality():
    assert parse_version("1.0.0+one") == parse_version("1.0.0+two")
    assert hash(parse_version("1.0.0+one")) == hash(parse_version("1.0.0"))


def test_version_object_compare():
    assert Version(1, 2, 3).compare(Version(1, 2, 4)) < 0
    assert Version(1, 2, 3).compare(Version(1, 2, 3)) == 0


def test_improper_constraint():
    with pytest.raises(SemverError, match="improper constraint: abc"):
        new_constraint("abc")


def test_wildcard_constraint():
    constraint = new_constraint("1.*")
    assert isinstance(constraint, Constraint)
    assert constraint.check(parse_version("v1.0.0"))
    assert constraint.check(parse_version("1.6.7"))
    assert not constraint.check(parse_version("2.3.2"))


def test_range_constraint():
    constraint = new_constraint(">= 1.2, < 2.0")
    assert constraint.check(parse_version("1.2.0"))
    assert constraint.check(parse_version("1.9.9"))
    assert not constraint.check(parse_version("1.1.9"))
    assert not constraint.check(parse_version("2.0.0"))


def test_space_separated_terms_are_anded():
    constraint = new_constraint(">=1.2 <2")
    assert constraint.check("1.5.0")
    assert not constraint.check("2.1.0")


def test_tilde_and_caret():
    assert new_constraint("~1.2.3").check("1.2.9")
    assert not new_constraint("~1.2.3").check("1.3.0")
    assert new_constraint("^1.2.3").check("1.9.0")
    assert not new_constraint("^1.2.3").check("2.0.0")
    assert not new_constraint("^1.2.3").check("1.2.2")


def test_or_constraint():
    constraint = new_constraint("1.0.0 || 2.x")
    assert constraint.check("1.0.0")
    assert constraint.check("2.5.0")
    assert not constraint.check("1.5.0")


def test_hyphen_range():
    constraint = new_constraint("1.2 - 1.4.5")
    assert constraint.check("1.2.0")
    assert constraint.check("1.4.5")
    assert not constraint.check("1.4.6")


def test_not_equal():
    constraint = new_constraint("!= 1.2.3")
    assert not constraint.check("1.2.3")
    assert constraint.check("1.2.4")


def test_prerelease_excluded_unless_requested():
    assert not new_constraint(">= 1.0.0").check("1.5.0-beta")
    assert new_constraint(">= 1.5.0-alpha").check("1.5.0-beta")