import pytest

from applytrack.errors import StorageError
from applytrack.models import Education, ParsedProfileFragment, PersonalInfo
from applytrack.profile_store import ProfileStore, apply_parsed, completeness, empty_profile


def test_get_creates_empty_profile(tmp_path):
    store = ProfileStore(tmp_path)
    profile = store.get("alice@example.com")

    assert profile["personal"]["firstName"] == ""
    assert profile["completeness"] == 0
    assert (tmp_path / "alice_example.com.yaml").exists()


def test_completeness_scoring():
    profile = empty_profile()
    profile["personal"].update(firstName="Jane", lastName="Doe", phone="1", summary="s")
    profile["skills"] = ["Python"]
    assert completeness(profile) == 50

    profile["education"] = [{}]
    profile["experience"] = [{}]
    profile["resumeText"] = "text"
    assert completeness(profile) == 100


def test_apply_parsed_merges_fragment():
    profile = empty_profile()
    profile["personal"]["phone"] = "555-0100"
    profile["skills"] = ["SQL", "React"]

    fragment = ParsedProfileFragment(
        personal=PersonalInfo(first_name="Jane", last_name="Doe"),
        education=[Education(institution="MIT", degree="BS")],
        skills=["React", "Python"],
        raw_text="Jane Doe ...",
        mock=True,
    )
    merged = apply_parsed(profile, fragment)

    assert merged["personal"]["firstName"] == "Jane"
    assert merged["personal"]["phone"] == "555-0100"
    assert merged["education"][0]["institution"] == "MIT"
    assert merged["experience"] == []
    assert merged["skills"] == ["SQL", "React", "Python"]
    assert merged["resumeText"] == "Jane Doe ..."
    assert profile["skills"] == ["SQL", "React"]


def test_save_round_trip_recomputes_completeness(tmp_path):
    store = ProfileStore(tmp_path)
    profile = store.get("bob")
    profile["personal"]["firstName"] = "Bob"
    profile["completeness"] = 99

    saved = store.save("bob", profile)
    loaded = store.get("bob")

    assert saved["completeness"] == 10
    assert loaded["personal"]["firstName"] == "Bob"
    assert loaded["completeness"] == 10


def test_unreadable_profile_raises_storage_error(tmp_path):
    store = ProfileStore(tmp_path)
    (tmp_path / "alice.yaml").write_text("personal: [unclosed\n")
    (tmp_path / "bob.yaml").write_text("42\n")

    with pytest.raises(StorageError):
        store.get("alice")
    with pytest.raises(StorageError):
        store.get("bob")
