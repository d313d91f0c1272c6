"""Tests for folder grouping and collapse state."""

from mdshelf.grouping import GroupingView, compute_groups
from mdshelf.registry import Document


def _docs(*identifiers: str) -> list[Document]:
    return [Document(identifier, identifier.rsplit("/", 1)[-1], "") for identifier in identifiers]


def _shape(groups) -> list[tuple[str, list[tuple[int, str]]]]:
    return [(group.key, [(position, doc.identifier) for position, doc in group.members]) for group in groups]


def test_groups_follow_first_seen_folder_order() -> None:
    """Groups and members keep the order in which they first appear."""
    documents = _docs("/p/b/1.md", "/p/a/2.md", "/p/b/3.md")

    groups = compute_groups(documents)

    assert _shape(groups) == [
        ("/p/b", [(0, "/p/b/1.md"), (2, "/p/b/3.md")]),
        ("/p/a", [(1, "/p/a/2.md")]),
    ]
    assert [group.display_name for group in groups] == ["b", "a"]


def test_recomputing_identical_input_is_stable() -> None:
    documents = _docs("/p/b/1.md", "/p/a/2.md", "/p/c/3.md", "/p/a/4.md")

    assert _shape(compute_groups(documents)) == _shape(compute_groups(documents))


def test_adding_to_existing_folder_only_appends_member() -> None:
    """A new document in a known folder does not reorder any group."""
    documents = _docs("/p/b/1.md", "/p/a/2.md")
    before = _shape(compute_groups(documents))

    after = _shape(compute_groups(documents + _docs("/p/b/5.md")))

    assert [key for key, _ in after] == [key for key, _ in before]
    assert after[0][1] == before[0][1] + [(2, "/p/b/5.md")]
    assert after[1] == before[1]


def test_top_level_file_groups_under_root() -> None:
    groups = compute_groups(_docs("/readme.md"))

    assert groups[0].key == "/"
    assert groups[0].display_name == "/"


def test_single_group_is_flat() -> None:
    view = GroupingView()

    view.refresh(_docs("/p/a/1.md", "/p/a/2.md"))
    assert view.is_flat is True

    view.refresh(_docs("/p/a/1.md", "/p/b/2.md"))
    assert view.is_flat is False


def test_toggle_flips_only_the_given_group() -> None:
    """Each toggle flips one group; two toggles restore the original state."""
    view = GroupingView()
    view.refresh(_docs("/p/a/1.md", "/p/b/2.md"))

    assert view.toggle("/p/a") is True
    assert view.is_collapsed("/p/a") is True
    assert view.is_collapsed("/p/b") is False

    assert view.toggle("/p/a") is False
    assert view.is_collapsed("/p/a") is False


def test_collapse_state_survives_regrouping() -> None:
    view = GroupingView()
    view.refresh(_docs("/p/a/1.md", "/p/b/2.md"))
    view.toggle("/p/b")

    view.refresh(_docs("/p/a/1.md", "/p/b/2.md", "/p/c/3.md"))

    assert view.collapsed_keys == frozenset({"/p/b"})
