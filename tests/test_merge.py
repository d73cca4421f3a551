import copy
from wikiauthors import merge_utils
from wikiauthors.dataset import NameIndex

UK_POETS = {"uk": "Українські поети", "en": "Ukrainian poets", "ru": "Поэты Украины"}

# ===== DEEP MERGE =====

def test_existing_value_wins():
    """
    When both sides define a field path with different values, the stored value is kept.
    """
    existing = {"name": {"uk": "Шевченко Тарас"}, "wiki": {"uk": "https://example.org/manual"}}
    incoming = {"name": {"uk": "Шевченко Тарас"}, "wiki": {"uk": "https://uk.wikipedia.org/wiki/Шевченко"}}
    merged = merge_utils.merge_into(existing, incoming, UK_POETS, "uk")
    assert merged["wiki"]["uk"] == "https://example.org/manual"

def test_fields_from_both_sides_are_kept():
    """
    Field paths defined on only one side survive the merge with that side's value.
    """
    existing = {"name": {"uk": "Шевченко Тарас"}, "wiki": {}, "note": "manual", "tags": []}
    incoming = {
        "name": {"uk": "Шевченко Тарас", "en": "Taras Shevchenko"},
        "wiki": {"uk": "https://uk.wikipedia.org/wiki/Шевченко", "en": "https://en.wikipedia.org/wiki/Taras_Shevchenko"},
    }
    merged = merge_utils.merge_into(existing, incoming, UK_POETS, "uk")
    assert merged["name"] == {"uk": "Шевченко Тарас", "en": "Taras Shevchenko"}
    assert merged["wiki"]["en"] == "https://en.wikipedia.org/wiki/Taras_Shevchenko"
    assert merged["note"] == "manual"

def test_existing_empty_values_win():
    """
    A stored empty string or null is still a defined value and is not replaced by the fetched one.
    """
    merged = merge_utils.deep_merge({"wiki": {"uk": "", "en": None}}, {"wiki": {"uk": "u", "en": "e", "ru": "r"}})
    assert merged == {"wiki": {"uk": "", "en": None, "ru": "r"}}

def test_merge_into_keeps_empty_stored_link():
    existing = {"name": {"uk": "Шевченко Тарас", "en": None}, "wiki": {"uk": ""}}
    incoming = {"name": {"uk": "Шевченко Тарас", "en": "Taras Shevchenko"},
                "wiki": {"uk": "https://uk.wikipedia.org/wiki/X"}}
    merged = merge_utils.merge_into(existing, incoming, UK_POETS, "uk")
    assert merged["wiki"]["uk"] == ""
    assert merged["name"]["en"] is None
    assert merged["tags"] == [UK_POETS]

def test_lists_are_not_merged_elementwise():
    """
    A stored list is kept as a whole rather than mixed with the fetched one.
    """
    merged = merge_utils.deep_merge({"tags": [{"uk": "A"}]}, {"tags": [{"uk": "B"}]})
    assert merged == {"tags": [{"uk": "A"}]}

def test_merge_does_not_mutate_inputs():
    existing = {"name": {"uk": "Леся Українка"}, "tags": [{"uk": "Драматурги"}]}
    incoming = {"name": {"uk": "Леся Українка", "en": "Lesya Ukrainka"}, "wiki": {"en": "x"}}
    before_existing = copy.deepcopy(existing)
    before_incoming = copy.deepcopy(incoming)
    merge_utils.merge_into(existing, incoming, UK_POETS, "uk")
    assert existing == before_existing
    assert incoming == before_incoming

# ===== TAGS =====

def test_tag_added_once():
    """
    Merging twice with the same tag leaves a single copy of it.
    """
    existing = {"name": {"uk": "Леся Українка"}, "tags": [{"uk": "Драматурги"}]}
    incoming = {"name": {"uk": "Леся Українка"}}
    once = merge_utils.merge_into(existing, incoming, UK_POETS, "uk")
    twice = merge_utils.merge_into(once, incoming, UK_POETS, "uk")
    assert once["tags"] == [{"uk": "Драматурги"}, UK_POETS]
    assert twice["tags"] == once["tags"]

def test_tag_compared_in_current_language_only():
    """
    A stored tag with the same label in the current language counts as present,
    whatever its other translations say.
    """
    stored = {"uk": "Українські поети", "en": "Something else"}
    assert merge_utils.tag_matches_in_lang(stored, UK_POETS, "uk")
    assert not merge_utils.tag_matches_in_lang(stored, UK_POETS, "en")
    assert not merge_utils.tag_matches_in_lang("Українські поети", UK_POETS, "uk")

    merged = merge_utils.merge_into({"name": {"uk": "X"}, "tags": [stored]}, {"name": {"uk": "X"}}, UK_POETS, "uk")
    assert merged["tags"] == [stored]

def test_missing_tags_field_is_created():
    record = {"name": {"uk": "X"}, "tags": None}
    assert merge_utils.add_tag(record, {"uk": "Поети"}, "uk") is True
    assert record["tags"] == [{"uk": "Поети"}]
    assert merge_utils.add_tag(record, {"uk": "Поети"}, "uk") is False

# ===== RECONCILIATION =====

def test_merge_fills_wiki_and_tags_existing_author():
    """
    A fetched author already in the dataset gets the link filled in and the category tag.
    """
    dataset = [{"name": {"uk": "Шевченко Тарас"}, "wiki": {}, "tags": []}]
    index = NameIndex.build(dataset)
    incoming = {"name": {"uk": "Шевченко Тарас"}, "wiki": {"uk": "https://uk.wikipedia.org/wiki/Шевченко"}}
    tag = {"uk": "Українські поети"}

    stats = merge_utils.reconcile_members(dataset, index, [incoming], tag, "uk")

    assert len(dataset) == 1
    assert dataset[0]["wiki"]["uk"] == "https://uk.wikipedia.org/wiki/Шевченко"
    assert dataset[0]["tags"] == [{"uk": "Українські поети"}]
    assert (stats.merged, stats.added, stats.already_tagged) == (1, 0, 0)

def test_unknown_author_is_appended_with_tag():
    """
    A fetched author that resolves to nothing is appended once, tagged.
    """
    dataset = [{"name": {"uk": "Шевченко Тарас"}, "wiki": {}, "tags": []}]
    index = NameIndex.build(dataset)
    incoming = {"name": {"uk": "Леся Українка"}, "wiki": {"uk": "https://uk.wikipedia.org/wiki/Леся_Українка"}}

    stats = merge_utils.reconcile_members(dataset, index, [incoming], UK_POETS, "uk")

    assert len(dataset) == 2
    assert dataset[1]["name"] == {"uk": "Леся Українка"}
    assert dataset[1]["tags"] == [UK_POETS]
    assert "tags" not in incoming
    assert stats.added == 1
    assert index.lookup("uk", "Леся Українка") == 1

def test_duplicates_within_one_batch_resolve_to_first():
    """
    An author appended earlier in a batch is found again later in the same batch.
    """
    dataset = []
    index = NameIndex()
    first = {"name": {"uk": "Леся Українка"}, "wiki": {"uk": "u1"}}
    second = {"name": {"uk": "Леся Українка", "en": "Lesya Ukrainka"}, "wiki": {"en": "e1"}}

    stats = merge_utils.reconcile_members(dataset, index, [first, second], UK_POETS, "uk")

    assert len(dataset) == 1
    assert dataset[0]["name"] == {"uk": "Леся Українка", "en": "Lesya Ukrainka"}
    assert dataset[0]["wiki"] == {"uk": "u1", "en": "e1"}
    assert dataset[0]["tags"] == [UK_POETS]
    assert (stats.merged, stats.added, stats.already_tagged) == (1, 1, 1)
    # names learned by the merge are indexed too
    assert index.lookup("en", "Lesya Ukrainka") == 0

def test_resolution_follows_language_priority():
    """
    When names in different languages point at different records, the
    earliest language in the priority order decides.
    """
    dataset = [
        {"name": {"ru": "Руданский, Степан Васильевич"}, "tags": []},
        {"name": {"uk": "Руданський Степан Васильович"}, "tags": []},
    ]
    incoming = {"name": {"ru": "Руданский, Степан Васильевич", "uk": "Руданський Степан Васильович"}}

    index = NameIndex.build(dataset)
    merge_utils.reconcile_members(dataset, index, [copy.deepcopy(incoming)], UK_POETS, "uk", ["uk", "ru"])
    assert dataset[1]["name"]["ru"] == "Руданский, Степан Васильевич"
    assert dataset[0]["tags"] == []

    dataset = [
        {"name": {"ru": "Руданский, Степан Васильевич"}, "tags": []},
        {"name": {"uk": "Руданський Степан Васильович"}, "tags": []},
    ]
    index = NameIndex.build(dataset)
    merge_utils.reconcile_members(dataset, index, [copy.deepcopy(incoming)], UK_POETS, "uk", ["ru", "uk"])
    assert dataset[0]["name"]["uk"] == "Руданський Степан Васильович"
    assert dataset[1]["tags"] == []

def test_similar_names_reported_not_merged():
    """
    A near-identical spelling is only reported; the fetched author is still added.
    """
    dataset = [{"name": {"uk": "Шевченко Тарас Григорович"}, "tags": []}]
    index = NameIndex.build(dataset)
    record = {"name": {"uk": "Шевченко, Тарас Григорович"}}

    hits = merge_utils.find_similar_names(index, record, threshold=0.9)
    assert hits and hits[0][:3] == ("uk", "Шевченко Тарас Григорович", 0)

    merge_utils.reconcile_members(dataset, index, [record], UK_POETS, "uk")
    assert len(dataset) == 2

def test_dissimilar_names_not_reported():
    index = NameIndex.build([{"name": {"uk": "Леся Українка"}}])
    assert merge_utils.find_similar_names(index, {"name": {"uk": "Шевченко Тарас"}}) == []
