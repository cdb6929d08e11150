import pytest

from services.text_utils import derive_label, label_sort_key, matches_query, normalize_name


@pytest.mark.parametrize("identifier, label", [
    ("bulbasaur", "Bulbasaur"),
    ("mr-mime", "Mr Mime"),
    ("tapu-koko", "Tapu Koko"),
    ("charizard-mega-x", "Charizard Mega X"),
    ("porygon--z", "Porygon Z"),
    ("", ""),
])
def test_derive_label(identifier, label):
    assert derive_label(identifier) == label


def test_derive_label_is_pure():
    assert derive_label("mr-mime") == derive_label("mr-mime") == "Mr Mime"


def test_normalize_name_strips_accents_and_case():
    assert normalize_name("  Flabébé ") == "flabebe"
    assert normalize_name("Nidoran♀") == "nidoranf"


def test_label_sort_key_is_case_and_accent_insensitive():
    labels = ["eevee", "Flabébé", "Abra", "ditto", "Flabebe"]
    ordered = sorted(labels, key=label_sort_key)
    assert ordered == ["Abra", "ditto", "eevee", "Flabebe", "Flabébé"]


def test_matches_query():
    assert matches_query("Charmander", "char")
    assert matches_query("Charmander", "MAND")
    assert not matches_query("Bulbasaur", "char")
    assert matches_query("Bulbasaur", "")
    assert matches_query("Flabébé", "flabe")
