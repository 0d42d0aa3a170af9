import pytest

from kbchat.api.utils import normalize_text

ARABIC_KAF = "\u0643"
ARABIC_YEH = "\u064a"
ALEF_MAKSURA = "\u0649"
ZWNJ = "\u200c"


def test_arabic_kaf_becomes_persian_kaf():
    assert normalize_text(f"{ARABIC_KAF}تاب") == "\u06a9تاب"
    assert normalize_text("كتاب") == "کتاب"


def test_arabic_yeh_and_alef_maksura_become_persian_yeh():
    assert normalize_text(f"عل{ARABIC_YEH}") == "عل\u06cc"
    assert normalize_text(f"موس{ALEF_MAKSURA}") == "موس\u06cc"


def test_whitespace_is_collapsed_and_trimmed():
    assert normalize_text("سلام  دنیا") == "سلام دنیا"
    assert normalize_text("\t سلام \n\n دنیا  ") == "سلام دنیا"


def test_zwnj_becomes_space():
    assert normalize_text(f"می{ZWNJ}خواهم") == "می خواهم"


def test_empty_and_none():
    assert normalize_text("") == ""
    assert normalize_text("   ") == ""
    assert normalize_text(None) == ""


def test_canonical_composition():
    # alef + combining madda above -> alef with madda above
    assert normalize_text("\u0627\u0653ب") == "\u0622ب"


@pytest.mark.parametrize("text", [
    "",
    f"  {ARABIC_KAF}تاب  عل{ARABIC_YEH} ",
    f"می{ZWNJ}{ZWNJ}خواهم   بدانم",
    "\u0627\u0653ب موس\u0649",
    "plain ascii   text",
])
def test_idempotent(text):
    once = normalize_text(text)
    assert normalize_text(once) == once
