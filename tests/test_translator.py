import pytest

from cpjudge.translator import LOCALES, lang_code, lang_name, lang_suffix, resolve_locale


@pytest.mark.parametrize("name,locale", sorted(LOCALES.items()))
def test_resolve_named_language(name, locale):
    assert resolve_locale(name) == locale


def test_resolve_system_known():
    assert resolve_locale("system", "ru_RU") == "ru_RU"


def test_resolve_system_unknown():
    assert resolve_locale("system", "de_DE") == ""


def test_resolve_unknown_language():
    assert resolve_locale("English") == ""


def test_lang_name_system_passthrough():
    assert lang_name("system", "de_DE") == "de_DE"


def test_suffix_and_code_simplified_chinese():
    assert lang_suffix("简体中文") == "_zh-CN"
    assert lang_code("简体中文") == "zh"


def test_suffix_and_code_from_system():
    assert lang_suffix("system", "zh_TW") == "_zh-TW"
    assert lang_code("system", "zh_TW") == "zh_TW"


def test_unknown_gives_empty_suffix_and_code():
    assert lang_suffix("system", "fr_FR") == ""
    assert lang_code("English") == ""


def test_portuguese_has_suffix_but_no_code():
    assert lang_suffix("Português brasileiro") == "_pt-BR"
    assert lang_code("Português brasileiro") == ""