"""Map the interface-language setting to a locale, file suffix and language code."""

from __future__ import annotations

LOCALES = {
    "Νέα Ελληνικά": "el_GR",
    "Español": "es_MX",
    "Português brasileiro": "pt_BR",
    "Русский": "ru_RU",
    "简体中文": "zh_CN",
    "正體中文": "zh_TW",
}

SUFFIXES = {
    "el_GR": "",
    "es_MX": "",
    "pt_BR": "_pt-BR",
    "ru_RU": "_ru-RU",
    "zh_CN": "_zh-CN",
    "zh_TW": "_zh-TW",
}

CODES = {
    "el_GR": "",
    "es_MX": "",
    "pt_BR": "",
    "ru_RU": "ru",
    "zh_CN": "zh",
    "zh_TW": "zh_TW",
}


def resolve_locale(language, system_locale=""):
    """Return the locale whose translation should be installed, or '' for none."""
    if language == "system":
        return system_locale if system_locale in LOCALES.values() else ""
    return LOCALES.get(language, "")


def lang_name(language, system_locale=""):
    """Return the locale name for the setting, the system locale when it is 'system'."""
    if language == "system":
        return system_locale
    return LOCALES.get(language, "")


def lang_suffix(language, system_locale=""):
    return SUFFIXES.get(lang_name(language, system_locale), "")


def lang_code(language, system_locale=""):
    return CODES.get(lang_name(language, system_locale), "")