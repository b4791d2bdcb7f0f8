"""Tests for category/language validation."""

from ainews.catalog import (
    ALL_CATEGORIES,
    Category,
    Language,
    parse_categories,
    parse_languages,
)


class TestCategoryParse:
    def test_known_value(self):
        assert Category.parse("ai-ethics") is Category.ETHICS

    def test_case_and_whitespace(self):
        assert Category.parse("  AI-Research ") is Category.RESEARCH

    def test_member_passes_through(self):
        assert Category.parse(Category.BUSINESS) is Category.BUSINESS

    def test_unknown_defaults_to_technology(self):
        assert Category.parse("ai-sports") is Category.TECHNOLOGY
        assert Category.parse("") is Category.TECHNOLOGY
        assert Category.parse(None) is Category.TECHNOLOGY

    def test_labels(self):
        assert Category.ETHICS.label(Language.EN) == "AI Ethics"
        assert Category.ETHICS.label(Language.ZH_TW) == "AI 倫理"
        assert Category.ETHICS.label(Language.ZH_CN) == "AI 伦理"


class TestLanguageParse:
    def test_known(self):
        assert Language.parse("zh-TW") is Language.ZH_TW

    def test_unknown_defaults_to_english(self):
        assert Language.parse("fr") is Language.EN
        assert Language.parse(None) is Language.EN


class TestListParsing:
    def test_languages_keep_order_and_drop_unknown(self):
        assert parse_languages(["zh-CN", "xx", "en", "zh-CN"]) == [Language.ZH_CN, Language.EN]

    def test_empty_languages_default(self):
        assert parse_languages([]) == [Language.EN]
        assert parse_languages(None) == [Language.EN]

    def test_categories_keep_order(self):
        assert parse_categories(["ai-research", "ai-business"]) == [
            Category.RESEARCH,
            Category.BUSINESS,
        ]

    def test_empty_categories_default_to_all(self):
        assert parse_categories(["bogus"]) == list(ALL_CATEGORIES)
        assert len(ALL_CATEGORIES) == 4

    def test_list_and_single_parsing_agree(self):
        assert parse_languages(["ZH-tw", " en "]) == [Language.ZH_TW, Language.EN]
        assert Language.parse("ZH-tw") is Language.ZH_TW
        assert parse_categories([" AI-Ethics", Category.RESEARCH]) == [
            Category.ETHICS,
            Category.RESEARCH,
        ]

    def test_none_entries_are_dropped(self):
        assert parse_categories([None, "ai-business"]) == [Category.BUSINESS]
