"""News categories and display languages.

Both are closed sets. Every conversion of arbitrary text (model output,
stored preferences) into an enum member goes through ``_coerce``; the
``parse`` methods substitute the default for anything unrecognised and the
list parsers drop it.
"""

from __future__ import annotations

from enum import Enum


def _text(value: object) -> str:
    if isinstance(value, Enum):
        value = value.value
    return str(value).strip()


class Language(str, Enum):
    """Languages an article can be rendered in."""

    EN = "en"
    ZH_TW = "zh-TW"
    ZH_CN = "zh-CN"

    @classmethod
    def parse(cls, value: object) -> "Language":
        return _coerce(cls, value) or DEFAULT_LANGUAGE


class Category(str, Enum):
    """Editorial category assigned by the enrichment model."""

    BUSINESS = "ai-business"
    TECHNOLOGY = "ai-technology"
    ETHICS = "ai-ethics"
    RESEARCH = "ai-research"

    @classmethod
    def parse(cls, value: object) -> "Category":
        return _coerce(cls, value) or DEFAULT_CATEGORY

    def label(self, lang: Language) -> str:
        return _CATEGORY_LABELS[self][lang]


DEFAULT_LANGUAGE = Language.EN
DEFAULT_CATEGORY = Category.TECHNOLOGY

ALL_CATEGORIES: tuple[Category, ...] = tuple(Category)

_CATEGORY_LABELS: dict[Category, dict[Language, str]] = {
    Category.BUSINESS: {Language.EN: "AI Business", Language.ZH_TW: "AI 商業", Language.ZH_CN: "AI 商业"},
    Category.TECHNOLOGY: {Language.EN: "AI Technology", Language.ZH_TW: "AI 科技", Language.ZH_CN: "AI 科技"},
    Category.ETHICS: {Language.EN: "AI Ethics", Language.ZH_TW: "AI 倫理", Language.ZH_CN: "AI 伦理"},
    Category.RESEARCH: {Language.EN: "AI Research", Language.ZH_TW: "AI 研究", Language.ZH_CN: "AI 研究"},
}


def _coerce(enum_cls: type[Enum], value: object) -> Enum | None:
    """The member named by ``value`` (case-insensitive), or None."""
    if value is None:
        return None
    text = _text(value).lower()
    for member in enum_cls:
        if member.value.lower() == text:
            return member
    return None


def _parse_list(enum_cls: type[Enum], values: list | None) -> list:
    out = []
    for v in values or []:
        member = _coerce(enum_cls, v)
        if member is not None and member not in out:
            out.append(member)
    return out


def parse_languages(values: list | None) -> list[Language]:
    """Validate an ordered language list, dropping unknowns and duplicates.

    Falls back to ``[en]`` when nothing valid remains.
    """
    return _parse_list(Language, values) or [DEFAULT_LANGUAGE]


def parse_categories(values: list | None) -> list[Category]:
    """Validate an ordered category list. Falls back to all four categories."""
    return _parse_list(Category, values) or list(ALL_CATEGORIES)
