from __future__ import annotations

import pytest

from pdf_generator.fonts import FontHandle, FontManager, resolve_font_name


@pytest.mark.parametrize(
    "family, weight, style, expected",
    [
        ("Helvetica", "normal", "normal", "Helvetica"),
        ("Arial", "bold", "normal", "Helvetica-Bold"),
        ("sans-serif", "700", "italic", "Helvetica-BoldOblique"),
        ("times", "normal", "italic", "Times-Italic"),
        ("serif", "normal", "normal", "Times-Roman"),
        ("monospace", "bold", "normal", "Courier-Bold"),
        ("Courier-BoldOblique", "normal", "normal", "Courier-BoldOblique"),
        ("Helvetica-Bold", "normal", "normal", "Helvetica-Bold"),
        ("ZapfDingbats", "bold", "normal", "ZapfDingbats"),
    ],
)
def test_resolve_font_name(family: str, weight: str, style: str, expected: str) -> None:
    assert resolve_font_name(family, weight, style) == expected


def test_unknown_family_falls_back_to_helvetica() -> None:
    assert resolve_font_name("Comic Sans MS") == "Helvetica"
    assert resolve_font_name("Comic Sans MS", "bold") == "Helvetica-Bold"


def test_font_manager_caches_by_resolved_name() -> None:
    manager = FontManager()
    first = manager.get_font("Arial")
    second = manager.get_font("helvetica")
    assert first is second
    assert len(manager) == 1

    manager.get_font("Arial", "bold")
    assert manager.cached_fonts() == ["Helvetica", "Helvetica-Bold"]

    manager.clear()
    assert len(manager) == 0


def test_font_managers_are_independent() -> None:
    one, two = FontManager(), FontManager()
    one.get_font("Times")
    assert len(two) == 0


def test_font_handle_metrics() -> None:
    handle = FontHandle("Helvetica")
    narrow = handle.width_of_text_at_size("ii", 12)
    wide = handle.width_of_text_at_size("WW", 12)
    assert 0 < narrow < wide
    assert handle.width_of_text_at_size("WW", 24) == pytest.approx(wide * 2)
    assert handle.height_at_size(12) > 0
