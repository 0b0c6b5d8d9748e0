from __future__ import annotations

import logging

import pytest

from pdf_generator.utils import (
    cm_to_point,
    format_file_size,
    get_logger,
    get_nested_value,
    inch_to_point,
    is_blank,
    mm_to_point,
    pixel_to_point,
    point_to_pixel,
)


def test_get_nested_value_walks_mappings_and_lists() -> None:
    data = {"customer": {"name": "Ada", "orders": [{"id": 7}, {"id": 8}]}}
    assert get_nested_value(data, "customer.name") == "Ada"
    assert get_nested_value(data, "customer.orders.1.id") == 8


@pytest.mark.parametrize(
    "path",
    ["customer.email", "customer.orders.5.id", "customer.name.first", "customer.orders.x", ""],
)
def test_get_nested_value_missing_paths_return_none(path: str) -> None:
    data = {"customer": {"name": "Ada", "orders": [{"id": 7}]}}
    assert get_nested_value(data, path) is None


def test_is_blank() -> None:
    assert is_blank(None)
    assert is_blank("")
    assert not is_blank(0)
    assert not is_blank(False)
    assert not is_blank(" ")


def test_unit_conversions() -> None:
    assert inch_to_point(1) == 72
    assert mm_to_point(25.4) == pytest.approx(72)
    assert cm_to_point(2.54) == pytest.approx(72)
    assert point_to_pixel(72) == pytest.approx(96)
    assert pixel_to_point(96) == pytest.approx(72)


def test_format_file_size() -> None:
    assert format_file_size(500) == "500.0 B"
    assert format_file_size(1536) == "1.5 KB"
    assert format_file_size(5 * 1024 * 1024) == "5.0 MB"


def test_get_logger_is_idempotent() -> None:
    first = get_logger("pdf_generator.tests")
    second = get_logger("pdf_generator.tests")
    assert first is second
    assert len(first.handlers) == 1
    assert isinstance(first.handlers[0], logging.StreamHandler)
