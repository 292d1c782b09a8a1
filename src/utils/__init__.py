"""Utilities package - Flat structure (no nested directories)"""

# URL utilities
from .url_utils import build_search_url, extract_product_ids, get_query_param, normalize_href

# Text utilities
from .text_utils import (
    collapse_whitespace,
    contains_any,
    detect_keywords,
    extract_count,
    extract_decimal,
    parse_unit_price,
    to_number,
)

__all__ = [
    # url
    "build_search_url",
    "extract_product_ids",
    "get_query_param",
    "normalize_href",
    # text
    "collapse_whitespace",
    "contains_any",
    "detect_keywords",
    "extract_count",
    "extract_decimal",
    "parse_unit_price",
    "to_number",
]
