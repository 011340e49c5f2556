"""Text parsing: structured extraction, shape predicates, spoken-text cleanup."""

from dateplanner.parsing.extractor import StructuredExtractor, default_extractor, extract
from dateplanner.parsing.shapes import array_or_field, has_nonempty_array, has_object, is_nonempty_array
from dateplanner.parsing.text import clean_spoken_text

__all__ = [
    "StructuredExtractor",
    "array_or_field",
    "clean_spoken_text",
    "default_extractor",
    "extract",
    "has_nonempty_array",
    "has_object",
    "is_nonempty_array",
]
