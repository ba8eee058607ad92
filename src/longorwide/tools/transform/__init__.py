"""Reshape tools - wide/long conversion and the converter workflow."""

from longorwide.tools.transform.reshape import (
    wide_to_long,
    long_to_wide,
    wide_to_long_dataset,
    long_to_wide_dataset,
    get_all_reshape_tools,
)
from longorwide.tools.transform.converter import (
    ConversionResult,
    parse_column_list,
    convert_wide_to_long,
    convert_long_to_wide,
    convert_dataset_format,
    get_all_converter_tools,
)

__all__ = [
    'wide_to_long',
    'long_to_wide',
    'wide_to_long_dataset',
    'long_to_wide_dataset',
    'get_all_reshape_tools',
    'ConversionResult',
    'parse_column_list',
    'convert_wide_to_long',
    'convert_long_to_wide',
    'convert_dataset_format',
    'get_all_converter_tools',
]
