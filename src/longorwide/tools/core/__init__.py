"""Core tools package - dataset storage, inspection and column helpers."""

from longorwide.tools.core.dataset_ops import (
    store_csv_as_dataset,
    store_csv_as_dataset_from_text,
    get_dataset_head,
    get_dataset_summary,
    export_dataset_to_csv,
    get_all_dataset_tools,
)

__all__ = [
    'store_csv_as_dataset',
    'store_csv_as_dataset_from_text',
    'get_dataset_head',
    'get_dataset_summary',
    'export_dataset_to_csv',
    'get_all_dataset_tools',
]
