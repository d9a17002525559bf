"""
Place records: naming, JSONL export and re-import.
"""

from .export import (
    build_place_records,
    content_hash_filename,
    export_world_to_jsonl,
    write_world_jsonl,
)
from .importer import reconstruct_world_from_jsonl
from .naming import generate_place_description, generate_place_name
from ..core.addresses import ORIGIN_PLACE_ADDRESS, generate_place_address

__all__ = ['build_place_records', 'content_hash_filename', 'export_world_to_jsonl',
           'write_world_jsonl', 'reconstruct_world_from_jsonl',
           'generate_place_description', 'generate_place_name',
           'ORIGIN_PLACE_ADDRESS', 'generate_place_address']
