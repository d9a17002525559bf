"""
Flux world generator.

Procedural place graphs with west-to-east ecosystem bands, exported as JSONL
place records.
"""

from .core import generate_world, WorldGenerationResult
from .config import WorldGenerationConfig
from .places import export_world_to_jsonl, reconstruct_world_from_jsonl, write_world_jsonl

__version__ = "0.1.0"

__all__ = ['generate_world', 'WorldGenerationResult', 'WorldGenerationConfig',
           'export_world_to_jsonl', 'reconstruct_world_from_jsonl', 'write_world_jsonl']
