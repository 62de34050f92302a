from .chunk import chunk_children
from .ids import normalise_id, to_dashed_uuid
from .redact import redact
from .text_split import split_string

__all__ = [
    "chunk_children",
    "normalise_id",
    "redact",
    "split_string",
    "to_dashed_uuid",
]
