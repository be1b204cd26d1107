from .engine import (
    OccurrenceSequence,
    compute_next_occurrence,
    generate_occurrence_sequence,
    generate_recurrence_id,
    next_occurrence_datetime,
)

__all__ = [
    "OccurrenceSequence",
    "compute_next_occurrence",
    "generate_occurrence_sequence",
    "generate_recurrence_id",
    "next_occurrence_datetime",
]
