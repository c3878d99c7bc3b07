"""
Consensus merging of several samples of the same screenshot summary.

Multiple imperfect reads of one document rarely miss the same field, so
gaps in the strongest read are filled from the weaker ones. The strongest
read stays the anchor: its values are never overwritten.
"""

import dataclasses
import logging
from collections.abc import Sequence

from .models import TARGET_FIELDS, ExtractedFields

logger = logging.getLogger(__name__)


# Samples at or below this confidence never contribute values
MIN_CONTRIBUTOR_CONFIDENCE = 0.2

MERGE_CONFIDENCE_BONUS = 0.1


def merge_samples(results: Sequence[ExtractedFields]) -> ExtractedFields | None:
    """
    Merge samples into one consensus record.

    The seed is the highest-confidence sample; ties go to the earliest one
    so the merge is deterministic for a given input order. Inputs are never
    mutated.

    Args:
        results: Samples of the same logical document, in caller order

    Returns:
        The merged record, the seed itself when nothing can be merged,
        or None for an empty input
    """
    if not results:
        return None

    if len(results) == 1:
        return results[0]

    # max() keeps the first of equal maxima
    seed_index, seed = max(enumerate(results), key=lambda item: item[1].confidence)

    eligible = [
        (index, sample)
        for index, sample in enumerate(results)
        if sample.confidence > MIN_CONTRIBUTOR_CONFIDENCE
    ]
    if len(eligible) <= 1:
        logger.debug(f"Merge skipped: {len(eligible)} eligible sample(s)")
        return seed

    # Stable sort keeps caller order among equal confidences
    contributors = sorted(
        (sample for index, sample in eligible if index != seed_index),
        key=lambda sample: sample.confidence,
        reverse=True,
    )

    merged_values = dict(seed.values)
    for name in TARGET_FIELDS:
        if name in merged_values:
            continue
        for sample in contributors:
            value = sample.value_of(name)
            if value:
                merged_values[name] = value
                logger.info(
                    f"Merged {name.value}={value} from sample "
                    f"with confidence {sample.confidence:.2f}"
                )
                break

    fields_found = frozenset(merged_values)
    confidence = seed.confidence
    if len(fields_found) > len(seed.fields_found):
        confidence = min(confidence + MERGE_CONFIDENCE_BONUS, 1.0)

    return dataclasses.replace(
        seed,
        **{name.value: merged_values.get(name) for name in TARGET_FIELDS},
        fields_found=fields_found,
        confidence=confidence,
    )
