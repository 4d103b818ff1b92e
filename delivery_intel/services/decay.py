"""
Retry Decay Curve Service

Aggregates success probability by attempt index across the whole dataset.
Each delivery attempt is bucketed by the attempt index it carried at the
moment it occurred (as recorded by the fold), with every index >= 10 folded
into the "10+" bucket.

The output always has exactly 10 ordered buckets, empty ones included.
"""

from typing import Dict, Iterable, List

from delivery_intel.models.schemas import DecayBucket
from delivery_intel.services.aggregator import NumberProfile


MAX_ATTEMPT_BUCKET: int = 10


def bucket_label(attempt_index: int) -> str:
    return f"{MAX_ATTEMPT_BUCKET}+" if attempt_index >= MAX_ATTEMPT_BUCKET else str(attempt_index)


def build_decay_curve(profiles: Iterable[NumberProfile]) -> List[DecayBucket]:
    """
    Build the global retry decay curve.

    Args:
        profiles: Folded NumberProfiles

    Returns:
        10 DecayBuckets ordered 1..9, "10+"
    """
    totals: Dict[int, int] = {i: 0 for i in range(1, MAX_ATTEMPT_BUCKET + 1)}
    successes: Dict[int, int] = {i: 0 for i in range(1, MAX_ATTEMPT_BUCKET + 1)}

    for profile in profiles:
        for sequenced in profile.attempts:
            key = min(sequenced.attempt_index, MAX_ATTEMPT_BUCKET)
            totals[key] += 1
            if sequenced.attempt.is_success:
                successes[key] += 1

    return [
        DecayBucket(
            attemptIndex=key,
            label=bucket_label(key),
            totalDeliveryAttempts=totals[key],
            successfulCount=successes[key],
            probability=(successes[key] / totals[key]) if totals[key] > 0 else 0.0,
        )
        for key in range(1, MAX_ATTEMPT_BUCKET + 1)
    ]
