from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Iterable, List

from .models import Segment


def segment_to_dict(segment: Segment) -> Dict[str, Any]:
    payload = asdict(segment)
    payload.pop("kind")
    for key, value in payload.items():
        # asdict keeps tuples; JSON clients expect arrays
        if isinstance(value, tuple):
            payload[key] = list(value)
    return {"type": segment.kind.value, **payload}


def segments_to_dicts(segments: Iterable[Segment]) -> List[Dict[str, Any]]:
    return [segment_to_dict(segment) for segment in segments]
