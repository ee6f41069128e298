"""
Field projection builder.
Turns client only/omit lists into a document store projection map.
"""

from typing import Dict, Iterable, List, Optional, Sequence

ID_FIELD = "_id"


def build_projection(
    fields: Iterable[str],
    only: Optional[Sequence[str]] = None,
    omit: Optional[Sequence[str]] = None,
) -> Dict[str, int]:
    """
    Build a projection map for one entity type.

    A field listed in ``only`` is included (1); otherwise a field listed in
    ``omit`` is excluded (0); any other field is left to the store default.
    When ``only`` is given without the id field, the id is excluded.

    Args:
        fields: Recognized field names of the entity
        only: Fields to return
        omit: Fields to leave out

    Returns:
        Mapping of field name to 1 or 0
    """
    projection: Dict[str, int] = {}
    for key in fields:
        if only and key in only:
            projection[key] = 1
        elif omit and key in omit:
            projection[key] = 0

    if only and ID_FIELD not in only:
        projection[ID_FIELD] = 0

    return projection


def visible_relations(
    relations: Iterable[str],
    only: Optional[Sequence[str]] = None,
    omit: Optional[Sequence[str]] = None,
) -> List[str]:
    """Relation fields that survive the projection and may be populated."""
    return [
        name for name in relations
        if (not only or name in only) and not (omit and name in omit)
    ]
