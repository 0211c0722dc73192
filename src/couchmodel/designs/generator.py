"""Generate view definitions from field lists."""

import re
from typing import List, Optional, Sequence, Union

from couchmodel.designs.design_doc import ViewDefinition
from couchmodel.errors import UsageError
from couchmodel.utils.logging import get_logger

logger = get_logger(__name__)

BY_NAME_PATTERN = re.compile(r"^by_(.+)")

DEFAULT_REDUCE = """function(key, values, rereduce) {
  return sum(values);
}
"""

MAP_TEMPLATE = """function(doc) {{
  if ({guards}) {{
    emit({emit}, 1);
  }}
}}
"""


def fields_from_name(name: str) -> Optional[List[str]]:
    """Field list encoded in a `by_F1_and_F2` view name, or None."""
    match = BY_NAME_PATTERN.match(name)
    if not match:
        return None
    return match.group(1).split("_and_")


def build_map_function(type_key: str, type_name: str, fields: Sequence[str], guards: Sequence[str] = ()) -> str:
    """
    Build the JavaScript map function for the given fields.

    Caller guards come first, then the type check, then one null check per
    field. A single field is emitted as is, several as an array.
    """
    keys = [f"doc['{field}']" for field in fields]
    conditions = list(guards)
    conditions.append(f"(doc['{type_key}'] == '{type_name}')")
    conditions.extend(f"({key} != null)" for key in keys)
    emit = keys[0] if len(keys) == 1 else f"[{', '.join(keys)}]"
    return MAP_TEMPLATE.format(guards=" && ".join(conditions), emit=emit)


def create_view(
    model,
    name: str,
    map: Optional[str] = None,
    reduce: Union[str, bool, None] = None,
    by: Optional[Sequence[str]] = None,
    guards: Optional[Sequence[str]] = None,
) -> ViewDefinition:
    """
    Add a view to the model's design document.

    If no `map` is given, the fields are taken from `by` or, failing that,
    from a name of the form `by_date_and_name`. A summing reduce is added
    unless `reduce` is False or a reduce function is supplied.

    Args:
        model: Model type (or proxy) that owns the design document
        name: View name
        map: Explicit map function source
        reduce: Reduce function source, True for the summing default, or
            False to leave the view without one
        by: Explicit list of document fields to index
        guards: Extra JavaScript conditions a document must satisfy

    Returns:
        The ViewDefinition stored in the design document

    Raises:
        UsageError: If neither map, by nor a `by_` name is available
    """
    name = str(name)
    if reduce is True:
        reduce = DEFAULT_REDUCE
    if map is None:
        fields = list(by) if by else fields_from_name(name)
        if not fields:
            raise UsageError("View cannot be created without recognised name, map or by options")
        map = build_map_function(model.model_type_key, model.model_type_name(), fields, guards or ())
        if reduce is None:
            reduce = DEFAULT_REDUCE

    definition = ViewDefinition(map=map, reduce=reduce if isinstance(reduce, str) else None)
    model.design_doc().add_view(name, definition)
    logger.debug(f"Registered view {name} on {model.model_type_name()} (reduce={definition.can_reduce})")
    return definition
