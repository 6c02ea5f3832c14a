"""mappings.py
Compile a :class:`SchemaDescriptor` into an Elasticsearch mapping.

Two branches are built for every schema level:

* *all fields* – every field that is not excluded,
* *selective* – only the fields flagged ``indexed``.

The selective branch wins whenever it is non-empty, so a schema without any
indexed flag is mapped in full, and opting a single field in restricts the
level to the opted-in fields (plus their copy-to targets).

Copy-to targets declared inside a nested schema cannot live in the nested
``properties``; they are handed back to the caller as *promotions* and merged
into the enclosing level.
"""

from __future__ import annotations

import logging

from docmirror.common.entities import (
    FieldDescriptor,
    FieldMapping,
    MappingDocument,
    SchemaDescriptor,
)
from docmirror.indexing.field_types import DEFAULT_ES_TYPE, resolve

logger = logging.getLogger(__name__)


def compile_mapping(
    schema: SchemaDescriptor, parent_name: str | None = None
) -> MappingDocument:
    """Return the mapping ``properties`` for *schema*.

    Args:
        schema: Schema to compile.
        parent_name: Name of the field holding *schema* when it is nested.
            Copy-to targets staged for the parent are not part of the
            result; use :func:`compile_level` to receive them.
    """
    mapping, _ = compile_level(schema, parent_name)
    return mapping


def compile_level(
    schema: SchemaDescriptor, parent_name: str | None = None
) -> tuple[MappingDocument, MappingDocument]:
    """Compile one schema level into ``(mapping, promotions)``.

    *promotions* are the copy-to targets the enclosing level has to define.
    """
    all_mappings: MappingDocument = {}
    all_promotions: MappingDocument = {}
    mappings: MappingDocument = {}
    promotions: MappingDocument = {}

    for field in schema.fields:
        # excluded fields exist in the store but are never mapped
        if field.excluded:
            continue

        node, companions, raised = _field_mapping(field, parent_name)
        all_mappings[field.name] = node
        _stage(all_mappings, all_promotions, companions, raised, parent_name)

        if field.indexed:
            node, companions, raised = _field_mapping(field, parent_name)
            mappings[field.name] = node
            _stage(mappings, promotions, companions, raised, parent_name)

    if mappings:
        return mappings, promotions
    return all_mappings, all_promotions


def _field_mapping(
    field: FieldDescriptor, parent_name: str | None
) -> tuple[FieldMapping, MappingDocument, MappingDocument]:
    """Map one field.

    Returns the field's node, the copy-to companions it declares and the
    promotions raised by its nested schema.
    """
    node: FieldMapping = {"type": _field_type(field)}

    if field.boost is not None:
        node["boost"] = field.boost
    if field.null_value is not None:
        node["null_value"] = field.null_value

    companions: MappingDocument = {}
    if field.copy_to is not None:
        target = field.copy_to.target_field
        if field.copy_to.separate and parent_name:
            target = f"{parent_name}_{target}"
        node["copy_to"] = target
        companions[target] = {"type": field.copy_to.target_type or DEFAULT_ES_TYPE}

    raised: MappingDocument = {}
    if field.nested is not None:
        properties, raised = compile_level(field.nested, field.name)
        node["properties"] = properties

    return node, companions, raised


def _field_type(field: FieldDescriptor) -> str:
    if field.nested is not None:
        return "nested"
    return field.es_type or resolve(field.primitive_type)


def _stage(
    mappings: MappingDocument,
    promotions: MappingDocument,
    companions: MappingDocument,
    raised: MappingDocument,
    parent_name: str | None,
) -> None:
    """Place companions and child promotions at the right level.

    Promotions raised by a nested child always belong to this level.  The
    field's own companions belong here only at the root; inside a nested
    schema they are staged for the caller.
    """
    _merge_companions(mappings, raised)
    if parent_name is None:
        _merge_companions(mappings, companions)
    else:
        for name, companion in companions.items():
            promotions.setdefault(name, companion)


def _merge_companions(
    mappings: MappingDocument, companions: MappingDocument
) -> MappingDocument:
    for name, companion in companions.items():
        if name in mappings:
            logger.debug("Copy-to target '%s' is already a mapped field.", name)
            continue
        mappings[name] = companion
    return mappings
