"""Per-entity model declarations.

Each module declares identity bindings, currency groups, and the ordered
classification plan for one entity or event kind.
"""
