"""Dietary query parsing.

The intent layer turns a free-form dietary search string into a frozen `SearchIntent` (or a
`ConstraintMapperResult` for the candidate path) that a food-catalog filter can apply directly.
"""
