"""Read-only dietary vocabulary.

The knowledge layer owns every lexical table the compiler consults (nutrients, diets, allergens,
pH idioms, operator phrases). Parsing code receives it as an injected `KnowledgeBase` and never
mutates it.
"""
