"""Kramport Package — SiYuan Kramdown to portable Markdown, with block-reference bundling.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)

Design Decisions:
    - Empty __init__.py: explicit imports only, no star exports
"""
