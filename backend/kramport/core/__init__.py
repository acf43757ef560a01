"""Core Layer — pure dialect transforms and resolution state, no IO, no async.

Invariants:
    - No module in core/ imports from services/ or infrastructure/
    - All transform functions are pure, total, and deterministic

Design Decisions:
    - Functional core separated from imperative shell: the resolver in services/
      does the awaiting, core/ only rewrites text and tracks session state
"""
