"""Services Layer — async orchestration around the pure core.

Invariants:
    - Services await IO through injected capabilities; all text rewriting lives in core/
"""
