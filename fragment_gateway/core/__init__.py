"""Core request adaptation package.

Composition:
    - `params`: generation-parameter clamping.
    - `envelope`: upstream envelope assembly.
    - `ids`: shared random identifier generation.
    - `errors`: user-visible error taxonomy.
    - `log_utils`: log formatting helpers.

Determinism and side effects:
    Package import is side-effect free.
"""
