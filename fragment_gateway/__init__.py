"""Fragment gateway package.

Architectural role:
    OpenAI-compatible chat completion adapter in front of the fragment
    execution service.

Package split:
    - `api`: HTTP surface, emulated streaming, service entrypoint.
    - `core`: parameter clamping, envelope assembly, ids, errors.
    - `prompting`: conversation normalization.
    - `llm`: configuration, model registry, upstream transport.
"""
