"""Fragment gateway API adapter package.

Architectural role:
- Defines the external HTTP boundary and response shaping (JSON or SSE).
- Delegates request adaptation to `core`/`prompting` and the upstream call
  to `llm`.
"""
