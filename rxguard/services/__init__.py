"""Services Layer — resolution cache, response composer, baseline fan-out.

Invariants:
    - Services orchestrate core functions with IO collaborators injected
    - No service holds module-level state; instances live on app.state

Design Decisions:
    - Composer owns branching on ResolutionOutcome; core stays IO-free
"""
