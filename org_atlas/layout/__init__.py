"""
org_atlas.layout — Force-directed layout of the visible node set.

Modules:
    engine     — LayoutEngine state machine (Idle → Seeding → Simulating →
                 Settled) and the versioned LayoutSnapshot it owns.
    scheduler  — Frame schedulers: ManualFrameScheduler for synchronous runs
                 and tests, AsyncioFrameScheduler for interactive hosts.
"""
