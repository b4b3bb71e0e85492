"""Spawn index pipeline implementations.

Each module in this package implements the spawn index for one survey type
(surface, Macrocystis, understory) following the pattern:
- Constructor: __init__(spawn, <survey tables>, areas, years, ..., theta, metadata)
- Run method: run() -> dict[str, DataFrame]
"""
