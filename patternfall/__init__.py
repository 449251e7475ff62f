"""
Patternfall - Tile Puzzle Simulation Kernel

A deterministic, rules-driven kernel for a grid puzzle game where a player
token moves across animated tiles governed by level-authored rules.
The kernel loads level descriptors and provides:
- Grid and cell state
- Tick-driven tile mechanics
- The player movement state machine
- Ordered condition -> effect rule evaluation
"""

__version__ = "0.1.0"
