"""Plant definitions for the string simulator.

Plants are JSON files listing tables and per-panel ratings; ``demo_plant``
ships with the package.
"""

from .plant_loader import (
    PlantDefinition,
    PlantLoader,
    load_plant,
    list_plants,
)

__all__ = [
    "PlantDefinition",
    "PlantLoader",
    "load_plant",
    "list_plants",
]
