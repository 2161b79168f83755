from .area import (
    Area,
    NavDirection,
    LadderDirection,
    HidingSpot,
    ApproachArea,
    EncounterPath,
    EncounterSpot,
    VisibleArea,
    LightIntensity,
)
from .mesh import NavMesh, Ladder
