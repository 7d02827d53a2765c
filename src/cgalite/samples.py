"""
Sample rule programs.

Each sample is a ready-made ``RuleProgram`` covering a common building
typology. They double as documentation of the rule vocabulary and all of
them validate.
"""

from typing import Dict, List, Optional

from .rules import (
    AttrRule,
    Axis,
    ExtrudeRule,
    RoofKind,
    RoofRule,
    RuleProgram,
    SetbackFace,
    SetbackRule,
    SplitRule,
    TextureFace,
    TextureTagRule,
)

TOWER = RuleProgram(
    name="Simple Tower",
    description="Basic extrusion to create a tower/building mass",
    attrs={"buildingType": "residential", "floors": 10},
    rules=(
        ExtrudeRule(h=30),
        TextureTagRule(tag="building_facade"),
        AttrRule(name="buildingHeight", value=30),
    ),
)

STEPPED_BUILDING = RuleProgram(
    name="Stepped Building",
    description="Building with setbacks creating stepped profile",
    attrs={"buildingType": "office", "maxHeight": 60},
    rules=(
        ExtrudeRule(h=20),
        SetbackRule(d=3, faces=(SetbackFace.FRONT, SetbackFace.BACK)),
        ExtrudeRule(h=20),
        SetbackRule(d=2, faces=(SetbackFace.LEFT, SetbackFace.RIGHT)),
        ExtrudeRule(h=20),
        RoofRule(kind=RoofKind.FLAT),
        TextureTagRule(tag="office_facade"),
    ),
)

HOUSE_WITH_ROOF = RuleProgram(
    name="House with Gable Roof",
    description="Residential house with gabled roof",
    attrs={"buildingType": "residential", "stories": 2},
    rules=(
        SetbackRule(d=1.5, faces=(SetbackFace.FRONT, SetbackFace.BACK,
                                  SetbackFace.LEFT, SetbackFace.RIGHT)),
        ExtrudeRule(h=8),
        RoofRule(kind=RoofKind.GABLE, pitch=35, height=4),
        TextureTagRule(tag="residential_facade",
                       faces=(TextureFace.FRONT, TextureFace.BACK, TextureFace.LEFT, TextureFace.RIGHT)),
        TextureTagRule(tag="roof_tiles", faces=(TextureFace.TOP,)),
        AttrRule(name="dwellingUnits", value=1),
    ),
)

COMMERCIAL_STRIP = RuleProgram(
    name="Commercial Strip",
    description="Low-rise commercial building with parking setback",
    attrs={"buildingType": "commercial", "parkingSpaces": 20},
    rules=(
        SetbackRule(d=8, faces=(SetbackFace.FRONT,)),  # parking
        ExtrudeRule(h=6),
        RoofRule(kind=RoofKind.FLAT),
        TextureTagRule(tag="commercial_facade"),
        AttrRule(name="floorArea", value=500),
    ),
)

# The z split runs once the ground floor is a solid; a flat footprint has no
# z extent to divide.
MIXED_USE = RuleProgram(
    name="Mixed Use Building",
    description="Ground floor commercial with residential above",
    attrs={
        "buildingType": "mixed",
        "groundFloorUse": "commercial",
        "upperFloorUse": "residential",
    },
    rules=(
        ExtrudeRule(h=4),
        SplitRule(axis=Axis.Z, sizes=(4, "*")),
        TextureTagRule(tag="commercial_ground_floor"),
        ExtrudeRule(h=24),
        SetbackRule(d=2, faces=(SetbackFace.FRONT, SetbackFace.BACK)),
        TextureTagRule(tag="residential_upper"),
        RoofRule(kind=RoofKind.FLAT),
    ),
)

SAMPLE_RULES: Dict[str, RuleProgram] = {
    "tower": TOWER,
    "stepped_building": STEPPED_BUILDING,
    "house_with_roof": HOUSE_WITH_ROOF,
    "commercial_strip": COMMERCIAL_STRIP,
    "mixed_use": MIXED_USE,
}


def get_rule_by_name(name: str) -> Optional[RuleProgram]:
    """Look a sample up by program name ("Simple Tower") or key ("tower")."""
    if name in SAMPLE_RULES:
        return SAMPLE_RULES[name]
    for program in SAMPLE_RULES.values():
        if program.name == name:
            return program
    return None


def get_all_rule_names() -> List[str]:
    return [program.name for program in SAMPLE_RULES.values()]
