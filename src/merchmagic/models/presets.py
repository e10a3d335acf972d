"""Edit presets offered by the mockup editor.

Rotation, lighting and background presets are canned instructions sent to the
image service. Quick-style snippets only fill the draft instruction. Filter
presets never leave the process: they are applied locally on export.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class PresetKind(str, Enum):
    """Preset groups that map to a service round trip."""

    ROTATION = "rotation"
    LIGHTING = "lighting"
    BACKGROUND = "background"


class EditPreset(BaseModel):
    """A one-click edit instruction."""

    id: str
    name: str
    prompt: str
    color: Optional[str] = None
    group: Optional[str] = None


class FilterStep(BaseModel):
    """One colour operation of a filter chain.

    Amounts use CSS filter units: 1.0 is full strength for grayscale/sepia and
    identity for contrast/brightness/saturate; hue_rotate is in degrees.
    """

    op: str
    amount: float


class FilterPreset(BaseModel):
    """A named local colour filter."""

    name: str
    css: str
    steps: list[FilterStep] = []


ROTATION_PRESETS: list[EditPreset] = [
    EditPreset(
        id="top",
        name="Top View",
        prompt=(
            "Rotate the product to a top-down flat lay perspective. "
            "The logo should still be visible and correctly oriented."
        ),
    ),
    EditPreset(
        id="bottom",
        name="Bottom View",
        prompt=(
            "Rotate the product to show the bottom view or a low angle looking up. "
            "Maintain logo consistency."
        ),
    ),
    EditPreset(
        id="left",
        name="Side View (Left)",
        prompt=(
            "Show a side profile of the product from the left side. "
            "Ensure the logo wraps realistically around the form."
        ),
    ),
    EditPreset(
        id="right",
        name="Side View (Right)",
        prompt=(
            "Show a side profile of the product from the right side. "
            "Ensure the logo wraps realistically around the form."
        ),
    ),
    EditPreset(
        id="perspective",
        name="3/4 Perspective",
        prompt=(
            "Show the product from a dynamic 3/4 perspective angle. "
            "Professional high-end product photography style."
        ),
    ),
    EditPreset(
        id="back",
        name="Back View",
        prompt=(
            "Rotate the product 180 degrees to show the back view. If the logo was on the "
            "front, it may now be hidden or reflected on the back if appropriate."
        ),
    ),
]

LIGHTING_PRESETS: list[EditPreset] = [
    EditPreset(
        id="daylight",
        name="Natural Daylight",
        prompt=(
            "Transform the scene to bright natural daylight. "
            "Sharp, realistic outdoor lighting with natural shadows."
        ),
    ),
    EditPreset(
        id="studio",
        name="Pro Studio",
        prompt=(
            "Apply professional studio lighting. High-key white background, soft box "
            "lighting, clean reflections, and high-end e-commerce aesthetic."
        ),
    ),
    EditPreset(
        id="evening",
        name="Golden Hour",
        prompt=(
            "Change lighting to warm golden hour. Long soft shadows, "
            "orange-tinted ambient light, atmospheric and moody."
        ),
    ),
    EditPreset(
        id="neon",
        name="Cyber Neon",
        prompt=(
            "Add vibrant neon ambient lighting. Cinematic blue and pink rim lights, "
            "high contrast, futuristic urban night atmosphere."
        ),
    ),
]


def _background(group: str, name: str, color: str, prompt: str) -> EditPreset:
    preset_id = name.lower().replace(" ", "-")
    return EditPreset(id=preset_id, name=name, color=color, prompt=prompt, group=group)


BACKGROUND_PRESETS: list[EditPreset] = [
    _background(
        "Solid Colors",
        "Pure White",
        "#FFFFFF",
        "Replace the background with a solid clean white studio color.",
    ),
    _background(
        "Solid Colors",
        "Matte Black",
        "#000000",
        "Replace the background with a solid matte black color. Update lighting to match.",
    ),
    _background(
        "Solid Colors",
        "Soft Grey",
        "#E5E7EB",
        "Replace the background with a soft light grey neutral color.",
    ),
    _background(
        "Solid Colors",
        "Sage",
        "#B4BDB1",
        "Replace the background with a solid organic sage green color.",
    ),
    _background(
        "Solid Colors",
        "Terracotta",
        "#C6715E",
        "Replace the background with a solid warm terracotta earthy color.",
    ),
    _background(
        "Solid Colors",
        "Soft Pink",
        "#FBCFE8",
        "Replace the background with a solid soft aesthetic pink color.",
    ),
    _background(
        "Solid Colors",
        "Hot Pink",
        "#EC4899",
        "Replace the background with a solid vibrant hot pink color.",
    ),
    _background(
        "Gradients",
        "Vivid Blue",
        "linear-gradient(45deg, #3B82F6, #1D4ED8)",
        "Replace the background with a smooth vibrant blue gradient.",
    ),
    _background(
        "Gradients",
        "Soft Peach",
        "linear-gradient(45deg, #FDE68A, #FCA5A5)",
        "Replace the background with a soft peach and amber gradient.",
    ),
    _background(
        "Gradients",
        "Night Sky",
        "linear-gradient(45deg, #1E1B4B, #4338CA)",
        "Replace the background with a deep dark purple and indigo gradient.",
    ),
]

CUSTOM_BACKGROUND_PROMPT = (
    "Replace the entire background of this image with the provided background image. "
    "Ensure the lighting and reflections on the product naturally blend with this new "
    "background environment."
)

PROMPT_CATEGORIES: dict[str, list[str]] = {
    "Colors & Finishes": [
        "Change the primary color to Sage Green",
        "Apply a premium metallic gold finish",
        "Switch to a deep charcoal matte look",
        "Make it a vibrant Sunset Orange",
        "Change the product color to Soft Pink",
    ],
    "Atmosphere": [
        "Place in a modern minimalist living room",
        "Set against a rustic brick wall",
        "Use a high-end fashion studio backdrop",
        "Show it in a bright outdoor park setting",
    ],
    "Texture & Style": [
        "Add a vintage distressed print effect",
        "Give the logo a raised embroidery look",
        "Add realistic fabric folds and shadows",
        "Apply a subtle grainy film texture",
    ],
}

FILTER_PRESETS: list[FilterPreset] = [
    FilterPreset(name="None", css="none"),
    FilterPreset(
        name="Grayscale",
        css="grayscale(1)",
        steps=[FilterStep(op="grayscale", amount=1.0)],
    ),
    FilterPreset(
        name="Sepia",
        css="sepia(1)",
        steps=[FilterStep(op="sepia", amount=1.0)],
    ),
    FilterPreset(
        name="Vintage",
        css="sepia(0.4) contrast(1.2) brightness(1.1) saturate(1.1)",
        steps=[
            FilterStep(op="sepia", amount=0.4),
            FilterStep(op="contrast", amount=1.2),
            FilterStep(op="brightness", amount=1.1),
            FilterStep(op="saturate", amount=1.1),
        ],
    ),
    FilterPreset(
        name="Warm",
        css="sepia(0.2) saturate(1.6) brightness(1.05)",
        steps=[
            FilterStep(op="sepia", amount=0.2),
            FilterStep(op="saturate", amount=1.6),
            FilterStep(op="brightness", amount=1.05),
        ],
    ),
    FilterPreset(
        name="Cool",
        css="saturate(0.8) hue-rotate(10deg) brightness(1.1)",
        steps=[
            FilterStep(op="saturate", amount=0.8),
            FilterStep(op="hue_rotate", amount=10.0),
            FilterStep(op="brightness", amount=1.1),
        ],
    ),
]

DEFAULT_FILTER = FILTER_PRESETS[0]

PRESETS_BY_KIND: dict[PresetKind, list[EditPreset]] = {
    PresetKind.ROTATION: ROTATION_PRESETS,
    PresetKind.LIGHTING: LIGHTING_PRESETS,
    PresetKind.BACKGROUND: BACKGROUND_PRESETS,
}


def get_preset(kind: PresetKind, preset_id: str) -> EditPreset:
    """Look up a preset by group and id.

    Raises:
        ValueError: If no preset with that id exists in the group
    """
    for preset in PRESETS_BY_KIND[kind]:
        if preset.id == preset_id:
            return preset
    raise ValueError(f"Unknown {kind.value} preset: {preset_id}")


def get_filter(name: str) -> FilterPreset:
    """Look up a filter preset by name.

    Raises:
        ValueError: If no filter preset has that name
    """
    for preset in FILTER_PRESETS:
        if preset.name == name:
            return preset
    raise ValueError(f"Unknown filter preset: {name}")


def is_quick_snippet(text: str) -> bool:
    """Return True if text is one of the quick-style snippets."""
    return any(text in snippets for snippets in PROMPT_CATEGORIES.values())
