"""Domain entities: mockups, the product catalog and edit presets."""

from merchmagic.models.catalog import PRODUCT_TEMPLATES, ProductTemplate, ProductType
from merchmagic.models.mockup import InvalidStateTransition, Mockup, MockupStatus
from merchmagic.models.presets import EditPreset, FilterPreset, FilterStep, PresetKind

__all__ = [
    "Mockup",
    "MockupStatus",
    "InvalidStateTransition",
    "ProductTemplate",
    "ProductType",
    "PRODUCT_TEMPLATES",
    "EditPreset",
    "FilterPreset",
    "FilterStep",
    "PresetKind",
]
