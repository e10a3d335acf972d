"""Product catalog - the fixed set of templates a batch renders."""

from enum import Enum

from pydantic import BaseModel


class ProductType(str, Enum):
    """Catalog product identifiers."""

    TSHIRT_WHITE = "T-Shirt (White)"
    TSHIRT_BLACK = "T-Shirt (Black)"
    HOODIE = "Hoodie"
    COFFEE_MUG = "Coffee Mug"
    TOTE_BAG = "Tote Bag"
    CAP = "Cap"
    PHONE_CASE = "Phone Case"


class ProductTemplate(BaseModel):
    """A catalog entry: which product to render and the instruction used for it."""

    name: ProductType
    prompt: str


PRODUCT_TEMPLATES: list[ProductTemplate] = [
    ProductTemplate(
        name=ProductType.TSHIRT_WHITE,
        prompt=(
            "Place this logo centered on the chest of a plain white cotton crew-neck t-shirt. "
            "Photorealistic product shot on a light studio background, natural fabric folds, "
            "the print follows the fabric texture."
        ),
    ),
    ProductTemplate(
        name=ProductType.TSHIRT_BLACK,
        prompt=(
            "Place this logo centered on the chest of a plain black cotton crew-neck t-shirt. "
            "Photorealistic product shot, soft studio lighting, high contrast print with "
            "realistic ink texture."
        ),
    ),
    ProductTemplate(
        name=ProductType.HOODIE,
        prompt=(
            "Print this logo on the front of a heather grey pullover hoodie. Photorealistic "
            "e-commerce photo, hood and drawstrings visible, soft shadows."
        ),
    ),
    ProductTemplate(
        name=ProductType.COFFEE_MUG,
        prompt=(
            "Print this logo on a glossy white ceramic coffee mug. The logo wraps naturally "
            "around the curved surface. Photorealistic kitchen counter setting with soft "
            "morning light."
        ),
    ),
    ProductTemplate(
        name=ProductType.TOTE_BAG,
        prompt=(
            "Screen print this logo on a natural canvas tote bag. Photorealistic flat product "
            "shot, visible canvas weave, the print slightly absorbed by the fabric."
        ),
    ),
    ProductTemplate(
        name=ProductType.CAP,
        prompt=(
            "Embroider this logo on the front panel of a navy baseball cap. Photorealistic "
            "three-quarter product shot, raised stitching detail, clean studio background."
        ),
    ),
    ProductTemplate(
        name=ProductType.PHONE_CASE,
        prompt=(
            "Print this logo on the back of a matte smartphone case. Photorealistic product "
            "shot with subtle reflections, camera cutout visible, minimalist background."
        ),
    ),
]
