"""Domain models shared by the generation services and the API layer."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Reads snake_case or camelCase keys and serializes with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )


class ToolType(str, Enum):
    AI_PACK = "AI_PACK"
    PRO_TECHPACK = "PRO_TECHPACK"
    CLOTH_ONLY_FLAT = "CLOTH_ONLY_FLAT"
    REAL_FLAT = "REAL_FLAT"
    FIT_PREVIEW = "FIT_PREVIEW"
    MATERIAL_ENHANCE = "MATERIAL_ENHANCE"


class ItemType(str, Enum):
    TOP = "TOP"
    BOTTOM = "BOTTOM"
    DRESS = "DRESS"
    JEANS = "JEANS"
    SETUP = "SETUP"


class TaskAction(str, Enum):
    GENERATE = "GENERATE"
    SEND_CONFIRMATION = "SEND_CONFIRMATION"


# -------------------------
# Request inputs
# -------------------------
class ModelMeasurements(CamelModel):
    """Body measurements of the fit model, as free-text values (e.g. "172cm")."""

    height: str = ""
    weight: str = ""
    chest: str = ""
    waist: str = ""
    hip: str = ""
    shoulder: str = ""
    arm_length: str = ""
    inseam: str = ""


class PreviewOptions(CamelModel):
    item_type: ItemType = ItemType.TOP
    lang: str = "EN"
    fit: str = "Regular"
    length: str = "Regular"
    measurements: Optional[ModelMeasurements] = None


class TechPackMeta(CamelModel):
    """Header fields of a tech pack sheet."""

    brand_name: str = ""
    item_name: str = ""
    style_no: str = ""
    season: str = ""
    request_date: str = ""
    due_date: str = ""
    quantity: str = ""
    size_label: str = ""
    requester: str = ""
    manager: str = ""
    additional_notes: str = ""


class GenerationRequest(CamelModel):
    """One sketch-to-artifact generation request. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    tool: str
    image: str = Field(..., description="Base sketch as raw base64 or a data URI")
    options: PreviewOptions = Field(default_factory=PreviewOptions)
    top_swatches: List[str] = Field(default_factory=list)
    bottom_swatches: List[str] = Field(default_factory=list)
    meta: Optional[TechPackMeta] = None
    action: TaskAction = TaskAction.GENERATE


# -------------------------
# Tech pack document
# -------------------------
class ConstructionDetails(CamelModel):
    stitching: Optional[str] = None
    seam_finishing: Optional[str] = None
    pocket_construction: Optional[str] = None
    neck: Optional[str] = None
    closure: Optional[str] = None
    hem: Optional[str] = None
    etc: Optional[str] = None


class GarmentMeasurement(CamelModel):
    """Finished garment measurements (points of measure)."""

    total_length: Optional[str] = None
    shoulder_width: Optional[str] = None
    chest_width: Optional[str] = None
    waist_width: Optional[str] = None
    hem_width: Optional[str] = None
    sleeve_length: Optional[str] = None
    armhole: Optional[str] = None
    cuff_opening: Optional[str] = None
    neck_width: Optional[str] = None
    front_drop: Optional[str] = None
    hip_width: Optional[str] = None
    thigh_width: Optional[str] = None
    knee_width: Optional[str] = None
    front_rise: Optional[str] = None
    back_rise: Optional[str] = None
    inseam: Optional[str] = None
    outseam: Optional[str] = None
    leg_opening: Optional[str] = None


class Materials(CamelModel):
    main_fabric: Optional[str] = None
    composition: Optional[str] = None
    sub_material: Optional[str] = None


class FactoryRecommendation(CamelModel):
    name: Optional[str] = None
    location: Optional[str] = None
    reason: Optional[str] = None


class SourceMeasurements(CamelModel):
    height: Optional[str] = None
    chest: Optional[str] = None
    waist: Optional[str] = None
    shoulder: Optional[str] = None


class TechPackDoc(CamelModel):
    part: str = Field(..., description="TOP, BOTTOM, DRESS, or SETUP")
    details: Optional[ConstructionDetails] = None
    measurement: Optional[GarmentMeasurement] = None
    materials: Optional[Materials] = None
    design_summary: List[str] = Field(default_factory=list)
    factory_recommendations: List[FactoryRecommendation] = Field(
        default_factory=list
    )
    source_measurements: Optional[SourceMeasurements] = None


class TechPack(CamelModel):
    docs: List[TechPackDoc]


# -------------------------
# Generation result
# -------------------------
class GenerationResult(CamelModel):
    """Merged output of one request.

    A missing artifact means its branch failed or was not selected.
    """

    flat_sketch: Optional[str] = None
    styled_photo: Optional[str] = None
    text: Optional[str] = None
    tech_pack: Optional[TechPack] = None
    message: str = ""

    @property
    def generated(self) -> bool:
        return any(
            value is not None
            for value in (self.flat_sketch, self.styled_photo, self.tech_pack)
        )


# -------------------------
# Studio tools
# -------------------------
class Variation(CamelModel):
    id: str
    thumbnail: str
    title: str
    tags: List[str] = Field(default_factory=list)
    note: str = ""


class MarketFeedback(CamelModel):
    complaint: str = ""
    praise: str = ""


class DemographicSlice(CamelModel):
    label: str
    percent: int


class MarketReaction(CamelModel):
    funding_rate: int = 0
    current_amount: int = 0
    target_amount: int = 0
    backers: int = 0
    chips: List[str] = Field(default_factory=list)
    feedback: MarketFeedback = Field(default_factory=MarketFeedback)
    demographics: List[DemographicSlice] = Field(default_factory=list)


class QCReport(CamelModel):
    sample_round: str
    image: Optional[str] = None
    corrections: List[str] = Field(default_factory=list)
    status: str = "SENT"


class ChatMessage(CamelModel):
    id: str = ""
    sender: str
    text: str = ""
    timestamp: str = ""
    is_read: bool = False
    type: str = "TEXT"
    qc_data: Optional[QCReport] = None


class NewsArticle(CamelModel):
    title: str = ""
    summary: str = ""
    url: str = ""
    source: str = ""
    date: str = ""
    thumbnail: Optional[str] = None
    features: List[str] = Field(default_factory=list)
