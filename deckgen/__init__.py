"""High-level interfaces for AI presentation generation."""

from .analysis import PresentationAnalysis, analyze_presentation
from .assembler import AssemblyPreferences, SlideAssembler
from .config import Settings
from .decoder import DecodedPresentation, ResilientDecoder, decode_presentation
from .errors import (
    CompletionError,
    ConfigurationError,
    DeckgenError,
    GenerationParseError,
    ImageResolutionFailure,
    SchemaValidationError,
    StepError,
)
from .image_enrichment import ImageEnricher
from .image_providers import (
    GenerativeImageProvider,
    ImageProvider,
    InMemoryQuotaGuard,
    QuotaGuard,
    StockPhotoProvider,
)
from .layout_contract import LAYOUT_CONTRACTS, contract_for, expected_zones
from .pipeline import PipelineResult, PresentationPipeline
from .prompts import GenerationRequest, PromptPair, compile_prompts
from .slide_document import PresentationStore
from .slide_editing import SlideEditor, apply_slide_patch, decode_slide_patch
from .slide_models import (
    DEFAULT_THEME,
    Presentation,
    PresentationStyle,
    Slide,
    SlideLayout,
    Stat,
    Theme,
    TitleAlignment,
)
from .workspace import StepStatus, WorkspaceProgress, WorkspaceStep

__all__ = [
    "AssemblyPreferences",
    "CompletionError",
    "ConfigurationError",
    "DEFAULT_THEME",
    "DecodedPresentation",
    "DeckgenError",
    "GenerationParseError",
    "GenerationRequest",
    "GenerativeImageProvider",
    "ImageEnricher",
    "ImageProvider",
    "ImageResolutionFailure",
    "InMemoryQuotaGuard",
    "LAYOUT_CONTRACTS",
    "PipelineResult",
    "Presentation",
    "PresentationAnalysis",
    "PresentationPipeline",
    "PresentationStore",
    "PresentationStyle",
    "PromptPair",
    "QuotaGuard",
    "ResilientDecoder",
    "SchemaValidationError",
    "Settings",
    "Slide",
    "SlideAssembler",
    "SlideEditor",
    "SlideLayout",
    "Stat",
    "StepError",
    "StepStatus",
    "StockPhotoProvider",
    "Theme",
    "TitleAlignment",
    "WorkspaceProgress",
    "WorkspaceStep",
    "analyze_presentation",
    "apply_slide_patch",
    "compile_prompts",
    "contract_for",
    "decode_presentation",
    "decode_slide_patch",
    "expected_zones",
]
