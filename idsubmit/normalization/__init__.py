from idsubmit.normalization.models import ExtractionResult
from idsubmit.normalization.normalizer import ResponseNormalizer

__all__ = ["ExtractionResult", "ResponseNormalizer"]
