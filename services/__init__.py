from forensics.slip import merge_signals

from .base import DetectionServiceError, HTTPServiceClient
from .hf_detector import HFDetectorClient
from .sightengine import SightengineClient, parse_check_response
from .veryfi import SlipExtraction, VeryfiClient, parse_document

__all__ = [
    "DetectionServiceError",
    "HFDetectorClient",
    "HTTPServiceClient",
    "SightengineClient",
    "SlipExtraction",
    "VeryfiClient",
    "merge_signals",
    "parse_check_response",
    "parse_document",
]
