"""Personal-data detection rules and engine."""

from docaudit.detection.personal_data import PersonalDataDetector, passes_luhn
from docaudit.detection.rules import DetectionRule, DetectionRuleSet

__all__ = ["DetectionRule", "DetectionRuleSet", "PersonalDataDetector", "passes_luhn"]
