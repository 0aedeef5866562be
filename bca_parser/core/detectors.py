"""
Template loading and detection.
"""
import yaml
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Union
import logging

from pydantic import ValidationError

from .loader import DocumentLoader, PdfPlumberFallback, extract_text
from .anchors import find_anchors_in_text
from ..models.schema import LayoutTemplate

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE = "bca_mutasi_v1"
TEMPLATES_DIR = Path(__file__).parent.parent / "templates"


class TemplateDetector:
    """Detects which template matches a statement document."""

    def __init__(self, templates_dir: Path = None):
        self.templates_dir = templates_dir or TEMPLATES_DIR
        self.templates: Dict[str, LayoutTemplate] = {}
        self._load_templates()

    def _load_templates(self):
        """Load all available templates."""
        if not self.templates_dir.exists():
            logger.warning(f"Templates directory not found: {self.templates_dir}")
            return

        for yaml_file in sorted(self.templates_dir.glob("*.yaml")):
            try:
                with open(yaml_file, 'r', encoding='utf-8') as f:
                    template_data = yaml.safe_load(f) or {}
                template = LayoutTemplate.model_validate(template_data)
            except (yaml.YAMLError, ValidationError) as e:
                logger.error(f"Error loading template {yaml_file}: {e}")
                continue

            self.templates[template.template_id] = template
            logger.debug(f"Loaded template: {template.template_id}")

    def detect_template(self, source: Union[bytes, Path, str],
                        fallback_pdfplumber: bool = False) -> Optional[str]:
        """
        Detect which template matches a document.

        Args:
            source: Document bytes or path
            fallback_pdfplumber: Use pdfplumber when the raw scan finds no text

        Returns:
            Template ID if found, None otherwise
        """
        data = DocumentLoader(source).load()
        text = extract_text(data)
        if not text and fallback_pdfplumber:
            text = PdfPlumberFallback.extract_text(data)

        return self.detect_text(text)

    def detect_text(self, text: str) -> Optional[str]:
        """Detect which template matches already extracted text."""
        if not text:
            logger.warning("No text to detect a template from")
            return None

        for template_id, template in self.templates.items():
            if self._matches_template(text, template):
                logger.info(f"Document matches template: {template_id}")
                return template_id

        logger.warning("No matching template found")
        return None

    def _matches_template(self, text: str, template: LayoutTemplate) -> bool:
        """
        Check if text contains every anchor a template requires.

        Args:
            text: Extracted document text
            template: Template to check

        Returns:
            True if template matches, False otherwise
        """
        must_contain = template.page_match.must_contain
        if not must_contain:
            logger.warning(f"Template {template.template_id} has no 'must_contain' requirements")
            return False

        found_anchors = find_anchors_in_text(
            text, must_contain, template.page_match.fuzzy_threshold
        )
        if len(found_anchors) == len(must_contain):
            return True

        logger.debug(f"Template mismatch: found {len(found_anchors)}/{len(must_contain)} required anchors")
        return False

    def get_template(self, template_id: str) -> Optional[LayoutTemplate]:
        """Get template configuration by ID."""
        return self.templates.get(template_id)

    def list_templates(self) -> List[str]:
        """List all available template IDs."""
        return list(self.templates.keys())


@lru_cache(maxsize=None)
def _default_detector() -> TemplateDetector:
    return TemplateDetector()


def get_layout(template_id: str = DEFAULT_TEMPLATE) -> LayoutTemplate:
    """
    Return a bundled layout template.

    Raises:
        ValueError: If no template has this ID
    """
    template = _default_detector().get_template(template_id)
    if template is None:
        raise ValueError(f"Template not found: {template_id}")
    return template


def list_layouts() -> List[LayoutTemplate]:
    """Return every bundled layout template."""
    detector = _default_detector()
    return [detector.get_template(t) for t in detector.list_templates()]


def detect_template(source: Union[bytes, Path, str],
                    fallback_pdfplumber: bool = False) -> Optional[str]:
    """
    Convenience function to detect the template of a document.

    Args:
        source: Document bytes or path

    Returns:
        Template ID if found, None otherwise
    """
    return _default_detector().detect_template(source, fallback_pdfplumber)
