"""Loading of template definitions from YAML files.

A template file looks like::

    template_id: invoice-v1
    name: Supplier invoice
    fields:
      - field_id: f1
        field_name: invoice_number
        page_number: 1
        x_norm: 0.62
        y_norm: 0.08
        w_norm: 0.30
        h_norm: 0.05

``template_id`` on each field may be omitted; it is filled from the
template.
"""

from pathlib import Path

import yaml
from pydantic import ValidationError

from fieldocr.errors import TemplateError
from fieldocr.utils.logger import get_logger

from .models import Template

logger = get_logger(__name__)


def load_template(path: Path) -> Template:
    """Load and validate a template definition.

    Args:
        path: Path to the template YAML file.

    Returns:
        The validated template with fields in file order.

    Raises:
        TemplateError: If the file is missing, unreadable, or invalid.
    """
    path = Path(path)
    if not path.exists():
        raise TemplateError(f"Template file not found: {path}")

    try:
        with open(path) as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise TemplateError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise TemplateError(f"Template file {path} must contain a mapping")

    template_id = raw.get("template_id")
    for entry in raw.get("fields") or []:
        if isinstance(entry, dict) and template_id is not None:
            entry.setdefault("template_id", template_id)

    try:
        template = Template(**raw)
    except ValidationError as exc:
        raise TemplateError(f"Invalid template {path}: {exc}") from exc

    logger.info(
        "Loaded template '%s' with %d fields from %s",
        template.name,
        len(template.fields),
        path,
    )
    return template
