"""Shared test fixtures for the template field OCR test suite."""

import io
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from fieldocr.extraction.models import TemplateField
from fieldocr.ocr.base import OCREngine, UnifiedOCRResult


class FakeEngine(OCREngine):
    """In-memory OCR engine returning canned results in call order.

    Each entry of ``responses`` is either a ``(text, confidence)`` tuple or
    an exception to raise. The last entry repeats once the list runs out.
    """

    name = "fake"

    def __init__(self, responses: list | None = None) -> None:
        super().__init__()
        self.responses = list(responses or [("TEXT", 90)])
        self.calls: list[dict] = []
        self.opened = 0
        self.closed = 0

    def open(self) -> None:
        self.opened += 1
        super().open()

    def close(self) -> None:
        self.closed += 1
        super().close()

    def recognize(
        self, image: bytes, language: str | None = None, structure: bool = True
    ) -> UnifiedOCRResult:
        index = min(len(self.calls), len(self.responses) - 1)
        self.calls.append(
            {"image": image, "language": language, "structure": structure}
        )
        response = self.responses[index]
        if isinstance(response, Exception):
            raise response
        text, confidence = response
        return UnifiedOCRResult(
            text=text, confidence=confidence, engine=self.name, language=language
        )


def make_field(
    field_id: str = "f1",
    field_name: str = "invoice_number",
    page_number: int = 1,
    x_norm: float = 0.1,
    y_norm: float = 0.1,
    w_norm: float = 0.5,
    h_norm: float = 0.2,
) -> TemplateField:
    """Create a template field with defaults."""
    return TemplateField(
        field_id=field_id,
        template_id="t1",
        field_name=field_name,
        page_number=page_number,
        x_norm=x_norm,
        y_norm=y_norm,
        w_norm=w_norm,
        h_norm=h_norm,
    )


def png_bytes(width: int = 200, height: int = 100) -> bytes:
    """Encode a white RGB image with a dark bar as PNG bytes."""
    image = np.full((height, width, 3), 255, dtype=np.uint8)
    image[height // 3 : 2 * height // 3, width // 4 : 3 * width // 4] = 0
    buf = io.BytesIO()
    Image.fromarray(image).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def sample_image() -> np.ndarray:
    """Create a simple synthetic grayscale test image."""
    image = np.zeros((200, 300), dtype=np.uint8)
    image[50:150, 50:250] = 255
    return image


@pytest.fixture
def sample_color_image() -> np.ndarray:
    """Create a simple synthetic BGR test image."""
    image = np.zeros((200, 300, 3), dtype=np.uint8)
    image[50:150, 50:250] = (255, 255, 255)
    return image


@pytest.fixture
def page_image() -> np.ndarray:
    """Create a 1000x800 white BGR page with dark text-like bars."""
    image = np.full((1000, 800, 3), 255, dtype=np.uint8)
    image[100:140, 100:400] = 0
    image[600:640, 200:700] = 0
    return image


@pytest.fixture
def fake_engine() -> FakeEngine:
    """Create a fake engine that always returns confident text."""
    return FakeEngine()


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config_dir(project_root: Path) -> Path:
    """Return the configs directory path."""
    return project_root / "configs"
