"""Template field OCR engine.

Reads user-defined rectangular fields from scanned or photographed
documents: each field's normalized region is cropped from its page,
preprocessed with OpenCV, recognized by Tesseract or OCR.space, and
classified by confidence. A full-page path rebuilds word, line, and
paragraph structure for whole documents.
"""

__version__ = "0.1.0"
