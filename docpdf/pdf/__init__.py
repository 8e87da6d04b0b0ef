"""PDF package: image normalisation and document assembly."""

from docpdf.pdf.assembler import AssembledDocument, assemble_pdf
from docpdf.pdf.images import normalize_image

__all__ = ["assemble_pdf", "AssembledDocument", "normalize_image"]
