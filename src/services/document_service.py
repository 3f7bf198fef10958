"""Brochure generation service built on fpdf2."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from src.agents.state import ListingCopy

logger = logging.getLogger(__name__)

MAX_GRID_IMAGES = 6
GRID_COLUMNS = 3
GRID_GAP = 8
GRID_ROW_RATIO = 0.66
PAGE_MARGIN = 36

# Core PDF fonts only cover Latin-1
_LATIN1_REPLACEMENTS = str.maketrans({
    "\u2018": "'",
    "\u2019": "'",
    "\u201c": '"',
    "\u201d": '"',
    "\u2013": "-",
    "\u2014": "-",
    "\u2026": "...",
    "\u2022": "-",
    "\u00a0": " ",
})


def to_latin1(text: str) -> str:
    return (text or "").translate(_LATIN1_REPLACEMENTS).encode("latin-1", "replace").decode("latin-1")


@dataclass
class Brochure:
    """A rendered brochure and how many photos it shows."""

    path: str
    image_count: int


class DocumentService:
    """Render the listing brochure PDF."""

    def __init__(
        self,
        max_images: int = MAX_GRID_IMAGES,
        columns: int = GRID_COLUMNS,
        gap: float = GRID_GAP,
    ):
        self.max_images = max_images
        self.columns = columns
        self.gap = gap

    def generate_brochure(
        self,
        output_path: str,
        address: str,
        listing: ListingCopy,
        images: Sequence[str],
    ) -> Brochure:
        """Generate the brochure document.

        Args:
            output_path: Where to write the PDF
            address: Property address used as the header
            listing: Generated listing copy
            images: Enhanced image paths in display order; only the first
                ``max_images`` are placed

        Returns:
            Brochure with the output path and number of images placed

        Raises:
            Exception: If PDF rendering fails
        """
        pdf = FPDF(orientation="P", unit="pt", format="letter")
        pdf.set_margins(PAGE_MARGIN, PAGE_MARGIN, PAGE_MARGIN)
        pdf.set_auto_page_break(auto=True, margin=PAGE_MARGIN)
        pdf.add_page()

        # Header
        pdf.set_font("Helvetica", "B", 20)
        pdf.set_text_color(0, 0, 0)
        self._paragraph(pdf, address or "Property", 24)
        pdf.ln(10)
        pdf.set_font("Helvetica", "", 11)
        pdf.set_text_color(68, 68, 68)
        self._paragraph(pdf, listing.seo, 14)
        pdf.ln(14)

        placed = self._image_grid(pdf, images)

        # MLS section
        pdf.ln(16)
        pdf.set_font("Helvetica", "B", 14)
        pdf.set_text_color(0, 0, 0)
        self._paragraph(pdf, "MLS Listing Copy", 18)
        pdf.ln(3)
        pdf.set_font("Helvetica", "", 11)
        pdf.set_text_color(17, 17, 17)
        self._paragraph(pdf, listing.mls, 14)

        if listing.captions:
            pdf.ln(14)
            pdf.set_font("Helvetica", "B", 14)
            self._paragraph(pdf, "Social Captions", 18)
            pdf.set_font("Helvetica", "", 11)
            for caption in listing.captions:
                self._paragraph(pdf, f"- {caption}", 14)

        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        pdf.output(str(output_path))
        logger.info(f"Generated brochure {output_path} with {placed} images")
        return Brochure(path=str(output_path), image_count=placed)

    def _image_grid(self, pdf: FPDF, images: Sequence[str]) -> int:
        selected = list(images)[: self.max_images]
        if not selected:
            return 0

        usable_width = pdf.w - pdf.l_margin - pdf.r_margin
        cell_width = (usable_width - (self.columns - 1) * self.gap) / self.columns
        cell_height = cell_width * GRID_ROW_RATIO

        x, y = pdf.l_margin, pdf.get_y()
        for index, image_path in enumerate(selected):
            if index % self.columns == 0 and y + cell_height > pdf.page_break_trigger:
                pdf.add_page()
                y = pdf.get_y()
            pdf.image(image_path, x=x, y=y, w=cell_width, h=cell_height, keep_aspect_ratio=True)
            x += cell_width + self.gap
            if (index + 1) % self.columns == 0:
                x = pdf.l_margin
                y += cell_height + self.gap

        if len(selected) % self.columns:
            y += cell_height + self.gap
        pdf.set_xy(pdf.l_margin, y)
        return len(selected)

    @staticmethod
    def _paragraph(pdf: FPDF, text: str, line_height: float) -> None:
        if not text:
            return
        pdf.multi_cell(0, line_height, to_latin1(text), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
