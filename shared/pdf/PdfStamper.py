"""
PdfStamper – draw the signing attestation and the signature image onto page one.

Implementation
    - reportlab renders an overlay page of the same size as the target page,
      using an embedded TrueType font so non-Latin signer names render.
    - pypdf merges the overlay onto the first page and rewrites the document.
"""
from __future__ import annotations

import base64
import binascii
import re
from datetime import datetime
from io import BytesIO
from pathlib import Path

from PIL import Image
from pypdf import PdfReader, PdfWriter
from pytz import timezone
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas

from shared.helper.HelperConfig import HelperConfig
from shared.models.errors import OverlayError

_DATA_URL_PREFIX = re.compile(r"^data:image/[\w.+-]+;base64,", re.IGNORECASE)

TEXT_X, TEXT_Y, TEXT_SIZE = 50, 100, 14
IMAGE_X, IMAGE_Y, IMAGE_SCALE = 50, 150, 0.5


class PdfStamper:
    """Composite the attestation overlay onto an existing PDF."""

    def __init__(self, helper_config: HelperConfig) -> None:
        self.logging = helper_config.get_logger()
        default_font = helper_config.get_root_dir() / "fonts" / "Alef-Regular.ttf"
        self.font_path = Path(helper_config.get_string_val("SIGN_FONT_PATH", default=str(default_font))).expanduser()
        self.date_format = helper_config.get_string_val("SIGN_DATE_FORMAT", default="%d.%m.%Y")
        self.tz_name = helper_config.get_string_val("TIMEZONE", default="Asia/Jerusalem")
        self.attestation_template = helper_config.get_string_val(
            "SIGN_ATTESTATION_TEMPLATE", default="Signed by: {signer_name} on: {date}"
        )

    ##########################################
    ################ CORE ####################
    ##########################################

    def stamp(self, pdf_bytes: bytes, signer_name: str, signature_image: bytes, now: datetime | None = None) -> bytes:
        """Return a copy of *pdf_bytes* with the attestation and signature on page one.

        Raises:
            OverlayError: On an unreadable PDF, a PDF without pages, a missing or
                broken font, or undecodable image data.
        """
        try:
            reader = PdfReader(BytesIO(pdf_bytes))
            if len(reader.pages) == 0:
                raise OverlayError("The converted PDF has no pages.")

            first_page = reader.pages[0]
            box = first_page.mediabox
            overlay_pdf = self._make_overlay(
                float(box.width),
                float(box.height),
                self.build_attestation(signer_name, now=now),
                signature_image,
            )
            writer = PdfWriter(clone_from=reader)
            writer.pages[0].merge_page(PdfReader(BytesIO(overlay_pdf)).pages[0])

            out = BytesIO()
            writer.write(out)
        except OverlayError:
            raise
        except Exception as e:
            raise OverlayError(str(e) or e.__class__.__name__) from e

        self.logging.debug("Stamped attestation for %r onto %d-page PDF", signer_name, len(reader.pages))
        return out.getvalue()

    def build_attestation(self, signer_name: str, now: datetime | None = None) -> str:
        """The attestation line, e.g. ``Signed by: Dana on: 19.10.2026``."""
        now = now or datetime.now(timezone(self.tz_name))
        return self.attestation_template.format(signer_name=signer_name, date=now.strftime(self.date_format))

    @staticmethod
    def decode_signature_image(data: str) -> bytes:
        """Decode a data-URL (or bare) base64 image into raw bytes.

        Raises:
            OverlayError: If the payload is not valid base64.
        """
        payload = _DATA_URL_PREFIX.sub("", data.strip(), count=1)
        try:
            return base64.b64decode(payload, validate=False)
        except (binascii.Error, ValueError) as e:
            raise OverlayError(f"Signature image is not valid base64: {e}") from e

    def has_font(self) -> bool:
        return self.font_path.is_file()

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _font_name(self) -> str:
        """Register the TrueType font once and return its reportlab name."""
        name = f"SignRelay-{self.font_path.stem}"
        if name not in pdfmetrics.getRegisteredFontNames():
            if not self.font_path.is_file():
                raise OverlayError(f"Font file not found: {self.font_path}")
            pdfmetrics.registerFont(TTFont(name, str(self.font_path)))
        return name

    def _make_overlay(self, page_w: float, page_h: float, text: str, signature_image: bytes) -> bytes:
        buf = BytesIO()
        c = canvas.Canvas(buf, pagesize=(page_w, page_h))

        # --- attestation text
        c.setFillColorRGB(0, 0, 0)
        c.setFont(self._font_name(), TEXT_SIZE)
        c.drawString(TEXT_X, TEXT_Y, text)

        # --- signature image, half its pixel size
        try:
            sig = Image.open(BytesIO(signature_image))
            sig.load()
        except Exception as e:
            raise OverlayError(f"Signature image could not be decoded: {e}") from e
        sig = sig.convert("RGBA")
        c.drawImage(
            ImageReader(sig),
            IMAGE_X,
            IMAGE_Y,
            width=sig.width * IMAGE_SCALE,
            height=sig.height * IMAGE_SCALE,
            mask="auto",
        )

        c.save()
        return buf.getvalue()
