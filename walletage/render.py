"""
Wallet age card rendering.

Draws the wallet age onto a PNG template: black text with a soft drop
shadow, tilted slightly and anchored near the top right corner. Two lines
("N years" / "M months") when both components are non-zero, one otherwise.

The renderer only knows WalletAge; fetching and age math live elsewhere.
"""

from __future__ import annotations

import io
import math
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, ImageDraw, ImageFilter, ImageFont, UnidentifiedImageError

from walletage.age import format_age_text
from walletage.exceptions import ConfigInvalidError, TemplateError
from walletage.log import get_logger
from walletage.models import WalletAge

logger = get_logger(__name__)

CONTENT_TYPE = "image/png"
DEFAULT_FONT_SIZE = 100
DEFAULT_CACHE_MAX_AGE = 300  # seconds

# Layout, in template pixels
ANCHOR_X_FROM_RIGHT = 400
ANCHOR_Y = 210
LINE_OFFSET = 60
ROTATION_RADIANS = 0.165     # clockwise

TEXT_FILL = (0, 0, 0, 255)
SHADOW_FILL = (0, 0, 0, 128)
SHADOW_OFFSET = (2, 2)
SHADOW_BLUR_RADIUS = 2


@dataclass(frozen=True)
class RenderedImage:
    """Encoded card plus the HTTP metadata it should be served with."""

    content: bytes
    content_type: str
    cache_control: str


def card_lines(age: WalletAge) -> list[str]:
    """Text lines drawn on the card for `age`."""
    year_text = format_age_text(age.years, 0) if age.years > 0 else ""
    month_text = format_age_text(0, age.months)
    if age.years > 0 and age.months > 0:
        return [year_text, month_text]
    if age.years > 0:
        return [year_text]
    return [month_text]


class CardRenderer:
    """
    Renders WalletAge values onto a template image.

    Args:
        template_path: PNG (or any Pillow-readable image) used as background
        font_path: TrueType/OpenType font; None uses Pillow's bundled font
        font_size: Text size in pixels
        cache_max_age: max-age of the Cache-Control directive, in seconds
    """

    def __init__(
        self,
        template_path: str | Path,
        font_path: str | Path | None = None,
        font_size: int = DEFAULT_FONT_SIZE,
        cache_max_age: int = DEFAULT_CACHE_MAX_AGE,
    ) -> None:
        self.template_path = Path(template_path).expanduser()
        self.font_path = Path(font_path).expanduser() if font_path else None
        self.font_size = font_size
        self.cache_max_age = cache_max_age

    def render(self, age: WalletAge) -> RenderedImage:
        canvas = self._load_template()
        font = self._load_font()
        lines = card_lines(age)
        offsets = [-LINE_OFFSET, LINE_OFFSET] if len(lines) == 2 else [0]

        anchor = (canvas.width - ANCHOR_X_FROM_RIGHT, ANCHOR_Y)
        angle = -math.degrees(ROTATION_RADIANS)

        shadow = self._text_layer(canvas.size, anchor, lines, offsets, font, SHADOW_FILL)
        shadow = shadow.rotate(
            angle, resample=Image.BICUBIC, center=anchor, translate=SHADOW_OFFSET
        ).filter(ImageFilter.GaussianBlur(SHADOW_BLUR_RADIUS))
        text = self._text_layer(canvas.size, anchor, lines, offsets, font, TEXT_FILL)
        text = text.rotate(angle, resample=Image.BICUBIC, center=anchor)

        canvas = Image.alpha_composite(canvas, shadow)
        canvas = Image.alpha_composite(canvas, text)

        buf = io.BytesIO()
        canvas.save(buf, format="PNG")
        logger.debug("card_rendered", lines=lines, size=canvas.size)
        return RenderedImage(
            content=buf.getvalue(),
            content_type=CONTENT_TYPE,
            cache_control=f"public, max-age={self.cache_max_age}",
        )

    # ──────────────────────────────────────────────────────────────
    # Private helpers
    # ──────────────────────────────────────────────────────────────

    def _load_template(self) -> Image.Image:
        try:
            with Image.open(self.template_path) as img:
                return img.convert("RGBA")
        except (FileNotFoundError, UnidentifiedImageError, OSError) as e:
            raise TemplateError(
                f"Cannot load card template {self.template_path}: {e}",
                details={"template_path": str(self.template_path)},
            ) from e

    def _load_font(self) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
        if self.font_path is None:
            return ImageFont.load_default(size=self.font_size)
        try:
            return ImageFont.truetype(str(self.font_path), self.font_size)
        except OSError as e:
            raise ConfigInvalidError(
                f"Cannot load font {self.font_path}: {e}",
                details={"font_path": str(self.font_path)},
            ) from e

    @staticmethod
    def _text_layer(
        size: tuple[int, int],
        anchor: tuple[int, int],
        lines: list[str],
        offsets: list[int],
        font: ImageFont.FreeTypeFont | ImageFont.ImageFont,
        fill: tuple[int, int, int, int],
    ) -> Image.Image:
        layer = Image.new("RGBA", size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(layer)
        for line, offset in zip(lines, offsets):
            draw.text((anchor[0], anchor[1] + offset), line, font=font, fill=fill, anchor="mm")
        return layer
