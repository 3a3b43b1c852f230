"""Slide rendering and frame combination.

Pillow draws each canvas (background colour or downloaded background image
plus wrapped title/subtitle/content/CTA text), composes grids and writes
animated GIFs. moviepy encodes MP4 sequences.
"""

from __future__ import annotations

import asyncio
import logging
from io import BytesIO
from pathlib import Path

import httpx
import numpy as np
from moviepy import ImageSequenceClip
from PIL import Image, ImageDraw, ImageFont, ImageOps, UnidentifiedImageError

from ..constants import (
    EXPORT_QUALITY_JPEG,
    EXPORT_SLIDE_DURATION_MS,
    ExportFormat,
    ExportQuality,
    TransitionType,
)
from ..projects.models import Canvas

_logger = logging.getLogger("export")

# Title font size as a fraction of slide width, per font-size tier
FONT_SCALE: dict[str, float] = {"large": 0.075, "medium": 0.06, "small": 0.05}

# Darkening applied over a background image, per colour scheme
SCHEME_OVERLAY: dict[str, float] = {
    "high-contrast": 0.6,
    "monochrome": 0.5,
    "vibrant": 0.3,
    "subtle": 0.55,
}

SCHEME_TEXT_COLOR: dict[str, str] = {
    "high-contrast": "#ffffff",
    "monochrome": "#f3f4f6",
    "vibrant": "#ffffff",
    "subtle": "#e5e7eb",
}

GRID_MAX_WIDTH = 4096
GRID_BACKGROUND = "#111827"


def _hex_to_rgb(hex_color: str) -> tuple[int, int, int]:
    hex_color = hex_color.lstrip("#")
    if len(hex_color) == 3:
        hex_color = "".join(c * 2 for c in hex_color)
    return (int(hex_color[0:2], 16), int(hex_color[2:4], 16), int(hex_color[4:6], 16))


def _decode_background(canvas_id: str, data: bytes, size: tuple[int, int]) -> Image.Image | None:
    """Background cropped to `size`, or None when the bytes are not a usable image."""
    try:
        with Image.open(BytesIO(data)) as photo:
            return ImageOps.fit(photo.convert("RGB"), size, Image.Resampling.LANCZOS)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        _logger.warning(f"BACKGROUND_UNREADABLE | canvas:{canvas_id} | error:{e}")
        return None


class SlideRenderer:
    """Render canvases to Pillow images.

    Usage:
        renderer = SlideRenderer()
        image = await renderer.render(canvas)
        await renderer.close()
    """

    FONT_PATHS = [
        # Linux
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        # Windows
        "C:/Windows/Fonts/arialbd.ttf",
        "C:/Windows/Fonts/arial.ttf",
        # macOS
        "/System/Library/Fonts/Helvetica.ttc",
        "/Library/Fonts/Arial.ttf",
    ]

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        fonts_dir: Path | None = None,
        download_timeout: float = 30.0,
    ):
        """Initialize the renderer.

        Args:
            http_client: Client for downloading background images.
                Created (and closed by close()) when not given.
            fonts_dir: Directory with a custom slide.ttf.
            download_timeout: Seconds allowed per background download.
        """
        self._http_client = http_client
        self._owns_client = http_client is None
        self.fonts_dir = fonts_dir
        self.download_timeout = download_timeout
        self._font_cache: dict[int, ImageFont.FreeTypeFont | ImageFont.ImageFont] = {}

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.download_timeout)
        return self._http_client

    async def close(self) -> None:
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    def _get_font(self, size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
        """Get a font of the given size, with caching."""
        if size in self._font_cache:
            return self._font_cache[size]

        candidates = list(self.FONT_PATHS)
        if self.fonts_dir:
            candidates.insert(0, str(self.fonts_dir / "slide.ttf"))

        font: ImageFont.FreeTypeFont | ImageFont.ImageFont | None = None
        for path in candidates:
            try:
                font = ImageFont.truetype(path, size)
                break
            except OSError:
                continue

        if font is None:
            font = ImageFont.load_default(size)

        self._font_cache[size] = font
        return font

    async def _load_background(self, source: str) -> bytes | None:
        """Fetch a background image from a URL or local path.

        A missing background is not fatal: the slide falls back to its colour.
        """
        if source.startswith(("http://", "https://")):
            try:
                response = await self._get_http_client().get(source, follow_redirects=True)
                response.raise_for_status()
                return response.content
            except httpx.HTTPError as e:
                _logger.warning(f"BACKGROUND_FETCH_FAILED | url:{source[:120]} | error:{e}")
                return None

        path = Path(source)
        if path.is_file():
            return path.read_bytes()
        _logger.warning(f"BACKGROUND_MISSING | source:{source[:120]}")
        return None

    async def render(self, canvas: Canvas, size: tuple[int, int] | None = None) -> Image.Image:
        """Render one canvas.

        Args:
            canvas: Canvas to draw.
            size: Output (width, height). Defaults to the canvas format.
        """
        source = canvas.background_image or canvas.thumbnail_url
        background = await self._load_background(source) if source else None
        size = size or (canvas.format.width, canvas.format.height)
        return await asyncio.to_thread(self._compose, canvas, size, background)

    def _compose(
        self,
        canvas: Canvas,
        size: tuple[int, int],
        background: bytes | None,
    ) -> Image.Image:
        width, height = size
        layout = canvas.slide_metadata.layout or {}
        scheme = layout.get("color_scheme", "high-contrast")
        placement = layout.get("text_placement", "center")
        tier = layout.get("font_size", "medium")

        image = Image.new("RGB", size, _hex_to_rgb(canvas.background_color))
        photo = _decode_background(canvas.id, background, size) if background is not None else None
        if photo is not None:
            if scheme == "monochrome":
                photo = ImageOps.grayscale(photo).convert("RGB")
            shade = Image.new("RGB", size, (0, 0, 0))
            image = Image.blend(photo, shade, SCHEME_OVERLAY.get(scheme, 0.5))

        title_size = max(12, int(width * FONT_SCALE.get(tier, FONT_SCALE["medium"])))
        body_size = max(10, int(title_size * 0.5))
        color = _hex_to_rgb(SCHEME_TEXT_COLOR.get(scheme, "#ffffff"))

        meta = canvas.slide_metadata
        blocks = [(meta.title, title_size)]
        if meta.subtitle:
            blocks.append((meta.subtitle, int(title_size * 0.6)))
        if meta.content:
            blocks.append((meta.content, body_size))
        if meta.cta:
            blocks.append((meta.cta, body_size))

        margin = int(width * 0.08)
        max_width = width - 2 * margin

        wrapped = []
        for text, font_size in blocks:
            font = self._get_font(font_size)
            wrapped.append((self._wrap_text(text, font, max_width), font, font_size))

        gap = int(title_size * 0.6)
        total_height = sum(int(size_ * 1.3) * len(lines) for lines, _, size_ in wrapped)
        total_height += gap * (len(wrapped) - 1)

        if placement == "top":
            y = int(height * 0.1)
        elif placement == "bottom":
            y = int(height * 0.9) - total_height
        else:
            y = (height - total_height) // 2
        y = max(0, y)

        draw = ImageDraw.Draw(image)
        for lines, font, font_size in wrapped:
            for line in lines:
                line_width = int(font.getlength(line))
                if placement == "left":
                    x = margin
                elif placement == "right":
                    x = width - margin - line_width
                else:
                    x = (width - line_width) // 2
                draw.text((x, y), line, font=font, fill=color)
                y += int(font_size * 1.3)
            y += gap

        return image

    def _wrap_text(
        self,
        text: str,
        font: ImageFont.FreeTypeFont | ImageFont.ImageFont,
        max_width: int,
    ) -> list[str]:
        """Wrap text to fit within max_width."""
        lines: list[str] = []
        for paragraph in text.splitlines() or [""]:
            current: list[str] = []
            for word in paragraph.split():
                candidate = " ".join(current + [word])
                if current and font.getlength(candidate) > max_width:
                    lines.append(" ".join(current))
                    current = [word]
                else:
                    current.append(word)
            if current:
                lines.append(" ".join(current))
        return lines


# =============================================================================
# OUTPUT
# =============================================================================

def save_image(
    image: Image.Image,
    path: Path,
    fmt: ExportFormat,
    quality: ExportQuality,
) -> Path:
    """Write a still image in the requested format."""
    if fmt is ExportFormat.JPG:
        image.convert("RGB").save(
            path, "JPEG", quality=EXPORT_QUALITY_JPEG[quality.value], optimize=True
        )
    elif fmt is ExportFormat.GIF:
        image.convert("RGB").save(path, "GIF")
    else:
        image.save(path, "PNG", optimize=True)
    return path


def transition_frames(
    current: Image.Image,
    following: Image.Image,
    transition: TransitionType,
    steps: int,
) -> list[Image.Image]:
    """In-between frames from `current` to `following` (both the same size)."""
    width, height = current.size
    frames = []
    for step in range(1, steps + 1):
        t = step / (steps + 1)
        if transition is TransitionType.SLIDE:
            offset = int(width * t)
            frame = Image.new("RGB", current.size)
            frame.paste(current, (-offset, 0))
            frame.paste(following, (width - offset, 0))
        elif transition is TransitionType.ZOOM:
            scale = 1 + 0.25 * t
            zoomed = current.resize(
                (int(width * scale), int(height * scale)), Image.Resampling.LANCZOS
            )
            left = (zoomed.width - width) // 2
            top = (zoomed.height - height) // 2
            zoomed = zoomed.crop((left, top, left + width, top + height))
            frame = Image.blend(zoomed, following, t)
        else:
            frame = Image.blend(current, following, t)
        frames.append(frame)
    return frames


def _fit_frame(frame: Image.Image, size: tuple[int, int]) -> Image.Image:
    frame = frame.convert("RGB")
    if frame.size != size:
        frame = ImageOps.fit(frame, size, Image.Resampling.LANCZOS)
    return frame


def build_timeline(
    frames: list[Image.Image],
    fps: int,
    transition: TransitionType | None = None,
    transition_ms: int = 0,
    slide_ms: int = EXPORT_SLIDE_DURATION_MS,
) -> list[tuple[Image.Image, float]]:
    """(frame, seconds on screen) pairs for a timed sequence.

    Every frame is cropped to the first frame's size; GIF and MP4 writers
    need one size for the whole sequence.
    """
    steps = max(1, round(transition_ms / 1000 * fps)) if transition else 0
    step_seconds = transition_ms / 1000 / steps if steps else 0.0
    if not frames:
        return []
    size = frames[0].size
    fitted = [_fit_frame(frame, size) for frame in frames]

    timeline: list[tuple[Image.Image, float]] = []
    for index, frame in enumerate(fitted):
        timeline.append((frame, slide_ms / 1000))
        if transition and index < len(fitted) - 1:
            for between in transition_frames(frame, fitted[index + 1], transition, steps):
                timeline.append((between, step_seconds))
    return timeline


def combine_gif(timeline: list[tuple[Image.Image, float]], path: Path) -> Path:
    """Write an animated, looping GIF."""
    images = [frame for frame, _ in timeline]
    durations = [max(10, int(seconds * 1000)) for _, seconds in timeline]
    images[0].save(
        path,
        "GIF",
        save_all=True,
        append_images=images[1:],
        duration=durations,
        loop=0,
    )
    return path


def combine_mp4(timeline: list[tuple[Image.Image, float]], path: Path, fps: int) -> Path:
    """Encode an H.264 MP4 with moviepy."""
    width, height = timeline[0][0].size
    # libx264 needs even dimensions
    even_size = (width - width % 2, height - height % 2)

    arrays = []
    for frame, _ in timeline:
        if frame.size != even_size:
            frame = frame.crop((0, 0, *even_size))
        arrays.append(np.asarray(frame))

    clip = ImageSequenceClip(arrays, durations=[seconds for _, seconds in timeline])
    try:
        clip.write_videofile(
            str(path),
            fps=fps,
            codec="libx264",
            audio=False,
            logger=None,
        )
    finally:
        clip.close()
    return path


def compose_grid(
    images: list[Image.Image],
    cols: int,
    rows: int,
    max_width: int = GRID_MAX_WIDTH,
    background: str = GRID_BACKGROUND,
) -> Image.Image:
    """Lay slides out row by row on one image, scaled to fit max_width."""
    cell_width, cell_height = images[0].size
    scale = min(1.0, max_width / (cols * cell_width))
    cell_width, cell_height = int(cell_width * scale), int(cell_height * scale)

    grid = Image.new("RGB", (cols * cell_width, rows * cell_height), _hex_to_rgb(background))
    for index, image in enumerate(images):
        cell = ImageOps.fit(image.convert("RGB"), (cell_width, cell_height), Image.Resampling.LANCZOS)
        grid.paste(cell, ((index % cols) * cell_width, (index // cols) * cell_height))
    return grid
