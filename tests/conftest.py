import io

import pytest
from PIL import Image, ImageDraw
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas


def _draw_document(size: tuple[int, int], mode: str = "RGB") -> Image.Image:
    """Synthetic ID card: tinted background, dark text bars, a photo block."""
    background = (228, 222, 205, 255) if mode == "RGBA" else (228, 222, 205)
    image = Image.new(mode, size, background)
    draw = ImageDraw.Draw(image)
    width, height = size
    for row in range(8):
        top = height // 10 + row * height // 12
        draw.rectangle(
            (width // 3, top, width // 3 + width // (2 + row % 3), top + height // 40),
            fill=(30, 30, 40),
        )
    draw.rectangle((width // 20, height // 8, width // 4, height // 2), fill=(120, 90, 70))
    for x in range(0, width, max(1, width // 60)):
        draw.line((x, 0, width - x, height), fill=(200, 60 + x % 120, 90), width=2)
    return image


def _encode(image: Image.Image, fmt: str, **params: object) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format=fmt, **params)
    return buffer.getvalue()


@pytest.fixture(scope="session")
def large_jpeg_bytes() -> bytes:
    """JPEG whose longest side exceeds the largest ladder dimension."""
    return _encode(_draw_document((3200, 2000)), "JPEG", quality=95)


@pytest.fixture(scope="session")
def small_jpeg_bytes() -> bytes:
    """JPEG smaller than every ladder dimension."""
    return _encode(_draw_document((640, 400)), "JPEG", quality=90)


@pytest.fixture(scope="session")
def rgba_png_bytes() -> bytes:
    """PNG with a fully transparent corner."""
    image = _draw_document((300, 200), mode="RGBA")
    ImageDraw.Draw(image).rectangle((0, 0, 50, 50), fill=(0, 0, 0, 0))
    return _encode(image, "PNG")


@pytest.fixture(scope="session")
def rotated_jpeg_bytes() -> bytes:
    """Landscape pixels tagged with EXIF orientation 6 (rotate 90 on display)."""
    exif = Image.Exif()
    exif[0x0112] = 6
    return _encode(_draw_document((800, 400)), "JPEG", quality=90, exif=exif)


@pytest.fixture()
def corrupt_jpeg_bytes() -> bytes:
    """JPEG signature followed by garbage."""
    return b"\xff\xd8\xff\xe0" + b"not really a jpeg" * 20


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a single-page PDF scan stand-in."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    c.drawString(72, 720, "REPUBLIQUE - CARTE NATIONALE D'IDENTITE")
    c.drawString(72, 700, "Nom: DOE  Prenom: JANE")
    c.save()
    return buf.getvalue()
