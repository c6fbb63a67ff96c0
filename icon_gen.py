"""Generate the picker's trigger icon (small calendar sheet, PIL Image, in-memory)."""

from datetime import date

from PIL import Image, ImageDraw, ImageFont

HEADER_FILL = "#0078D4"
BORDER = "#555555"


def create_icon_image(day: int | None = None, size: int = 32) -> Image.Image:
    """Return a size×size RGBA image: coloured header band over a white sheet
    with the day-of-month centred below it."""
    if day is None:
        day = date.today().day
    img = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)

    band = max(3, size // 4)
    draw.rectangle((0, 0, size - 1, size - 1), fill="white", outline=BORDER)
    draw.rectangle((0, 0, size - 1, band), fill=HEADER_FILL, outline=BORDER)

    text = str(day)
    avail_w = size - 4
    avail_h = size - band - 4

    # Find the largest font size that fits below the band
    font_size = size
    font = None
    while font_size > 6:
        try:
            font = ImageFont.truetype("DejaVuSans-Bold.ttf", font_size)
        except OSError:
            font = ImageFont.load_default()
            break
        bbox = draw.textbbox((0, 0), text, font=font)
        if bbox[2] - bbox[0] <= avail_w and bbox[3] - bbox[1] <= avail_h:
            break
        font_size -= 1

    # Centre the visible pixels inside the area under the band
    bbox = draw.textbbox((0, 0), text, font=font)
    x = (size - (bbox[2] - bbox[0])) / 2 - bbox[0]
    y = band + (size - band - (bbox[3] - bbox[1])) / 2 - bbox[1]
    draw.text((x, y), text, fill="black", font=font)

    return img
