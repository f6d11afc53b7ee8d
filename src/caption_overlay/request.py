"""Request model for one overlay render.

Field validation happens here, before anything reaches the overlay core:
the core assumes a positive font size and plain color tokens.
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from caption_overlay.config import DEFAULT_CONFIG, OverlayConfig
from caption_overlay.errors import ValidationError

# Color names FFmpeg understands (libavutil/parseutils.c), compared
# case-insensitively.
FFMPEG_COLOR_NAMES = frozenset(
    """
    aliceblue antiquewhite aqua aquamarine azure beige bisque black
    blanchedalmond blue blueviolet brown burlywood cadetblue chartreuse
    chocolate coral cornflowerblue cornsilk crimson cyan darkblue darkcyan
    darkgoldenrod darkgray darkgreen darkkhaki darkmagenta darkolivegreen
    darkorange darkorchid darkred darksalmon darkseagreen darkslateblue
    darkslategray darkturquoise darkviolet deeppink deepskyblue dimgray
    dodgerblue firebrick floralwhite forestgreen fuchsia gainsboro ghostwhite
    gold goldenrod gray green greenyellow honeydew hotpink indianred indigo
    ivory khaki lavender lavenderblush lawngreen lemonchiffon lightblue
    lightcoral lightcyan lightgoldenrodyellow lightgreen lightgrey lightpink
    lightsalmon lightseagreen lightskyblue lightslategray lightsteelblue
    lightyellow lime limegreen linen magenta maroon mediumaquamarine
    mediumblue mediumorchid mediumpurple mediumseagreen mediumslateblue
    mediumspringgreen mediumturquoise mediumvioletred midnightblue mintcream
    mistyrose moccasin navajowhite navy oldlace olive olivedrab orange
    orangered orchid palegoldenrod palegreen paleturquoise palevioletred
    papayawhip peachpuff peru pink plum powderblue purple red rosybrown
    royalblue saddlebrown salmon sandybrown seagreen seashell sienna silver
    skyblue slateblue slategray snow springgreen steelblue tan teal thistle
    tomato turquoise violet wheat white whitesmoke yellow yellowgreen random
    """.split()
)

# #RRGGBB[AA] and 0xRRGGBB[AA]
_HEX_COLOR = re.compile(r"^(?:#|0x)[0-9A-Fa-f]{6}(?:[0-9A-Fa-f]{2})?$")


class OverlayRequest(BaseModel):
    """Caption texts and styling for one render."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    first_caption: str | None = None
    second_caption: str | None = None
    channel_name: str | None = None
    font_size: int = Field(default=80, gt=0)
    font_color: str = "white"
    highlight_color: str = "#98FBCB"

    @field_validator("font_color", "highlight_color")
    @classmethod
    def check_color(cls, value: str) -> str:
        if value.lower() not in FFMPEG_COLOR_NAMES and not _HEX_COLOR.match(value):
            raise ValueError(f"not a color: {value!r}")
        return value


def build_request(config: OverlayConfig = DEFAULT_CONFIG, **fields: Any) -> OverlayRequest:
    """Build a validated request, taking styling defaults from ``config``.

    Fields passed as None fall back to their defaults, which is how absent
    form fields arrive.

    Raises:
        ValidationError: If a field is invalid
    """
    values = {
        "font_size": config.default_font_size,
        "font_color": config.default_font_color,
        "highlight_color": config.default_highlight_color,
    }
    values.update({key: value for key, value in fields.items() if value is not None})

    try:
        return OverlayRequest(**values)
    except PydanticValidationError as e:
        fields_in_error = [".".join(str(part) for part in err["loc"]) for err in e.errors()]
        messages = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ValidationError(
            f"Invalid overlay request: {messages}",
            context={"fields": ",".join(fields_in_error)},
        ) from e
