# justgold/services/color_panel.py
import re
from dataclasses import dataclass
from urllib.parse import urlsplit

from justgold.core.exceptions import ColorPanelError

COLOR_PANEL_TYPES = ("hex", "gradient", "image")

DEFAULT_PANEL_TYPE = "hex"

HEX_COLOR = re.compile(
    r"^#(?:[0-9a-f]{3}|[0-9a-f]{4}|[0-9a-f]{6}|[0-9a-f]{8})$",
    re.IGNORECASE,
)

CSS_GRADIENT = re.compile(
    r"^(?:repeating-)?(?:linear|radial|conic)-gradient\(\s*\S.*\)$",
    re.IGNORECASE | re.DOTALL,
)


@dataclass(frozen=True)
class ColorPanel:
    type: str
    value: str


def is_http_url(value: str) -> bool:
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def _valid_value(panel_type: str, value: str) -> bool:
    if panel_type == "hex":
        return bool(HEX_COLOR.match(value))
    if panel_type == "gradient":
        return bool(CSS_GRADIENT.match(value))
    # image
    return is_http_url(value)


def check_color_panel(
    panel_type: str | None,
    value: str | None,
    has_file: bool = False,
    required: bool = False,
) -> str | None:
    """
    Validate a variant's colour panel before anything is uploaded.

    Args:
        panel_type: declared type (hex | gradient | image), may be empty.
        value: declared value (hex code, CSS gradient or image URL).
        has_file: a swatch file accompanies this variant.
        required: True when the variant is being created.

    Returns:
        The normalized panel type, or None when an optional panel was left
        completely empty (nothing to update).

    Raises:
        ColorPanelError: for any inconsistent or invalid combination.
    """
    panel_type = (panel_type or "").strip().lower() or None
    value = (value or "").strip() or None

    if required and has_file and not panel_type:
        raise ColorPanelError("Color panel type is required when uploading a color image")

    if not required:
        if not panel_type and not value and not has_file:
            return None
        if not panel_type:
            raise ColorPanelError("Color panel type is required when a value or image is provided")
        if not value and not has_file:
            raise ColorPanelError("Color panel value or image is required when a type is provided")

    panel_type = panel_type or DEFAULT_PANEL_TYPE

    if panel_type not in COLOR_PANEL_TYPES:
        raise ColorPanelError(
            f"Invalid color panel type '{panel_type}'. Allowed: hex, gradient, image"
        )

    if has_file:
        if panel_type != "image":
            raise ColorPanelError(
                f"Uploaded color image requires type 'image', got '{panel_type}'"
            )
        # a stored upload is always a valid image panel
        return panel_type

    if not value or not _valid_value(panel_type, value):
        raise ColorPanelError(f"Invalid {panel_type} color panel value")

    return panel_type


def resolve_color_panel(
    panel_type: str | None,
    value: str | None,
    uploaded_url: str | None = None,
    required: bool = False,
) -> ColorPanel | None:
    """
    Validate a colour panel and return the value to store; an uploaded
    swatch URL wins over the declared value.
    """
    checked = check_color_panel(panel_type, value, has_file=bool(uploaded_url), required=required)
    if checked is None:
        return None
    return ColorPanel(type=checked, value=uploaded_url or (value or "").strip())
