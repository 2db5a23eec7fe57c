"""
Headless presentation surface.

The panel keeps one resolved style per appearance mode.  Rendering is left to
whatever front end reads :meth:`Panel.describe`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Optional, Tuple

from .models import AppearanceMode

if TYPE_CHECKING:  # pragma: no cover
    from .config import ConfigStore

LOG = logging.getLogger(__name__)

Color = Tuple[int, int, int, int]

DEFAULT_COLOR_SCHEME = "native"
DEFAULT_FONT_POINT = 15.0
DEFAULT_LAYOUT = "stacked"


@dataclass
class PanelStyle:
    color_scheme: str = DEFAULT_COLOR_SCHEME
    back_color: Optional[Color] = None
    text_color: Optional[Color] = None
    candidate_text_color: Optional[Color] = None
    hilited_candidate_back_color: Optional[Color] = None
    font_face: Optional[str] = None
    font_point: float = DEFAULT_FONT_POINT
    candidate_list_layout: str = DEFAULT_LAYOUT

    def to_dict(self) -> dict:
        return {
            "colorScheme": self.color_scheme,
            "backColor": self.back_color,
            "textColor": self.text_color,
            "candidateTextColor": self.candidate_text_color,
            "hilitedCandidateBackColor": self.hilited_candidate_back_color,
            "fontFace": self.font_face,
            "fontPoint": self.font_point,
            "candidateListLayout": self.candidate_list_layout,
        }


def resolve_style(config: "ConfigStore", mode: AppearanceMode) -> PanelStyle:
    scheme = config.get_string("style/color_scheme") or DEFAULT_COLOR_SCHEME
    if mode is AppearanceMode.DARK:
        scheme = config.get_string("style/color_scheme_dark") or scheme

    style = PanelStyle(
        color_scheme=scheme,
        font_face=config.get_string("style/font_face"),
        font_point=config.get_double("style/font_point") or DEFAULT_FONT_POINT,
        candidate_list_layout=config.get_string("style/candidate_list_layout") or DEFAULT_LAYOUT,
    )

    prefix = f"preset_color_schemes/{scheme}"
    if scheme != DEFAULT_COLOR_SCHEME and not config.has_key(prefix):
        LOG.warning("Color scheme %r is not defined; using native colors.", scheme)
        return style

    style.back_color = config.get_color(f"{prefix}/back_color")
    style.text_color = config.get_color(f"{prefix}/text_color")
    style.candidate_text_color = config.get_color(f"{prefix}/candidate_text_color")
    style.hilited_candidate_back_color = config.get_color(f"{prefix}/hilited_candidate_back_color")
    return style


class Panel:
    def __init__(self, position: Tuple[float, float] = (0.0, 0.0)) -> None:
        self.position = position
        self.visible = False
        self.styles: Dict[AppearanceMode, PanelStyle] = {}

    def load(self, config: "ConfigStore", mode: AppearanceMode) -> None:
        self.styles[mode] = resolve_style(config, mode)
        LOG.debug("Panel loaded %s style (%s)", mode.value, self.styles[mode].color_scheme)

    def hide(self) -> None:
        self.visible = False

    def describe(self) -> dict:
        return {
            "visible": self.visible,
            "position": list(self.position),
            "styles": {mode.value: style.to_dict() for mode, style in self.styles.items()},
        }
