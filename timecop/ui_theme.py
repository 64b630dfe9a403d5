"""UI theme definitions and selection helpers.

Themes are UI-only ANSI palettes (borders, file status, diff chrome, status
bar). Syntax highlighting style for code remains a separate setting.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class UITheme:
    """Semantic ANSI palette used by renderers."""

    name: str
    reset: str
    reverse: str
    muted: str
    border: str
    border_focused: str
    title: str
    title_focused: str
    diff_header: str
    diff_info: str
    diff_added: str
    diff_removed: str
    added_bg: str  # bare SGR parameters, kept active under syntax colors
    removed_bg: str
    gutter: str
    blame: str
    folder: str
    status_modified: str
    status_added: str
    status_deleted: str
    status_renamed: str
    uncommitted: str
    status_bar: str
    timeline_active: str
    timeline_inactive: str
    help_heading: str
    help_key: str
    error: str


DEFAULT_THEME = UITheme(
    name="default",
    reset="\033[0m",
    reverse="\033[7m",
    muted="\033[2;38;5;250m",
    border="\033[38;5;240m",
    border_focused="\033[38;5;45m",
    title="\033[38;5;250m",
    title_focused="\033[1;38;5;45m",
    diff_header="\033[1;38;5;81m",
    diff_info="\033[38;5;109m",
    diff_added="\033[38;5;42m",
    diff_removed="\033[38;5;203m",
    added_bg="48;2;36;74;52",
    removed_bg="48;2;92;43;49",
    gutter="\033[38;5;242m",
    blame="\033[38;5;139m",
    folder="\033[1;34m",
    status_modified="\033[38;5;214m",
    status_added="\033[38;5;42m",
    status_deleted="\033[38;5;203m",
    status_renamed="\033[38;5;81m",
    uncommitted="\033[38;5;229m",
    status_bar="\033[48;5;236;38;5;252m",
    timeline_active="\033[1;38;5;196m",
    timeline_inactive="\033[38;5;244m",
    help_heading="\033[1;38;5;81m",
    help_key="\033[38;5;229m",
    error="\033[1;38;5;203m",
)

OCEAN_THEME = UITheme(
    name="ocean",
    reset="\033[0m",
    reverse="\033[7m",
    muted="\033[2;38;5;110m",
    border="\033[2;38;5;31m",
    border_focused="\033[38;5;39m",
    title="\033[38;5;153m",
    title_focused="\033[1;38;5;39m",
    diff_header="\033[1;38;5;45m",
    diff_info="\033[38;5;73m",
    diff_added="\033[38;5;84m",
    diff_removed="\033[38;5;210m",
    added_bg="48;2;24;64;72",
    removed_bg="48;2;84;40;64",
    gutter="\033[38;5;67m",
    blame="\033[38;5;117m",
    folder="\033[1;38;5;45m",
    status_modified="\033[38;5;215m",
    status_added="\033[38;5;84m",
    status_deleted="\033[38;5;210m",
    status_renamed="\033[38;5;117m",
    uncommitted="\033[38;5;153m",
    status_bar="\033[48;5;24;38;5;231m",
    timeline_active="\033[1;38;5;209m",
    timeline_inactive="\033[38;5;67m",
    help_heading="\033[1;38;5;45m",
    help_key="\033[38;5;153m",
    error="\033[1;38;5;210m",
)

PLAIN_THEME = UITheme(
    name="plain",
    reset="",
    reverse="\033[7m",
    muted="",
    border="",
    border_focused="",
    title="",
    title_focused="",
    diff_header="",
    diff_info="",
    diff_added="",
    diff_removed="",
    added_bg="",
    removed_bg="",
    gutter="",
    blame="",
    folder="",
    status_modified="",
    status_added="",
    status_deleted="",
    status_renamed="",
    uncommitted="",
    status_bar="",
    timeline_active="\033[7m",
    timeline_inactive="",
    help_heading="",
    help_key="",
    error="",
)

_THEMES: dict[str, UITheme] = {
    DEFAULT_THEME.name: DEFAULT_THEME,
    OCEAN_THEME.name: OCEAN_THEME,
}


def available_theme_names() -> tuple[str, ...]:
    """Return selectable non-plain theme names."""
    return tuple(sorted(_THEMES.keys()))


def normalize_theme_name(name: str | None) -> str:
    """Return a valid theme name, falling back to default."""
    candidate = str(name or "").strip().lower()
    if candidate in _THEMES:
        return candidate
    return DEFAULT_THEME.name


def resolve_theme(name: str | None, *, no_color: bool = False) -> UITheme:
    """Return concrete theme for requested name and color mode."""
    if no_color:
        return PLAIN_THEME
    return _THEMES[normalize_theme_name(name)]
