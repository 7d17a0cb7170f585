"""Built-in colour schemes, used when the config file defines none."""
from typing import List, Optional, Sequence

from keylaunch.models import Theme

BUILTIN_THEMES: List[Theme] = [
    Theme("Ayu Dark", "#0F1419", "#BFBDB6", "#59C2FF", "#0F1419", "#1F2328"),
    Theme("Ayu Light", "#FAFAFA", "#5C6773", "#399EE6", "#FAFAFA", "#F0F0F0"),
    Theme("Catppuccin Frappe", "#303446", "#C6D0F5", "#8CAAEE", "#303446", "#414559"),
    Theme("Catppuccin Latte", "#EFF1F5", "#4C4F69", "#1E66F5", "#EFF1F5", "#BCC0CC"),
    Theme("Catppuccin Macchiato", "#24273A", "#CAD3F5", "#8AADF4", "#24273A", "#363A4F"),
    Theme("Catppuccin Mocha", "#1E1E2E", "#CDD6F4", "#89B4FA", "#1E1E2E", "#313244"),
    Theme("Dracula", "#282A36", "#F8F8F2", "#BD93F9", "#282A36", "#44475A"),
    Theme("Gruvbox Dark", "#282828", "#EBDBB2", "#FABD2F", "#282828", "#3C3836"),
    Theme("Gruvbox Light", "#FBF1C7", "#3C3836", "#D79921", "#FBF1C7", "#EBDBB2"),
    Theme("Nord", "#2E3440", "#D8DEE9", "#88C0D0", "#2E3440", "#4C566A"),
    Theme("Solarized Dark", "#002B36", "#839496", "#268BD2", "#002B36", "#073642"),
    Theme("Solarized Light", "#FDF6E3", "#657B83", "#268BD2", "#FDF6E3", "#EEE8D5"),
    Theme("Tokyo Night", "#1A1B26", "#C0CAF5", "#7AA2F7", "#1A1B26", "#292E42"),
]


def find_theme(themes: Sequence[Theme], name: str) -> Optional[Theme]:
    """Look up a theme by name, ignoring case."""
    wanted = name.lower()
    for theme in themes:
        if theme.name.lower() == wanted:
            return theme
    return None
