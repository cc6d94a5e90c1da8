"""
Icon index
==========

The merchant app lets merchants pick punch icons from ~30 icon libraries.
At startup every library's SVG assets are read once into a flat in-memory
list; searches are linear scans over it.

Layout on disk:
    <icons_dir>/<library key>/<icon stem>.svg     e.g. fi/shopping-bag.svg

The index is built once and only read afterwards, so request handlers share
it without locking.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

log = logging.getLogger("epunch.icons")

DEFAULT_ICONS_DIR = Path(__file__).resolve().parent / "assets"
DEFAULT_VIEWBOX = "0 0 24 24"

_VIEWBOX_RE = re.compile(r'viewBox="([^"]+)"')
_NON_WORD_RE = re.compile(r"[^a-zA-Z0-9\s]")

# (key, library name, identifier prefix)
ICON_LIBRARIES: List[Tuple[str, str, str]] = [
    ("ai", "Ant Design Icons", "Ai"),
    ("bi", "Boxicons", "Bi"),
    ("bs", "Bootstrap Icons", "Bs"),
    ("ci", "Circum Icons", "Ci"),
    ("di", "Devicons", "Di"),
    ("fa", "Font Awesome 5", "Fa"),
    ("fa6", "Font Awesome 6", "Fa6"),
    ("fc", "Flat Color Icons", "Fc"),
    ("fi", "Feather Icons", "Fi"),
    ("gi", "Game Icons", "Gi"),
    ("go", "Github Octicons", "Go"),
    ("gr", "Grommet Icons", "Gr"),
    ("hi", "Heroicons", "Hi"),
    ("hi2", "Heroicons 2", "Hi2"),
    ("im", "IcoMoon Free", "Im"),
    ("io", "Ionicons 4", "Io"),
    ("io5", "Ionicons 5", "Io5"),
    ("lia", "Line Awesome", "Lia"),
    ("lu", "Lucide Icons", "Lu"),
    ("md", "Material Design Icons", "Md"),
    ("pi", "Phosphor Icons", "Pi"),
    ("ri", "Remix Icons", "Ri"),
    ("rx", "Radix Icons", "Rx"),
    ("si", "Simple Icons", "Si"),
    ("sl", "Simple Line Icons", "Sl"),
    ("tb", "Tabler Icons", "Tb"),
    ("tfi", "Themify Icons", "Tfi"),
    ("ti", "Typicons", "Ti"),
    ("vsc", "VS Code Icons", "Vsc"),
    ("wi", "Weather Icons", "Wi"),
]

TAG_ALIASES: Dict[str, List[str]] = {
    "home": ["house", "dashboard"],
    "user": ["person", "profile", "account"],
    "settings": ["gear", "config", "options", "cog"],
    "search": ["find", "magnify", "lookup"],
    "mail": ["email", "envelope", "message"],
    "phone": ["telephone", "call"],
    "heart": ["love", "like", "favorite"],
    "star": ["favorite", "rating"],
    "coffee": ["cup", "drink", "caffeine"],
    "car": ["vehicle", "auto", "drive"],
    "play": ["start", "run"],
    "pause": ["stop", "halt"],
    "check": ["tick", "confirm", "done"],
    "close": ["x", "cancel", "exit"],
    "add": ["plus", "create", "new"],
    "remove": ["delete", "minus", "trash"],
    "edit": ["pencil", "modify", "change"],
    "save": ["download", "export"],
    "upload": ["import", "add"],
    "view": ["eye", "show", "visible"],
    "hide": ["eyeoff", "hidden", "invisible"],
    "lock": ["secure", "private"],
    "unlock": ["open", "public"],
}


@dataclass(frozen=True)
class Icon:
    name: str
    display_name: str
    library: str
    library_name: str
    tags: Tuple[str, ...] = ()
    svg_content: Optional[str] = None
    default_props: Optional[Dict[str, Any]] = field(default=None, compare=False)


def pascal_case(stem: str) -> str:
    """shopping-bag / shopping_bag -> ShoppingBag"""
    parts = re.split(r"[-_\s]+", stem.strip())
    return "".join(p[:1].upper() + p[1:] for p in parts if p)


def format_display_name(name: str) -> str:
    return re.sub(r"([A-Z])", r" \1", name).strip()


def generate_tags(name: str, display_name: str) -> Tuple[str, ...]:
    tags: Dict[str, None] = {}

    def add(tag: str) -> None:
        tags.setdefault(tag, None)

    add(name.lower())
    add(display_name.lower())
    for word in _NON_WORD_RE.sub(" ", display_name.lower()).split():
        if len(word) > 1:
            add(word)

    current = list(tags)
    for key, aliases in TAG_ALIASES.items():
        if any(key in tag for tag in current):
            for alias in aliases:
                add(alias)

    return tuple(tags)


def extract_svg(markup: str) -> Tuple[Optional[str], Optional[Dict[str, Any]]]:
    if not markup or "<svg" not in markup:
        return None, None
    m = _VIEWBOX_RE.search(markup)
    default_props = {
        "viewBox": m.group(1) if m else DEFAULT_VIEWBOX,
        "width": 24,
        "height": 24,
        "fill": "currentColor",
    }
    return markup.strip(), default_props


class IconIndex:
    def __init__(self) -> None:
        self._icons: List[Icon] = []
        self._svg_cache: Dict[str, str] = {}
        self._built = False

    @property
    def built(self) -> bool:
        return self._built

    def __len__(self) -> int:
        return len(self._icons)

    def build(self, icons_dir: Optional[Path] = None) -> int:
        root = Path(icons_dir) if icons_dir else DEFAULT_ICONS_DIR
        log.info("Building in-memory icon index from %s", root)

        icons: List[Icon] = []
        empty: List[str] = []
        for key, lib_name, prefix in ICON_LIBRARIES:
            try:
                loaded = self._load_library(root / key, key, lib_name, prefix)
            except (OSError, UnicodeDecodeError) as e:
                log.error("Failed to load %s: %s", lib_name, e)
                continue
            if not loaded:
                empty.append(key)
            icons.extend(loaded)

        if empty:
            log.info("No icon assets for %d libraries: %s", len(empty), ", ".join(empty))

        self._icons = icons
        self._svg_cache = {i.name: i.svg_content for i in icons if i.svg_content}
        self._built = True
        log.info("Built icon index with %d icons", len(icons))
        return len(icons)

    def _load_library(self, lib_dir: Path, key: str, lib_name: str, prefix: str) -> List[Icon]:
        if not lib_dir.is_dir():
            return []

        out: List[Icon] = []
        for path in sorted(lib_dir.glob("*.svg")):
            base = pascal_case(path.stem)
            name = prefix + base
            display_name = format_display_name(base)
            svg_content, default_props = extract_svg(path.read_text(encoding="utf-8"))
            if svg_content is None:
                log.debug("%s: no SVG content in %s", name, path.name)
            out.append(Icon(
                name=name,
                display_name=display_name,
                library=key,
                library_name=lib_name,
                tags=generate_tags(name, display_name),
                svg_content=svg_content,
                default_props=default_props,
            ))
        return out

    def svg(self, name: str) -> Optional[str]:
        return self._svg_cache.get(name)

    def search(self, query: Optional[str] = None, limit: int = 50, offset: int = 0) -> Tuple[List[Icon], int]:
        """
        Substring search over identifier, display name and tags.

        Ranking: exact identifier, then display name prefix, then identifier
        order (case-insensitive). An empty query returns the index as built.
        """
        icons = self._icons
        if query and query.strip():
            term = query.strip().lower()
            icons = [
                i for i in icons
                if term in i.name.lower()
                or term in i.display_name.lower()
                or any(term in tag for tag in i.tags)
            ]
            icons = sorted(
                icons,
                key=lambda i: (
                    i.name.lower() != term,
                    not i.display_name.lower().startswith(term),
                    i.name.lower(),
                ),
            )

        total = len(icons)
        return icons[offset:offset + limit], total


icon_index = IconIndex()
