from __future__ import annotations

import io
import json
import re
import zipfile
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Set, Tuple

from island_engine import IslandResult, IslandGrid, island_to_grid, phrase_template


# -----------------------------------------------------------------------------
# Simple logger hook (optional; mirrors island_engine)
# -----------------------------------------------------------------------------
_LOGGER = None  # type: Optional[callable]


def set_logger(fn) -> None:
    """Allow the UI to inject a logger callback: fn(text: str)."""
    global _LOGGER
    _LOGGER = fn


def _log(msg: str) -> None:
    if _LOGGER:
        try:
            _LOGGER(msg)
            return
        except Exception:
            pass
    print(msg)


@dataclass
class Appearance:
    """
    Visual settings used by the SVG renderer.
    Keep this in sync with your UI fields.
    """
    # Sea around the island
    sea_color: Optional[str] = "#CFE8F7"
    sea_margin: int = 1                     # empty cells drawn around the island

    # Island cells
    cell_bg_color: str = "#F4E9C8"
    cell_line_color: str = "#8A7A55"
    cell_line_thickness: float = 1.0

    # Letters
    grid_font_family: str = "Arial"
    grid_font_size: int = 24
    grid_font_bold: bool = False
    grid_font_color: str = "#000000"

    # Shore cells (erodable) in the puzzle view
    show_shore: bool = False
    shore_color: str = "#E8D9A8"

    # --- Solution marking options ---
    solution_mark_color: str = "#D94242"
    solution_mark_opacity: float = 0.35
    solution_show_path: bool = True
    solution_path_width: float = 3.0
    solution_mark_start: bool = True

    # Border
    add_border: bool = False
    border_thickness: float = 2.0
    border_color: str = "#000000"
    border_distance: float = 2.0

    # --- Phrase block (template under the island) ---
    show_phrase: bool = True
    phrase_text: str = ""                    # full phrase (with punctuation/case)
    phrase_reveal: bool = False              # False: underscores, True: full phrase
    phrase_font_family: str = "Arial"
    phrase_font_size: int = 18
    phrase_font_bold: bool = False
    phrase_font_color: str = "#000000"
    phrase_align: str = "Center"             # "Left" | "Center" | "Right"
    phrase_line_spacing: float = 1.35
    phrase_width_factor: float = 0.62        # tuning knob for wrap width


# -----------------------------------------------------------------------------
# Tiny helper to build safe SVG text (no external lib, very basic)
# -----------------------------------------------------------------------------
def _esc(s: str) -> str:
    return (
        s.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


def _cell_size(appearance: Appearance) -> Tuple[int, int]:
    # cell becomes font_size * 1.6, with some padding
    cell = max(12, int(appearance.grid_font_size * 1.6))
    pad = int(cell * 0.4)
    return cell, pad


def _open_canvas(grid: IslandGrid, appearance: Appearance) -> Tuple[List[str], int, int]:
    """Start an SVG with sea, border and island cells. Returns (out, cell, pad)."""
    rows = len(grid.letters)
    cols = len(grid.letters[0]) if rows else 0
    cell, pad = _cell_size(appearance)
    grid_w = cols * cell
    grid_h = rows * cell
    total_w = grid_w + pad * 2
    total_h = grid_h + pad * 2

    out: List[str] = []
    out.append(
        f'<svg xmlns="http://www.w3.org/2000/svg" '
        f'width="{total_w}" height="{total_h}" '
        f'viewBox="0 0 {total_w} {total_h}">'
    )

    if appearance.sea_color:
        out.append(
            f'<rect x="0" y="0" width="{total_w}" height="{total_h}" '
            f'fill="{appearance.sea_color}" stroke="none" />'
        )

    # Optional border (around the grid box, offset by border_distance)
    if appearance.add_border:
        d = float(appearance.border_distance or 0.0)
        out.append(
            f'<rect x="{pad - d}" y="{pad - d}" width="{grid_w + 2 * d}" height="{grid_h + 2 * d}" '
            f'stroke="{appearance.border_color}" stroke-width="{appearance.border_thickness}" fill="none" />'
        )

    # Land cells only; the sea stays open
    stroke = appearance.cell_line_color
    sw = appearance.cell_line_thickness
    for r in range(rows):
        for c in range(cols):
            if not grid.letters[r][c]:
                continue
            fill = appearance.cell_bg_color
            if appearance.show_shore and grid.shore_mask[r][c]:
                fill = appearance.shore_color
            out.append(
                f'<rect x="{pad + c * cell}" y="{pad + r * cell}" width="{cell}" height="{cell}" '
                f'fill="{fill}" stroke="{stroke}" stroke-width="{sw}" />'
            )
    return out, cell, pad


def _draw_letters(out: List[str], grid: IslandGrid, appearance: Appearance, cell: int, pad: int) -> None:
    font_weight = "bold" if appearance.grid_font_bold else "normal"
    out.append(
        f'<g font-family="{_esc(appearance.grid_font_family)}" font-size="{appearance.grid_font_size}" '
        f'font-weight="{font_weight}" fill="{appearance.grid_font_color}">'
    )
    # Center letters in cells
    txt_dy = int(appearance.grid_font_size * 0.35)
    for r, row in enumerate(grid.letters):
        for c, ch in enumerate(row):
            if not ch:
                continue
            x = pad + c * cell + cell // 2
            y = pad + r * cell + cell // 2 + txt_dy
            out.append(f'<text x="{x}" y="{y}" text-anchor="middle">{_esc(ch)}</text>')
    out.append('</g>')


# -----------------------------------------------------------------------------
# Core renderers
# -----------------------------------------------------------------------------
def render_island_svg(result: IslandResult, appearance: Appearance) -> str:
    """
    Puzzle view: the island with every letter; walk and filler look alike.
    """
    grid = island_to_grid(result, margin=max(0, int(appearance.sea_margin)))
    out, cell, pad = _open_canvas(grid, appearance)
    _draw_letters(out, grid, appearance, cell, pad)
    out.append('</svg>')
    return "\n".join(out)


def render_solution_svg(result: IslandResult, appearance: Appearance) -> str:
    """
    Solution SVG:
      - Draw the island like the puzzle.
      - Highlight walk cells, trace the walk through the cell centers
        and ring the start cell.
    """
    grid = island_to_grid(result, margin=max(0, int(appearance.sea_margin)))
    out, cell, pad = _open_canvas(grid, appearance)
    color = appearance.solution_mark_color

    # --- Highlights behind letters ---
    for r, c in grid.path:
        out.append(
            f'<rect x="{pad + c * cell + 1}" y="{pad + r * cell + 1}" width="{cell - 2}" height="{cell - 2}" '
            f'fill="{color}" fill-opacity="{appearance.solution_mark_opacity}" stroke="none" />'
        )

    # --- Path line ---
    if appearance.solution_show_path and len(grid.path) > 1:
        pts = " ".join(
            f"{pad + c * cell + cell / 2:.1f},{pad + r * cell + cell / 2:.1f}" for r, c in grid.path
        )
        out.append(
            f'<polyline points="{pts}" fill="none" stroke="{color}" '
            f'stroke-width="{appearance.solution_path_width}" stroke-linecap="round" '
            f'stroke-linejoin="round" stroke-opacity="0.6" />'
        )

    # --- Start marker ---
    if appearance.solution_mark_start and grid.path:
        r, c = grid.path[0]
        out.append(
            f'<circle cx="{pad + c * cell + cell / 2:.1f}" cy="{pad + r * cell + cell / 2:.1f}" '
            f'r="{cell * 0.42:.1f}" fill="none" stroke="{color}" stroke-width="2" />'
        )

    _draw_letters(out, grid, appearance, cell, pad)
    out.append('</svg>')
    return "\n".join(out)


# ---------------- Phrase block (append to bottom of SVG) ----------------

def inject_phrase_block(svg_text: str, app: Appearance) -> str:
    """
    Append the phrase (as underscores, or revealed) as plain SVG <text>.
    Lines are wrapped approximately by character count. Safe for CairoSVG.
    """
    if not app.show_phrase:
        return svg_text
    phrase = app.phrase_text or ""
    if not phrase.strip():
        return svg_text
    shown = phrase.upper() if app.phrase_reveal else phrase_template(phrase)

    # --- read current canvas size
    m = re.search(r'viewBox="0\s+0\s+([\d.]+)\s+([\d.]+)"', svg_text)
    if not m:
        _log("phrase block: svg has no viewBox; skipped")
        return svg_text
    W = float(m.group(1)); H = float(m.group(2))

    # --- crude width model for wrapping: ~0.6 * font_size per char
    fs = float(app.phrase_font_size or 18)
    cell, pad = _cell_size(app)
    inner_w = max(40.0, W - 2 * pad)
    approx_char_w = max(5.0, float(app.phrase_width_factor or 0.62) * fs)
    max_chars = max(10, int(inner_w / approx_char_w))
    line_h = fs * float(app.phrase_line_spacing or 1.35)

    # --- greedy word wrap, never splitting a word
    lines: List[str] = []
    cur = ""
    for word in shown.split():
        if cur and len(cur) + 1 + len(word) > max_chars:
            lines.append(cur)
            cur = word
        else:
            cur = f"{cur} {word}" if cur else word
    if cur:
        lines.append(cur)

    align = (app.phrase_align or "Center").lower()
    if align.startswith("c"):
        anchor, x = "middle", W / 2.0
    elif align.startswith("r"):
        anchor, x = "end", W - pad
    else:
        anchor, x = "start", float(pad)

    # increase canvas height
    total_h = H + len(lines) * line_h + 10.0
    svg_text = re.sub(r'(<svg\b[^>]*\bviewBox="0\s+0\s+[\d.]+\s+)[\d.]+(")',
                      rf'\g<1>{total_h:.2f}\g<2>', svg_text, count=1)
    svg_text = re.sub(r'(<svg\b[^>]*\bheight=")[^"]+(")',
                      rf'\g<1>{total_h:.2f}\g<2>', svg_text, count=1)
    # stretch the sea to the new height
    svg_text = re.sub(r'(<rect x="0" y="0" width="[\d.]+" height=")[\d.]+(")',
                      rf'\g<1>{total_h:.2f}\g<2>', svg_text, count=1)

    weight = "bold" if app.phrase_font_bold else "normal"
    y0 = H + fs
    block = [
        f'<g class="phrase" font-family="{_esc(app.phrase_font_family or "Arial")}" '
        f'font-size="{fs:.2f}" fill="{_esc(app.phrase_font_color or "#000000")}" '
        f'font-weight="{weight}" letter-spacing="2">'
    ]
    for i, line in enumerate(lines):
        block.append(
            f'<text x="{x:.2f}" y="{y0 + i * line_h:.2f}" text-anchor="{anchor}" '
            f'xml:space="preserve">{_esc(line)}</text>'
        )
    block.append("</g>")
    return svg_text.replace("</svg>", "\n".join(block) + "\n</svg>")


def save_svg(svg_text: str, path: str) -> None:
    """Write an SVG string to disk."""
    with open(path, "w", encoding="utf-8") as f:
        f.write(svg_text)


# ---------------- Export (ZIP of every island) ----------------

def pack_islands_zip(
    islands: Iterable[Tuple[int, IslandResult, str, str]],
    formats: Set[str],
    to_png: Callable[..., bytes],
    to_pdf: Callable[..., bytes],
    Presentation=None,
    Inches=None,
) -> bytes:
    """
    Pack every island into one ZIP:
      island_NNN.svg / solution_NNN.svg, island_NNN.json (cell layout),
      optional .png / .pdf per SVG and one islands.pptx with a slide per island.
    A failed conversion becomes a *_ERROR.txt entry instead of aborting the ZIP.
    """
    mem = io.BytesIO()
    slides: List[bytes] = []
    with zipfile.ZipFile(mem, "w", zipfile.ZIP_DEFLATED) as zf:
        for idx, res, puz_svg, sol_svg in islands:
            stem = f"{idx:03d}"
            zf.writestr(f"island_{stem}.json", json.dumps(res.to_dict(), indent=1))
            for kind, text in (("island", puz_svg), ("solution", sol_svg)):
                name = f"{kind}_{stem}"
                zf.writestr(f"{name}.svg", text)
                data = text.encode("utf-8")
                for fmt, convert in (("png", to_png), ("pdf", to_pdf)):
                    if fmt not in formats:
                        continue
                    try:
                        zf.writestr(f"{name}.{fmt}", convert(bytestring=data))
                    except Exception as e:
                        zf.writestr(f"{name}.{fmt.upper()}_ERROR.txt",
                                    f"{fmt.upper()} conversion failed for {name}:\n{e}".encode("utf-8"))
                if "pptx" in formats and kind == "island":
                    try:
                        slides.append(to_png(bytestring=data))
                    except Exception as e:
                        zf.writestr(f"{name}.PPTX_IMAGE_ERROR.txt",
                                    f"PPTX image prep failed for {name}:\n{e}".encode("utf-8"))

        if slides and Presentation is not None:
            prs = Presentation()
            blank = prs.slide_layouts[6]
            for png in slides:
                slide = prs.slides.add_slide(blank)
                slide.shapes.add_picture(io.BytesIO(png), Inches(0.5), Inches(0.5), height=Inches(6.5))
            out = io.BytesIO(); prs.save(out)
            zf.writestr("islands.pptx", out.getvalue())
    return mem.getvalue()
