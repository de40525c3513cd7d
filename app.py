import io, csv, random
import streamlit as st
import re
from pathlib import Path



def load_css(path: str | Path) -> None:
    css_path = Path(path)
    css = css_path.read_text(encoding="utf-8")
    st.markdown(f"<style>{css}</style>", unsafe_allow_html=True)





# ---- preview helper: scale an SVG to a target pixel width (keeps aspect) ----

def _scale_svg_for_preview(svg_text: str, target_width_px: int) -> tuple[str, int]:
    """
    Returns (scaled_svg_text, new_height_px).
    Only used for UI preview; original SVGs stay full size for ZIP/PNG/PDF.
    """
    s = svg_text
    m = re.search(r'viewBox="0\s+0\s+([\d.]+)\s+([\d.]+)"', s)
    if not m:
        return s, 600  # fallback
    vw, vh = float(m.group(1)), float(m.group(2))

    scale = max(0.05, float(target_width_px) / max(1.0, vw))
    new_h = max(50, int(round(vh * scale)))

    # rewrite width/height only on the <svg ...> tag
    s = re.sub(r'(<svg\b[^>]*\bwidth=")[^"]+(")',  rf'\g<1>{int(target_width_px)}\g<2>', s, count=1)
    s = re.sub(r'(<svg\b[^>]*\bheight=")[^"]+(")', rf'\g<1>{new_h}\g<2>',            s, count=1)
    if 'preserveAspectRatio' not in s[:400]:
        s = re.sub(r'<svg\b', '<svg preserveAspectRatio="xMidYMid meet"', s, count=1)
    return s, new_h


def _phrases_from_text(text: str) -> list[str]:
    """One phrase per non-empty line."""
    return [ln.strip() for ln in (text or "").splitlines() if ln.strip()]


def _csv_table(upload) -> list[list[str]]:
    """Rows of an uploaded CSV; reading does not consume or close the upload."""
    text = upload.getvalue().decode("utf-8-sig")
    return [[c.strip() for c in r] for r in csv.reader(io.StringIO(text))]


st.set_page_config(page_title="Island Puzzle Generator", layout="wide")
load_css(Path(__file__).with_name("styles.css"))
st.title("Island Puzzle Generator")


# --- Controls in the sidebar ---
with st.sidebar:
    tab_create, tab_settings = st.tabs(["Create Islands", "Settings"])

    # ---------------------------
    # TAB 1: Create Islands
    # ---------------------------
    with tab_create:
        r1c1, r1c2 = st.columns(2)
        with r1c1:
            n_puzzles = st.number_input("# islands", 1, 100, 6, format="%d")
        with r1c2:
            ring_count = st.number_input("Rings", 1, 3, 3, format="%d")

        r2c1, r2c2 = st.columns(2)
        with r2c1:
            removal_pct = st.number_input("Pair removal %", 0, 90, 25, format="%d")
        with r2c2:
            max_attempts = st.number_input("Walk attempts", 1, 50, 5, format="%d")

        length_category = st.selectbox("Phrase length", ["all", "short", "medium", "long"])
        seed = st.text_input("Seed (optional)", "")

        csv_file = st.file_uploader("CSV: phrase, letterlist, meaning, era, ...", type=["csv"])
        eras = ["all"]
        if csv_file is not None:
            try:
                import island_engine as eng
                eras += eng.available_eras(eng.phrase_rows_from_table(_csv_table(csv_file)))
            except Exception as e:
                st.warning(f"Could not read eras from the CSV: {e}")
        era = st.selectbox("Era", eras, disabled=len(eras) == 1)
        typed = st.text_area("…or type phrases (one per line)", "")

        go = st.button(
            "Generate", type="primary", use_container_width=True,
            disabled=(csv_file is None and not typed.strip()),
        )

    # ---------------------------
    # TAB 2: Settings
    # ---------------------------
    with tab_settings:
        st.caption("Output formats")
        make_png  = st.checkbox("Also make PNG", value=True)
        make_pdf  = st.checkbox("Also make PDF", value=False)
        make_pptx = st.checkbox("Also make PPTX (simple insert)", value=False)

        st.caption("Look")
        show_shore = st.checkbox("Tint shore (erodable) cells", value=False)
        show_phrase = st.checkbox("Show phrase template", value=True)

        st.caption("Preview")
        size_label2 = st.select_slider("Preview size", options=["Small","Medium","Large"], value="Medium")
        PREVIEW_W = {"Small": 420, "Medium": 560, "Large": 720}[size_label2]





if go:
    # --- Import inside the button, so errors show on page ---
    try:
        import island_engine as eng
    except Exception as e:
        st.error("Failed to import island_engine.py")
        st.exception(e)
        st.stop()

    try:
        import svg_renderer as svg
    except Exception as e:
        st.error("Failed to import svg_renderer.py")
        st.exception(e)
        st.stop()

    try:
        from cairosvg import svg2png, svg2pdf
    except Exception as e:
        st.error("cairosvg not installed or failed to import")
        st.exception(e)
        st.stop()

    try:
        from pptx import Presentation
        from pptx.util import Inches
    except Exception as e:
        if make_pptx:
            st.error("python-pptx failed to import")
            st.exception(e)
            st.stop()
        else:
            Presentation = Inches = None  # not used

    log_lines: list[str] = []
    eng.set_logger(log_lines.append)
    svg.set_logger(log_lines.append)

    # --- Read phrases ---
    try:
        if csv_file is not None:
            rows = eng.phrase_rows_from_table(_csv_table(csv_file))
        else:
            rows = [eng.PhraseRow(phrase=p, lettercount=len(eng.normalize_letters(p)))
                    for p in _phrases_from_text(typed)]
    except Exception as e:
        st.error("Could not read phrases")
        st.exception(e)
        st.stop()

    rows = [r for r in rows if eng.normalize_letters(r.text)]
    if not rows:
        st.error("No usable phrases found.")
        st.stop()

    try:
        spec = eng.IslandSpec(
            ring_count=int(ring_count),
            max_attempts=int(max_attempts),
            removal_fraction=float(removal_pct) / 100.0,
            seed=seed or None,
        )
    except ValueError as e:
        st.error(f"Invalid settings: {e}")
        st.stop()

    rng = random.Random(seed or None)
    picks = eng.pick_phrases(rows, rng, int(n_puzzles), length_category, era)
    pool = [r.text for r in rows]

    islands = []

    try:
        for idx, row in enumerate(picks, 1):
            res = eng.generate_island_with_fallback(row.text, pool, spec, rng)
            if res is None:
                st.warning(f"Could not lay out phrase #{idx} ('{row.phrase}'); skipping.")
                continue

            look = svg.Appearance(
                show_shore=show_shore,
                show_phrase=show_phrase,
                phrase_text=res.phrase,
            )

            puz_svg = svg.inject_phrase_block(svg.render_island_svg(res, look), look)

            look.phrase_reveal = True
            sol_svg = svg.inject_phrase_block(svg.render_solution_svg(res, look), look)

            islands.append((idx, res, puz_svg, sol_svg))

    except Exception as e:
        st.error("Island generation/rendering failed")
        st.exception(e)
        st.stop()


    # --- Previews (tabs) ---
    tab_puz, tab_sol, tab_log = st.tabs(["Preview — Island", "Preview — Solution", "Log"])
    first = islands[0] if islands else None

    with tab_puz:
        if first:
            svgp, hp = _scale_svg_for_preview(first[2], PREVIEW_W)
            st.components.v1.html(svgp, height=hp + 6, scrolling=False)
            st.caption(f"{first[1].template}  ({first[1].attempts} walk attempt(s))")
        else:
            st.info("No preview available.")

    with tab_sol:
        if first:
            svg_sol_preview, hs = _scale_svg_for_preview(first[3], PREVIEW_W)
            st.components.v1.html(svg_sol_preview, height=hs + 6, scrolling=False)
        else:
            st.info("No preview available.")

    with tab_log:
        st.code("\n".join(log_lines) or "(empty)")


    # --- ZIP outputs ---
    formats = {fmt for fmt, on in (("png", make_png), ("pdf", make_pdf), ("pptx", make_pptx)) if on}
    try:
        data = svg.pack_islands_zip(islands, formats, svg2png, svg2pdf, Presentation, Inches)
        st.download_button("Download ZIP", data=data, file_name="islands.zip", mime="application/zip")
    except Exception as e:
        st.error("Failed to package outputs")
        st.exception(e)
        st.stop()
