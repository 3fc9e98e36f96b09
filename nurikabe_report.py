import html
from collections import Counter
from typing import List, Sequence, TextIO, Tuple

from nurikabe_model import NurikabeModel, StepRecord, UNKNOWN, WHITE, BLACK

Cells = Sequence[Sequence[int]]

STATE_SYMBOLS = {UNKNOWN: "?", WHITE: ".", BLACK: "#"}


def format_time(seconds: float) -> str:
    if seconds < 1e-3:
        return f"{seconds * 1e6:g} microseconds"
    if seconds < 1.0:
        return f"{seconds * 1e3:g} milliseconds"
    return f"{seconds:g} seconds"


def render_text(cells: Cells) -> str:
    """Render a cells[y][x] snapshot in the state-text format."""
    width = max((len(str(s)) for row in cells for s in row if s > 0), default=1)
    lines = []
    for row in cells:
        lines.append(" ".join(STATE_SYMBOLS.get(s, str(s)).rjust(width) for s in row))
    return "\n".join(lines)


def serialize_grid(model: NurikabeModel) -> List[List[str]]:
    """Converts the grid state into a list of strings for JSON serialization."""
    names = {UNKNOWN: "UNKNOWN", WHITE: "WHITE", BLACK: "BLACK"}
    return [
        [names.get(s, f"CLUE({s})") for s in row]
        for row in model.cells
    ]


_STYLE = """\
      body {
        font-family: Verdana, sans-serif;
        line-height: 1.4;
      }
      table {
        border: solid 3px #000000;
        border-collapse: collapse;
      }
      td {
        border: solid 1px #000000;
        text-align: center;
        width: 20px;
        height: 20px;
      }
      td.unknown   { background-color: #C0C0C0; }
      td.white.new { background-color: #FFFF00; }
      td.white.old { }
      td.black.new { background-color: #008080; }
      td.black.old { background-color: #808080; }
      td.number    { }
      td.failed    { border: solid 3px #000000; }
"""


def _html_cell(state: int, new: bool, failed: bool) -> str:
    classes = ["new" if new else "old"]
    if failed:
        classes.append("failed")
    if state == UNKNOWN:
        classes.append("unknown")
        text = " "
    elif state == WHITE:
        classes.append("white")
        text = "."
    elif state == BLACK:
        classes.append("black")
        text = "#"
    else:
        classes.append("number")
        text = str(state)
    return f'<td class="{" ".join(classes)}">{text}</td>'


def write_html(stream: TextIO, steps: Sequence[StepRecord], start: float, finish: float,
               title: str = "Nurikabe") -> None:
    """Write the step log as an HTML page. start/finish are perf_counter readings."""
    stream.write(
        "<!DOCTYPE html>\n"
        "<html>\n"
        "  <head>\n"
        '    <meta http-equiv="Content-Type" content="text/html;charset=utf-8" />\n'
        '    <style type="text/css">\n'
        f"{_STYLE}"
        "    </style>\n"
        f"    <title>{html.escape(title)}</title>\n"
        "  </head>\n"
        "  <body>\n"
    )

    old = start
    for step in steps:
        stream.write(f"{html.escape(step.message)} ({format_time(step.timestamp - old)})\n")
        old = step.timestamp

        if step.failed_guesses == 1:
            stream.write("<br/>1 guess failed.\n")
        elif step.failed_guesses > 0:
            stream.write(f"<br/>{step.failed_guesses} guesses failed.\n")

        stream.write("<table>\n")
        for y, row in enumerate(step.cells):
            tds = "".join(
                _html_cell(s, (x, y) in step.changed, (x, y) in step.failed_coords)
                for x, s in enumerate(row)
            )
            stream.write(f"<tr>{tds}</tr>\n")
        stream.write("</table><br/>\n")

    stream.write(f"Total: {format_time(finish - start)}\n")
    stream.write("  </body>\n</html>\n")


def progress_line(name: str, elapsed: float, known: int, cells: int) -> str:
    return f"{name}: {format_time(elapsed)}, {known}/{cells} ({known * 100.0 / cells:g}%) solved"


def summarize_rules(steps: Sequence[StepRecord]) -> List[Tuple[str, int]]:
    counts = Counter(step.rule for step in steps if step.changed)
    return sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
