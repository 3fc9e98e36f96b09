import argparse
import glob
import os
import sys
import time
from typing import Any, Dict, List, Optional

from nurikabe_model import NurikabeModel, PuzzleError, SitRep, DEFAULT_SEED
from nurikabe_rules import NurikabeSolver
from nurikabe_report import progress_line, render_text, summarize_rules, write_html


def collect_puzzle_files(paths: List[str]) -> List[str]:
    files: List[str] = []
    for path in paths:
        if os.path.isdir(path):
            files.extend(sorted(glob.glob(os.path.join(path, "**", "*.txt"), recursive=True)))
        else:
            files.append(path)
    return files


def puzzle_name(path: str) -> str:
    name = os.path.basename(path)
    for suffix in (".nu.txt", ".txt"):
        if name.endswith(suffix):
            return name[:-len(suffix)]
    return name


def run_solver(model: NurikabeModel, guessing: bool = True,
               timeout: Optional[float] = None) -> Dict[str, Any]:
    """Solve until a terminal situation or the timeout. Returns the run's stats."""
    solver = NurikabeSolver(model, guessing=guessing)
    start = solver.steps[0].timestamp

    sitrep = SitRep.KEEP_GOING
    timed_out = False
    while sitrep is SitRep.KEEP_GOING:
        if timeout is not None and time.perf_counter() - start > timeout:
            timed_out = True
            break
        sitrep = solver.solve()

    return {
        "solver": solver,
        "sitrep": sitrep,
        "timed_out": timed_out,
        "start": start,
        "finish": time.perf_counter(),
    }


def solve_file(path: str, args: argparse.Namespace) -> bool:
    name = puzzle_name(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            model = NurikabeModel.from_text(f.read(), seed=args.seed)
    except OSError as e:
        print(f"Error: cannot read '{path}': {e}")
        return False
    except PuzzleError as e:
        print(f"Error parsing grid '{path}': {e}")
        return False

    result = run_solver(model, guessing=not args.no_guessing, timeout=args.timeout)
    solver = result["solver"]
    elapsed = result["finish"] - result["start"]

    status = "TIMEOUT" if result["timed_out"] else result["sitrep"].name
    print(f"{progress_line(name, elapsed, model.known(), model.area)} [{status}]")

    if not args.quiet:
        print(render_text(model.cells))
        for rule, count in summarize_rules(solver.steps):
            print(f"    {rule:<30} {count:>5}")
        print()

    if args.html_dir:
        os.makedirs(args.html_dir, exist_ok=True)
        with open(os.path.join(args.html_dir, name + ".html"), "w", encoding="utf-8") as f:
            write_html(f, solver.steps, result["start"], result["finish"], title=name)

    if args.png_dir:
        # Imported here so that plain solving doesn't need pygame.
        import pygame
        from nurikabe_drawing import render_step_image

        pygame.font.init()
        os.makedirs(args.png_dir, exist_ok=True)
        render_step_image(solver.steps[-1], os.path.join(args.png_dir, name + ".png"))

    return result["sitrep"] is not SitRep.CONTRADICTION_FOUND


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Nurikabe Solver")
    parser.add_argument("paths", nargs="+",
                        help="Puzzle files (.nu.txt) or directories searched recursively for .txt files.")
    parser.add_argument("--html-dir", help="Write an HTML report of every step into this directory.")
    parser.add_argument("--png-dir", help="Write the final grid as a PNG into this directory.")
    parser.add_argument("--no-guessing", action="store_true", help="Disable hypothetical analysis.")
    parser.add_argument("--seed", type=int, default=DEFAULT_SEED, help="Seed for the guessing order.")
    parser.add_argument("--timeout", type=float, default=None,
                        help="Stop a puzzle after this many seconds (checked between steps).")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only print one line per puzzle.")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    files = collect_puzzle_files(args.paths)
    if not files:
        print("No puzzle files found.")
        return 1

    ok = True
    for path in files:
        if not solve_file(path, args):
            ok = False
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
