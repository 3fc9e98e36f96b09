"""
Nurikabe Step Viewer (Pygame)

Features:
- Pick a puzzle file from puzzles/ and load it into the background solver.
- Step once, or solve to the end (cancellable), without blocking the window.
- Browse every recorded step: new white cells are yellow, new black cells teal,
  cells whose guesses got stuck have a red outline.

Controls:
- Buttons: Step, Solve, Cancel, |< < > >|
- Left/Right arrow keys: previous/next step
- Pan: drag with LMB or MMB. Zoom: mouse wheel.
"""

import glob
import html
import os
import sys
from dataclasses import dataclass, field
from typing import Tuple, Optional, List

import pygame
import pygame_gui

from nurikabe_model import StepRecord, SitRep
from nurikabe_worker import SolverWorker, WorkerCommand
from nurikabe_drawing import Camera, draw_grid, pick_cell_from_mouse
from nurikabe_report import format_time
import grid_style


DRAG_THRESHOLD_PX = 6
PUZZLE_DIRS = ["puzzles"]


@dataclass
class ViewerState:
    puzzle_files: List[str] = field(default_factory=list)
    puzzle_name: str = ""
    steps: List[StepRecord] = field(default_factory=list)
    current: int = -1
    sitrep: SitRep = SitRep.KEEP_GOING
    known: int = 0
    cells: int = 0
    follow: bool = True  # jump to the newest step as it arrives

    @property
    def step(self) -> Optional[StepRecord]:
        if 0 <= self.current < len(self.steps):
            return self.steps[self.current]
        return None


def find_puzzle_files(dirs: List[str]) -> List[str]:
    files: List[str] = []
    for d in dirs:
        files.extend(glob.glob(os.path.join(d, "**", "*.txt"), recursive=True))
    return sorted(files)


def log_markup(lines: List[str]) -> str:
    return "<br>".join(html.escape(ln) for ln in lines)


def describe_step(state: ViewerState) -> str:
    step = state.step
    if step is None:
        return "No step."
    text = f"Step {state.current + 1}/{len(state.steps)} [{step.rule}] {step.message}"
    if state.current > 0:
        text += f" ({format_time(step.timestamp - state.steps[state.current - 1].timestamp)})"
    if step.failed_guesses:
        text += f"\n{step.failed_guesses} guesses failed."
    return text


def main() -> None:
    pygame.init()
    pygame.display.set_caption("Nurikabe Step Viewer")

    screen = pygame.display.set_mode((1200, 800), pygame.RESIZABLE)
    clock = pygame.time.Clock()
    font = pygame.font.SysFont("arial", 20)

    ui_manager = pygame_gui.UIManager(screen.get_size())

    controls_win = pygame_gui.elements.UIWindow(
        pygame.Rect(20, 20, 300, 520),
        ui_manager,
        window_display_title="Puzzles",
        resizable=True
    )
    controls_win.close_window_button.hide()
    log_win = pygame_gui.elements.UIWindow(
        pygame.Rect(20, 560, 620, 220),
        ui_manager,
        window_display_title="Log",
        resizable=True
    )
    log_win.close_window_button.hide()
    controls_win.set_minimum_dimensions((300, 520))
    log_win.set_minimum_dimensions((420, 180))

    files_list = pygame_gui.elements.UISelectionList(
        relative_rect=pygame.Rect(10, 10, 270, 260),
        item_list=[],
        manager=ui_manager,
        container=controls_win,
        anchors={"left": "left", "right": "right", "top": "top"}
    )
    btn_step = pygame_gui.elements.UIButton(pygame.Rect(10, 280, 85, 36), "Step", ui_manager, container=controls_win)
    btn_solve = pygame_gui.elements.UIButton(pygame.Rect(100, 280, 85, 36), "Solve", ui_manager, container=controls_win)
    btn_cancel = pygame_gui.elements.UIButton(pygame.Rect(190, 280, 85, 36), "Cancel", ui_manager, container=controls_win)
    btn_first = pygame_gui.elements.UIButton(pygame.Rect(10, 326, 62, 36), "|<", ui_manager, container=controls_win)
    btn_prev = pygame_gui.elements.UIButton(pygame.Rect(76, 326, 62, 36), "<", ui_manager, container=controls_win)
    btn_next = pygame_gui.elements.UIButton(pygame.Rect(142, 326, 62, 36), ">", ui_manager, container=controls_win)
    btn_last = pygame_gui.elements.UIButton(pygame.Rect(208, 326, 62, 36), ">|", ui_manager, container=controls_win)
    lbl_status = pygame_gui.elements.UILabel(pygame.Rect(10, 372, 270, 26), "No puzzle.", ui_manager, container=controls_win)
    pygame_gui.elements.UILabel(
        pygame.Rect(10, 402, 270, 60),
        "Pan: drag with LMB\nZoom: mouse wheel\nArrows: browse steps",
        ui_manager,
        container=controls_win
    )

    log_box = pygame_gui.elements.UITextBox(
        html_text="",
        relative_rect=pygame.Rect(10, 10, 600, 130),
        manager=ui_manager,
        container=log_win,
        anchors={"left": "left", "right": "right", "top": "top", "bottom": "bottom"}
    )

    state = ViewerState()
    camera = Camera()
    base_cell_size = grid_style.BASE_CELL_SIZE

    def center_camera(step: StepRecord) -> None:
        sw, sh = screen.get_size()
        camera.zoom = 1.0
        camera.offset_x = (sw - step.width * base_cell_size) * 0.5
        camera.offset_y = (sh - step.height * base_cell_size) * 0.5

    log_lines: List[str] = []

    def log_append(msg: str) -> None:
        for line in msg.splitlines():
            if line.strip():
                log_lines.append(line.strip())
        max_log_lines = 100
        if len(log_lines) > max_log_lines:
            del log_lines[0:len(log_lines) - max_log_lines]
        log_box.set_text(log_markup(log_lines))
        if log_box.scroll_bar is not None:
            log_box.scroll_bar.set_scroll_from_start_percentage(1.0)

    def show(index: int) -> None:
        if not state.steps:
            return
        state.current = max(0, min(len(state.steps) - 1, index))
        state.follow = state.current == len(state.steps) - 1
        log_append(describe_step(state))

    def update_status() -> None:
        lbl_status.set_text(f"{state.sitrep.value}: {state.known}/{state.cells} known")

    worker = SolverWorker()
    worker.start()

    def load_puzzle(path: str) -> None:
        try:
            with open(path, "r", encoding="utf-8") as f:
                text = f.read()
        except OSError as e:
            log_append(f"File read failed: {e}")
            return
        state.puzzle_name = os.path.basename(path)
        state.steps.clear()
        state.current = -1
        state.follow = True
        worker.send(WorkerCommand(kind="load", payload={"text": text}))
        log_append(f"Loading {state.puzzle_name}")

    state.puzzle_files = find_puzzle_files(PUZZLE_DIRS)
    files_list.set_item_list([os.path.relpath(p) for p in state.puzzle_files])

    if len(sys.argv) > 1:
        load_puzzle(sys.argv[1])
    elif state.puzzle_files:
        load_puzzle(state.puzzle_files[0])

    def is_over_ui(pos: Tuple[int, int]) -> bool:
        for w in (controls_win, log_win):
            if w.visible and w.get_abs_rect().collidepoint(pos):
                return True
        return False

    panning = False
    pan_last: Optional[Tuple[int, int]] = None
    lmb_down_pos: Optional[Tuple[int, int]] = None
    lmb_dragging = False

    running = True
    while running:
        time_delta = clock.tick(60) / 1000.0

        while True:
            res = worker.try_recv()
            if res is None:
                break
            if res.kind == "error":
                log_append(res.payload.get("message", "Worker error."))
                continue
            first_load = res.kind == "loaded"
            state.steps.extend(res.payload.get("steps", []))
            state.sitrep = res.payload.get("sitrep", state.sitrep)
            state.known = res.payload.get("known", state.known)
            state.cells = res.payload.get("cells", state.cells)
            update_status()
            if first_load and state.steps:
                center_camera(state.steps[0])
            if state.follow and state.steps and state.current != len(state.steps) - 1:
                show(len(state.steps) - 1)
            if res.kind == "finished":
                log_append(f"{state.puzzle_name}: {state.sitrep.value}.")

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
                break

            if event.type == pygame.VIDEORESIZE:
                screen = pygame.display.set_mode(event.size, pygame.RESIZABLE)
                ui_manager.set_window_resolution(event.size)

            ui_manager.process_events(event)

            if event.type == pygame_gui.UI_SELECTION_LIST_NEW_SELECTION and event.ui_element == files_list:
                selected = files_list.get_single_selection()
                if selected is not None:
                    load_puzzle(os.path.abspath(selected))

            if event.type == pygame_gui.UI_BUTTON_PRESSED:
                if event.ui_element == btn_step:
                    state.follow = True
                    worker.send(WorkerCommand(kind="step"))
                elif event.ui_element == btn_solve:
                    state.follow = True
                    worker.send(WorkerCommand(kind="solve"))
                elif event.ui_element == btn_cancel:
                    worker.send(WorkerCommand(kind="cancel"))
                    log_append("Cancel requested.")
                elif event.ui_element == btn_first:
                    show(0)
                elif event.ui_element == btn_prev:
                    show(state.current - 1)
                elif event.ui_element == btn_next:
                    show(state.current + 1)
                elif event.ui_element == btn_last:
                    show(len(state.steps) - 1)

            if event.type == pygame.KEYDOWN:
                if event.key == pygame.K_LEFT:
                    show(state.current - 1)
                elif event.key == pygame.K_RIGHT:
                    show(state.current + 1)

            if event.type == pygame.MOUSEWHEEL:
                if not is_over_ui(pygame.mouse.get_pos()):
                    if event.y > 0:
                        camera.zoom_at(pygame.mouse.get_pos(), 1.1, 0.2, 6.0)
                    elif event.y < 0:
                        camera.zoom_at(pygame.mouse.get_pos(), 1.0 / 1.1, 0.2, 6.0)

            if event.type == pygame.MOUSEBUTTONDOWN and event.button in (1, 2):
                if not is_over_ui(event.pos):
                    lmb_down_pos = event.pos
                    lmb_dragging = event.button == 2
                    panning = event.button == 2
                    pan_last = event.pos

            if event.type == pygame.MOUSEMOTION and lmb_down_pos is not None:
                if not lmb_dragging:
                    sx, sy = lmb_down_pos
                    if abs(event.pos[0] - sx) >= DRAG_THRESHOLD_PX or abs(event.pos[1] - sy) >= DRAG_THRESHOLD_PX:
                        lmb_dragging = True
                        panning = True
                if panning and pan_last is not None:
                    camera.offset_x += event.pos[0] - pan_last[0]
                    camera.offset_y += event.pos[1] - pan_last[1]
                    pan_last = event.pos

            if event.type == pygame.MOUSEBUTTONUP and event.button in (1, 2):
                if lmb_down_pos is not None and not lmb_dragging and state.step is not None:
                    cell = pick_cell_from_mouse(state.step, camera, base_cell_size, event.pos)
                    if cell is not None:
                        x, y = cell
                        log_append(f"Cell ({x},{y}) state={state.step.cells[y][x]}")
                lmb_down_pos = None
                lmb_dragging = False
                panning = False
                pan_last = None

        can_step = state.sitrep is SitRep.KEEP_GOING and bool(state.steps)
        for btn in (btn_step, btn_solve):
            if can_step:
                btn.enable()
            else:
                btn.disable()

        ui_manager.update(time_delta)

        screen.fill(grid_style.COLOR_BG)
        if state.step is not None:
            draw_grid(screen, state.step, camera, base_cell_size, font)
        ui_manager.draw_ui(screen)
        pygame.display.flip()

    worker.stop()
    pygame.quit()


if __name__ == "__main__":
    main()
