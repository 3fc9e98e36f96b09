import math
import pygame
from dataclasses import dataclass
from typing import Tuple, Optional, AbstractSet
from nurikabe_model import StepRecord, Coord, UNKNOWN, WHITE, BLACK
import grid_style


@dataclass
class Camera:
    offset_x: float = 0.0
    offset_y: float = 0.0
    zoom: float = 1.0

    def screen_to_world(self, sx: float, sy: float) -> Tuple[float, float]:
        return (sx - self.offset_x) / self.zoom, (sy - self.offset_y) / self.zoom

    def world_to_screen(self, wx: float, wy: float) -> Tuple[float, float]:
        return wx * self.zoom + self.offset_x, wy * self.zoom + self.offset_y

    def zoom_at(self, mouse_pos: Tuple[int, int], zoom_factor: float, min_zoom: float, max_zoom: float) -> None:
        mx, my = mouse_pos
        wx, wy = self.screen_to_world(mx, my)

        new_zoom = self.zoom * zoom_factor
        new_zoom = max(min_zoom, min(max_zoom, new_zoom))
        if abs(new_zoom - self.zoom) < 1e-9:
            return

        self.zoom = new_zoom
        self.offset_x = mx - wx * self.zoom
        self.offset_y = my - wy * self.zoom


def clamp_int(v: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, v))


def cell_color(state: int, new: bool) -> Tuple[int, int, int]:
    if state == UNKNOWN:
        return grid_style.COLOR_UNKNOWN
    if state == WHITE:
        return grid_style.COLOR_NEW_WHITE if new else grid_style.COLOR_WHITE
    if state == BLACK:
        return grid_style.COLOR_NEW_BLACK if new else grid_style.COLOR_BLACK
    return grid_style.COLOR_NUMBER


def draw_grid(
    screen: pygame.Surface,
    step: StepRecord,
    camera: Camera,
    base_cell_size: int,
    font: pygame.font.Font,
    changed: Optional[AbstractSet[Coord]] = None,
    failed: Optional[AbstractSet[Coord]] = None,
) -> None:
    """Draw a step snapshot. changed/failed default to the step's own sets."""
    rows, cols = step.height, step.width
    if rows == 0 or cols == 0:
        return
    changed = step.changed if changed is None else changed
    failed = step.failed_coords if failed is None else failed

    cell_size = base_cell_size * camera.zoom
    if cell_size < 2:
        return

    # Only draw the cells that are on screen.
    sw, sh = screen.get_size()
    wl, wt = camera.screen_to_world(-cell_size, -cell_size)
    wr, wb = camera.screen_to_world(sw + cell_size, sh + cell_size)
    x0 = clamp_int(int(math.floor(wl / base_cell_size)), 0, cols - 1)
    y0 = clamp_int(int(math.floor(wt / base_cell_size)), 0, rows - 1)
    x1 = clamp_int(int(math.ceil(wr / base_cell_size)), 0, cols - 1)
    y1 = clamp_int(int(math.ceil(wb / base_cell_size)), 0, rows - 1)

    for y in range(y0, y1 + 1):
        for x in range(x0, x1 + 1):
            sx, sy = camera.world_to_screen(x * base_cell_size, y * base_cell_size)
            rect = pygame.Rect(int(sx), int(sy), int(cell_size), int(cell_size))
            state = step.cells[y][x]

            pygame.draw.rect(screen, cell_color(state, (x, y) in changed), rect)
            pygame.draw.rect(screen, grid_style.COLOR_GRID_LINES, rect, 1)

            if (x, y) in failed:
                pygame.draw.rect(screen, grid_style.COLOR_FAILED_GUESS, rect, 3)

            if state > 0:
                txt, color = str(state), grid_style.COLOR_TEXT_NUMBER
            elif state == WHITE:
                txt, color = ".", grid_style.COLOR_TEXT_WHITE
            else:
                continue
            surf = font.render(txt, True, color)
            screen.blit(
                surf,
                (rect.x + (rect.width - surf.get_width()) // 2, rect.y + (rect.height - surf.get_height()) // 2)
            )


def pick_cell_from_mouse(step: StepRecord, camera: Camera, base_cell_size: int, mouse_pos: Tuple[int, int]) -> Optional[Coord]:
    if step.height == 0 or step.width == 0:
        return None
    wx, wy = camera.screen_to_world(*mouse_pos)
    x = int(wx // base_cell_size)
    y = int(wy // base_cell_size)
    if 0 <= x < step.width and 0 <= y < step.height:
        return (x, y)
    return None


def render_step_image(step: StepRecord, path: str, base_cell_size: int = 32, padding: int = 20) -> None:
    """Save a step snapshot as a PNG. Needs pygame.font to be initialised."""
    surface = pygame.Surface((step.width * base_cell_size + 2 * padding,
                              step.height * base_cell_size + 2 * padding))
    surface.fill(grid_style.COLOR_BG)
    font = pygame.font.Font(None, int(base_cell_size * 0.75))
    draw_grid(surface, step, Camera(offset_x=padding, offset_y=padding), base_cell_size, font)
    pygame.image.save(surface, path)
