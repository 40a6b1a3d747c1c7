"""
Interactive CHIP-8 player (pygame front-end for chip8core.Chip8)
"""

import argparse
import time

import pygame

from chip8core import Chip8, Chip8Error
from chip8core.constants import QUIRKS, SCREEN_WIDTH, SCREEN_HEIGHT
from chip8core.logging import ConsoleLogger
from chip8core.rendering import create_color_scheme

# Modern key mapping onto the 4x4 hex keypad
KEY_MAP = {
    pygame.K_1: 0x1, pygame.K_2: 0x2, pygame.K_3: 0x3, pygame.K_4: 0xC,
    pygame.K_q: 0x4, pygame.K_w: 0x5, pygame.K_e: 0x6, pygame.K_r: 0xD,
    pygame.K_a: 0x7, pygame.K_s: 0x8, pygame.K_d: 0x9, pygame.K_f: 0xE,
    pygame.K_z: 0xA, pygame.K_x: 0x0, pygame.K_c: 0xB, pygame.K_v: 0xF,
}

BELL_FRAMES = 6


def draw_overlay_text(surface, text_lines, position, font, bg_color=(0, 0, 0), text_color=(255, 255, 255), alpha=120):
    """Draw text with semi-transparent background overlay"""
    if not text_lines:
        return

    line_height = font.get_height()
    max_width = max(font.size(line)[0] for line in text_lines)
    overlay = pygame.Surface((max_width + 16, len(text_lines) * line_height + 8))
    overlay.set_alpha(alpha)
    overlay.fill(bg_color)
    surface.blit(overlay, position)

    x, y = position
    for i, line in enumerate(text_lines):
        text_surface = font.render(line, True, text_color)
        surface.blit(text_surface, (x + 8, y + 4 + i * line_height))


def run_emulator(rom_filename, quirks=(), scale=8, ipf=10, color_scheme="classic", seed=0):
    """Main emulator loop: one frame of ``ipf`` instructions per 60Hz tick"""
    logger = ConsoleLogger("player")
    on_color, off_color = create_color_scheme(color_scheme)

    machine = Chip8.create(seed=seed)
    machine.logger = logger
    machine.set_metadata({name: True for name in quirks})

    try:
        machine.load_file(rom_filename)
    except (OSError, Chip8Error) as e:
        logger.error(f"Could not load {rom_filename}: {e}")
        return

    pygame.init()
    screen = pygame.display.set_mode((SCREEN_WIDTH * scale, SCREEN_HEIGHT * scale))
    pygame.display.set_caption(f"CHIP-8 - {rom_filename}")
    clock = pygame.time.Clock()
    font = pygame.font.Font(None, 18)

    running = True
    paused = False
    show_debug = False
    bell = 0
    start_time = time.time()

    logger.info("Controls: ESC=Quit, P=Pause, F5=Reset, +/-=Speed, F1=Debug")

    while running:
        clock.tick(60)

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    running = False
                elif event.key == pygame.K_p:
                    paused = not paused
                elif event.key == pygame.K_F1:
                    show_debug = not show_debug
                elif event.key == pygame.K_F5:
                    machine.reset()
                    machine.load_file(rom_filename)
                    paused = False
                elif event.key == pygame.K_EQUALS:
                    ipf = min(100, ipf + 2)
                    logger.info(f"Speed: {ipf} IPF")
                elif event.key == pygame.K_MINUS:
                    ipf = max(1, ipf - 2)
                    logger.info(f"Speed: {ipf} IPF")
                elif event.key in KEY_MAP:
                    machine.set_key(KEY_MAP[event.key], True)
            elif event.type == pygame.KEYUP:
                if event.key in KEY_MAP:
                    machine.set_key(KEY_MAP[event.key], False)

        if not paused:
            try:
                if machine.run_frame(ipf):
                    bell = BELL_FRAMES
            except Chip8Error as e:
                logger.error(f"Halted: {e} [{e.instruction}]")
                paused = True

        if machine.redraw_pending() or bell or show_debug:
            frame = machine.framebuffer()
            background = on_color if bell else off_color
            screen.fill(background)
            for y in range(SCREEN_HEIGHT):
                for x in range(SCREEN_WIDTH):
                    if frame[x, y]:
                        rect = pygame.Rect(x * scale, y * scale, scale, scale)
                        pygame.draw.rect(screen, off_color if bell else on_color, rect)
            machine.clear_redraw_pending()
            bell = max(0, bell - 1)

            if show_debug:
                runtime = time.time() - start_time
                registers = machine.registers
                debug_lines = [
                    f"PC: 0x{machine.pc:03X}  I: 0x{machine.index:03X}",
                    f"Delay: {int(machine.state.delay_timer)}  Sound: {int(machine.state.sound_timer)}",
                    f"Cycles: {machine.cycles} ({machine.cycles / max(runtime, 1e-9):.0f} Hz)",
                    f"IPF: {ipf}  FPS: {clock.get_fps():.1f}",
                ] + [
                    " ".join(f"V{j:X}:{int(registers[j]):02X}" for j in range(i, i + 4))
                    for i in range(0, 16, 4)
                ]
                draw_overlay_text(screen, debug_lines, (5, 5), font, alpha=100)

            pygame.display.flip()

    pygame.quit()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Play a CHIP-8 ROM")
    parser.add_argument("rom", type=str, help="Path to a raw .ch8 ROM")
    parser.add_argument("--ipf", type=int, default=10, help="Instructions per frame (default: 10)")
    parser.add_argument("--scale", type=int, default=8, help="Window scale (default: 8)")
    parser.add_argument("--color_scheme", type=str, default="classic", help="Rendering colours (default: classic)")
    parser.add_argument("--seed", type=int, default=0, help="Random seed (default: 0)")
    parser.add_argument("--quirk", action="append", default=[], choices=QUIRKS, help="Enable a legacy behaviour")
    args = parser.parse_args()

    run_emulator(args.rom, args.quirk, scale=args.scale, ipf=args.ipf, color_scheme=args.color_scheme, seed=args.seed)
