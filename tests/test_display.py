"""Tests for sprite drawing (DXYN)."""

from chip8core import execute
from chip8core.constants import FONT_START, FAULT_NONE, FAULT_MEMORY_ACCESS
from conftest import setup_sprite_in_memory


class TestDraw:
    """Test DXYN behaviour."""

    def test_draw_single_row(self, fresh_state):
        """A single 0xFF row lights 8 pixels."""
        state = setup_sprite_in_memory(fresh_state, 0x300, [0xFF])
        state = state.replace(I=state.I + 0x300)

        state = execute(state, 0xD011)  # draw at (V0, V1) = (0, 0)

        assert state.display[:8, 0].all()
        assert not state.display[8, 0]
        assert state.V[15] == 0
        assert state.draw_flag

    def test_draw_position(self, fresh_state):
        """Sprite lands at (VX, VY), display indexed [x, y]."""
        state = setup_sprite_in_memory(fresh_state, 0x300, [0x80])
        state = state.replace(I=state.I + 0x300)
        state = state.replace(V=state.V.at[0].set(10))
        state = state.replace(V=state.V.at[1].set(5))

        state = execute(state, 0xD011)

        assert state.display[10, 5]
        assert state.display.sum() == 1

    def test_draw_twice_erases_and_collides(self, fresh_state):
        """Drawing the same sprite twice clears it and sets VF."""
        state = setup_sprite_in_memory(fresh_state, 0x300, [0xF0, 0x90])
        state = state.replace(I=state.I + 0x300)

        state = execute(state, 0xD012)
        assert state.V[15] == 0
        state = execute(state, 0xD012)

        assert not state.display.any()
        assert state.V[15] == 1

    def test_draw_wraps_horizontally(self, fresh_state):
        """Columns past x=63 wrap to the left edge."""
        state = setup_sprite_in_memory(fresh_state, 0x300, [0xFF])
        state = state.replace(I=state.I + 0x300)
        state = state.replace(V=state.V.at[0].set(60))

        state = execute(state, 0xD011)

        assert state.display[60:, 0].all()
        assert state.display[:4, 0].all()
        assert state.display.sum() == 8

    def test_draw_wraps_vertically(self, fresh_state):
        """Rows past y=31 wrap to the top."""
        state = setup_sprite_in_memory(fresh_state, 0x300, [0x80, 0x80, 0x80])
        state = state.replace(I=state.I + 0x300)
        state = state.replace(V=state.V.at[1].set(31))

        state = execute(state, 0xD013)

        assert state.display[0, 31]
        assert state.display[0, 0]
        assert state.display[0, 1]

    def test_start_coordinates_wrap(self, fresh_state):
        """VX=64+3 draws at x=3."""
        state = setup_sprite_in_memory(fresh_state, 0x300, [0x80])
        state = state.replace(I=state.I + 0x300)
        state = state.replace(V=state.V.at[0].set(67))

        state = execute(state, 0xD011)

        assert state.display[3, 0]

    def test_font_glyph(self, fresh_state):
        """The built-in "0" glyph draws a 4x5 box."""
        state = fresh_state.replace(I=fresh_state.I + FONT_START)

        state = execute(state, 0xD015)

        assert state.display[:4, 0].all()
        assert state.display[:4, 4].all()
        assert state.display[0, 1:4].all()
        assert state.display[3, 1:4].all()
        assert not state.display[1:3, 1:4].any()

    def test_zero_height_draws_nothing(self, fresh_state):
        state = execute(fresh_state, 0xD010)
        assert not state.display.any()
        assert state.fault == FAULT_NONE

    def test_sprite_past_end_of_memory(self, fresh_state):
        """Reading sprite rows beyond 0xFFF is flagged."""
        state = fresh_state.replace(I=fresh_state.I + 0xFFE)

        assert execute(state, 0xD012).fault == FAULT_NONE
        assert execute(state, 0xD013).fault == FAULT_MEMORY_ACCESS

    def test_collision_sets_vf_when_vf_is_coordinate(self, fresh_state):
        """DFY1 - VF is both X coordinate and collision flag."""
        state = setup_sprite_in_memory(fresh_state, 0x300, [0x80])
        state = state.replace(I=state.I + 0x300)
        state = state.replace(V=state.V.at[15].set(2))

        state = execute(state, 0xDF01)

        assert state.display[2, 0]
        assert state.V[15] == 0
