"""CHIP-8 instruction decoding."""

from chex import dataclass


@dataclass(frozen=True)
class DecodedInstruction:
    """Decoded CHIP-8 instruction with extracted operands."""
    raw: int
    opcode: int  # First nibble
    x: int       # Second nibble (VX register)
    y: int       # Third nibble (VY register)
    n: int       # Fourth nibble (4-bit immediate)
    nn: int      # Last byte (8-bit immediate)
    nnn: int     # Last 12 bits (12-bit address)


def decode(instruction: int) -> DecodedInstruction:
    """Split a 16-bit instruction word into its operand fields."""
    return DecodedInstruction(
        raw=instruction,
        opcode=(instruction & 0xF000) >> 12,
        x=(instruction & 0x0F00) >> 8,
        y=(instruction & 0x00F0) >> 4,
        n=instruction & 0x000F,
        nn=instruction & 0x00FF,
        nnn=instruction & 0x0FFF
    )


def mnemonic(instruction: int) -> str:
    """Human readable form of an instruction word, for logs and tracing."""
    d = decode(int(instruction))
    op, x, y, n, nn, nnn = d.opcode, d.x, d.y, d.n, d.nn, d.nnn
    if d.raw == 0x00E0:
        return "CLS"
    if d.raw == 0x00EE:
        return "RET"
    simple = {
        0x1: f"JP 0x{nnn:03X}",
        0x2: f"CALL 0x{nnn:03X}",
        0x3: f"SE V{x:X}, 0x{nn:02X}",
        0x4: f"SNE V{x:X}, 0x{nn:02X}",
        0x6: f"LD V{x:X}, 0x{nn:02X}",
        0x7: f"ADD V{x:X}, 0x{nn:02X}",
        0xA: f"LD I, 0x{nnn:03X}",
        0xB: f"JP V0, 0x{nnn:03X}",
        0xC: f"RND V{x:X}, 0x{nn:02X}",
        0xD: f"DRW V{x:X}, V{y:X}, {n}",
    }
    if op in simple:
        return simple[op]
    if op == 0x5 and n == 0:
        return f"SE V{x:X}, V{y:X}"
    if op == 0x9 and n == 0:
        return f"SNE V{x:X}, V{y:X}"
    alu = {0x0: "LD", 0x1: "OR", 0x2: "AND", 0x3: "XOR", 0x4: "ADD",
           0x5: "SUB", 0x6: "SHR", 0x7: "SUBN", 0xE: "SHL"}
    if op == 0x8 and n in alu:
        return f"{alu[n]} V{x:X}, V{y:X}"
    if op == 0xE and nn == 0x9E:
        return f"SKP V{x:X}"
    if op == 0xE and nn == 0xA1:
        return f"SKNP V{x:X}"
    misc = {
        0x07: f"LD V{x:X}, DT",
        0x0A: f"LD V{x:X}, K",
        0x15: f"LD DT, V{x:X}",
        0x18: f"LD ST, V{x:X}",
        0x1E: f"ADD I, V{x:X}",
        0x29: f"LD F, V{x:X}",
        0x33: f"LD B, V{x:X}",
        0x55: f"LD [I], V{x:X}",
        0x65: f"LD V{x:X}, [I]",
    }
    if op == 0xF and nn in misc:
        return misc[nn]
    return f"DW 0x{d.raw:04X}"
