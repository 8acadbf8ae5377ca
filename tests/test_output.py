# =============================================================================
# test_output.py - Output Writer Unit Tests
# =============================================================================
# Tests for the BIN paper tape, the listing and the symbol file.
# =============================================================================

from pdp8asm.assembler import assemble, bin_tape, render_listing, render_symbols
from pdp8asm.assembler.output import LEADER_FRAME, LEADER_LENGTH


def body_of(tape: bytes) -> list[int]:
    """Frames between the leader and the trailer."""
    assert tape[:LEADER_LENGTH] == bytes([LEADER_FRAME] * LEADER_LENGTH)
    assert tape[-LEADER_LENGTH:] == bytes([LEADER_FRAME] * LEADER_LENGTH)
    return list(tape[LEADER_LENGTH:-LEADER_LENGTH])


# =============================================================================
# BIN Tape
# =============================================================================

class TestBinTape:
    """Test BIN format frames."""

    def test_single_word(self):
        """Origin, data and checksum frames for one word."""
        frames = body_of(bin_tape(assemble("    HLT")))
        assert frames == [
            0o102, 0o00,    # origin 0200
            0o74, 0o02,     # 7402
            0o02, 0o00,     # checksum 0200
        ]

    def test_consecutive_words_share_origin(self):
        """Only the first of a run of addresses gets an origin."""
        frames = body_of(bin_tape(assemble("    HLT\n    NOP")))
        assert frames[:6] == [0o102, 0o00, 0o74, 0o02, 0o70, 0o00]
        assert len(frames) == 8

    def test_new_origin_after_gap(self):
        """A jump in addresses punches a new origin."""
        frames = body_of(bin_tape(assemble("    HLT\n    .ORG 300\n    HLT")))
        assert frames[4:6] == [0o103, 0o00]

    def test_field_frame(self):
        """Words in another field are preceded by a field setting."""
        frames = body_of(bin_tape(assemble("    .FIELD 1\n    HLT")))
        assert frames[0] == 0o310
        assert frames[1:3] == [0o102, 0o00]

    def test_field_frame_not_in_checksum(self):
        """Field settings do not count toward the checksum."""
        plain = body_of(bin_tape(assemble("    HLT")))
        in_field = body_of(bin_tape(assemble("    .FIELD 1\n    HLT")))
        assert plain[-2:] == in_field[-2:]

    def test_words_in_address_order(self):
        """Words are punched sorted by field and address."""
        frames = body_of(bin_tape(assemble("    .ORG 300\n    HLT\n    .ORG 200\n    NOP")))
        assert frames[:4] == [0o102, 0o00, 0o70, 0o00]


# =============================================================================
# Listing
# =============================================================================

class TestListing:
    """Test the listing text."""

    def test_rows(self):
        """Each line shows field, address and word."""
        listing = render_listing(assemble("X,  HLT\n    ; note"))
        assert "00200  7402  X,  HLT" in listing
        assert "    ; note" in listing

    def test_title(self):
        """The title heads the listing."""
        listing = render_listing(assemble(".TITLE Monitor"))
        assert listing.splitlines()[0] == "Monitor"

    def test_default_title(self):
        listing = render_listing(assemble("    HLT"))
        assert listing.splitlines()[0] == "PDP-8 Assembler Listing"

    def test_error_codes_in_margin(self):
        """Diagnostic codes are shown at the start of the row."""
        listing = render_listing(assemble("    TAD NOPE"))
        row = next(line for line in listing.splitlines() if line.endswith("TAD NOPE"))
        assert row.startswith("U ")
        assert "1 errors, 0 warnings" in listing

    def test_multi_word_rows(self):
        """Extra words get their own rows."""
        listing = render_listing(assemble('    .ASCIZ "A"'))
        assert "00201  0000" in listing

    def test_page_links(self):
        """Link words are listed separately."""
        listing = render_listing(assemble("    TAD @1000"))
        assert "Page Links" in listing
        assert "00377  1000" in listing

    def test_symbols(self):
        """The symbol table closes the listing."""
        listing = render_listing(assemble("START, HLT"))
        assert listing.rstrip().endswith("START                0200")


# =============================================================================
# Symbol File
# =============================================================================

class TestSymbolFile:
    """Test the symbol table file."""

    def test_format(self):
        """Header comments then sorted NAME VALUE lines."""
        text = render_symbols(assemble("B,  0\nA,  0"))
        assert text.splitlines() == [
            "; Symbol table",
            "; Generated by p8asm",
            "A                    0201",
            "B                    0200",
        ]
