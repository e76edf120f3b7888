from pathlib import Path

from render.assembler import assemble, merge_segments
from render.fence_state import INLINE_CODE, PLAIN, in_fence
from util.fragment_feed import iter_chars, load_fixture


FIXTURE = Path(__file__).parent / "fixtures" / "streamed_reply.txt"

EXPECTED = [
    (PLAIN, 1, "Streaming update\n"),
    (PLAIN, 0, "\nThe parser keeps a "),
    (INLINE_CODE, 0, "ChunkBuffer"),
    (PLAIN, 0, " and a "),
    (INLINE_CODE, 0, "frontier"),
    (PLAIN, 0, ". Here is the loop:\n\n"),
    (in_fence("python"), 0, "def feed(self, fragment):\n    return self.append(fragment)\n"),
    (PLAIN, 0, "\n"),
    (PLAIN, 2, "Notes\n"),
    (PLAIN, 0, "- use "),
    (INLINE_CODE, 0, " ` "),
    (PLAIN, 0, " for a literal backtick\n- "),
    (INLINE_CODE, 0, "####### not a heading"),
    (PLAIN, 0, " and #hashtag are plain\n\n"),
    (in_fence(None), 0, 'echo "no language tag"\n'),
    (PLAIN, 0, " done.\nTrailing fence opener: ```"),
]


def _content(segments):
    return [(s.state, s.heading, s.text) for s in merge_segments(segments) if not s.markup]


def test_fixture_fragments_cut_through_markup():
    fragments = load_fixture(FIXTURE)
    assert len(fragments) > 10
    # Fragments end mid-word and inside delimiters.
    assert "# Stre" in fragments
    assert "`" in fragments


def test_fixture_renders_expected_segments():
    fragments = load_fixture(FIXTURE)
    segments = assemble(fragments)
    assert "".join(s.text for s in segments) == "".join(fragments)
    assert _content(segments) == EXPECTED


def test_fixture_structure_matches_unsplit_document():
    fragments = load_fixture(FIXTURE)
    document = "".join(fragments)
    split = merge_segments(assemble(fragments))
    assert merge_segments(assemble([document])) == split
    assert merge_segments(assemble(iter_chars(document))) == split
