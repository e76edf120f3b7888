import io

from rich.console import Console

from render.assembler import StreamAssembler
from render.segment_live import SegmentStream
from util.fragment_feed import iter_chars


def _render(fragments, **kwargs):
    buf = io.StringIO()
    console = Console(file=buf, width=80, color_system=None, force_terminal=False)
    view = SegmentStream(console=console, **kwargs)
    asm = StreamAssembler(sink=view)
    for fragment in fragments:
        asm.append(fragment)
    asm.finish()
    view.close()
    return buf.getvalue(), view


def test_markup_hidden_by_default():
    out, _ = _render(["plain ```rust\ncode\n``` more"])
    assert out == "plain code\n more"


def test_markup_kept_on_request():
    text = "plain ```rust\ncode\n``` more"
    out, _ = _render(iter_chars(text), show_markup=True)
    assert out == text


def test_inline_code_and_heading_text():
    out, _ = _render(["# Ti", "tle\na `b", "` c"])
    assert out == "Title\na b c"


def test_fence_lines_wait_for_line_terminator():
    buf = io.StringIO()
    console = Console(file=buf, width=80, color_system=None, force_terminal=False)
    view = SegmentStream(console=console)
    asm = StreamAssembler(sink=view)
    asm.append("```py\nx = ")
    assert buf.getvalue() == ""
    assert view.fence is not None and view.fence.language == "py"
    asm.append("1\ny")
    assert buf.getvalue() == "x = 1\n"


def test_partial_fence_line_flushed_on_close():
    out, view = _render(["```py\n", "x = 1"])
    assert out == "x = 1"
    assert view.fence is None
    assert view.code_line == []


def test_unknown_language_renders_as_text():
    out, _ = _render(["```nosuchlang\nabc\n```\n"])
    assert out == "abc\n"


def test_inline_emphasis_and_links_are_styled():
    out, _ = _render(iter_chars("some **bold** and [a link](http://x)\n"))
    assert "**" not in out
    assert out == "some bold and a link (http://x)\n"


def test_strikethrough_and_escapes():
    out, _ = _render(["~~old~~ new \\*literal\\* &amp; more\n"])
    assert out == "old new *literal* & more\n"


def test_emphasis_around_code_span():
    out, _ = _render(["**see `Chun", "kBuffer` now**\n"])
    assert out == "see ChunkBuffer now\n"


def test_plain_backtick_runs_stay_literal():
    out, _ = _render(["````x```` stays\n"])
    assert out == "````x```` stays\n"


def test_plain_line_waits_for_terminator():
    buf = io.StringIO()
    console = Console(file=buf, width=80, color_system=None, force_terminal=False)
    asm = StreamAssembler(sink=SegmentStream(console=console))
    asm.append("a *b")
    assert buf.getvalue() == ""
    asm.append("* c\nd")
    assert buf.getvalue() == "a b c\n"


def test_inline_styles_reach_the_console():
    buf = io.StringIO()
    console = Console(file=buf, width=80, color_system="standard", force_terminal=True)
    view = SegmentStream(console=console)
    asm = StreamAssembler(sink=view)
    asm.append("x **y** z\n")
    asm.finish()
    assert "\x1b[1m" in buf.getvalue()


def test_heading_keeps_inline_styling():
    out, _ = _render(["## A *b* `c`\nrest"])
    assert out == "A b c\nrest"


def test_markup_mode_keeps_emphasis_markers():
    out, _ = _render(["some **bold**\n"], show_markup=True)
    assert out == "some **bold**\n"


def test_char_delay_sleeps_between_characters(monkeypatch):
    sleeps = []
    monkeypatch.setattr("render.segment_live.time.sleep", sleeps.append)
    out, _ = _render(["# T\n", "a `b`\n```py\nx\n```\n"], char_delay=0.01)
    assert out == "T\na b\nx\n"
    assert sleeps == [0.01] * (len(out) - 1)


def test_no_sleep_without_delay(monkeypatch):
    sleeps = []
    monkeypatch.setattr("render.segment_live.time.sleep", sleeps.append)
    _render(["abc\n"])
    assert sleeps == []
