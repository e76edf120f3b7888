from render.assembler import StreamAssembler, merge_segments
from render.fence_state import INLINE_CODE, PLAIN, in_fence
from util.fragment_feed import iter_text_deltas


def _replay_to_segments(frames):
    asm = StreamAssembler()
    per_fragment, segments = [], []
    for fragment in iter_text_deltas(iter(frames)):
        out = asm.append(fragment)
        per_fragment.append([s.text for s in out])
        segments.extend(out)
    out = asm.finish()
    per_fragment.append([s.text for s in out])
    segments.extend(out)
    return per_fragment, merge_segments(segments)


def test_golden_bedrock_stream_to_segments():
    frames = [
        '{"type":"message_start","message":{"model":"anthropic--claude-4-sonnet"}}',
        '{"type":"content_block_delta","delta":{"type":"text_delta","text":"Intro with `inl"}}',
        '{"type":"content_block_delta","delta":{"type":"text_delta","text":"ine` code\\n\\n`"}}',
        '{"type":"content_block_delta","delta":{"type":"text_delta","text":"``pyt"}}',
        '{"type":"content_block_delta","delta":{"type":"text_delta","text":"hon\\nprint(\'hi\')\\n``"}}',
        '{"type":"content_block_delta","delta":{"type":"text_delta","text":"`\\nFinal para.\\n"}}',
        '{"type":"message_stop","amazon-bedrock-invocationMetrics":{"inputTokenCount":10,"outputTokenCount":20}}',
    ]

    per_fragment, merged = _replay_to_segments(frames)

    assert per_fragment == [
        ["Intro with ", "`", "inl"],
        ["ine", "`", " code\n\n"],
        [],
        ["```python\n", "print('hi')\n"],
        ["```\n", "Final para.\n"],
        [],
    ]
    assert [(s.state, s.text) for s in merged if not s.markup] == [
        (PLAIN, "Intro with "),
        (INLINE_CODE, "inline"),
        (PLAIN, " code\n\n"),
        (in_fence("python"), "print('hi')\n"),
        (PLAIN, "Final para.\n"),
    ]


def test_golden_azure_stream_to_segments():
    frames = [
        '{"id":"x","object":"chat.completion.chunk","model":"gpt-5","choices":[{"index":0,"delta":{"role":"assistant","content":"## Res"}}]}',
        '{"id":"y","object":"chat.completion.chunk","model":"gpt-5","choices":[{"index":0,"delta":{"content":"ult\\n```"}}]}',
        '{"id":"z","object":"chat.completion.chunk","model":"gpt-5","choices":[{"index":0,"delta":{"content":"json\\n{}\\n```"}}]}',
        '{"id":"w","object":"chat.completion.chunk","model":"gpt-5","choices":[],"usage":{"total_tokens":30}}',
        "[DONE]",
    ]

    per_fragment, merged = _replay_to_segments(frames)

    assert per_fragment == [
        ["## ", "Res"],
        ["ult\n"],
        ["```json\n", "{}\n"],
        ["```"],
    ]
    assert [(s.state, s.heading, s.text) for s in merged if not s.markup] == [
        (PLAIN, 2, "Result\n"),
        (in_fence("json"), 0, "{}\n"),
    ]
