from siteprobe.rpc.demux import LineDemultiplexer


def test_complete_lines_yield_payloads_in_order():
    demux = LineDemultiplexer()
    payloads = demux.feed(b'{"id":1,"result":{}}\n{"id":2,"result":{}}\n')
    assert [p["id"] for p in payloads] == [1, 2]
    assert demux.pending_bytes == 0


def test_line_split_across_chunks_yields_once_after_second_chunk():
    demux = LineDemultiplexer()
    first = demux.feed('{"id":1,"result":{}}\n{"i')
    assert [p["id"] for p in first] == [1]
    assert demux.pending_bytes == len(b'{"i')
    second = demux.feed('d":2,"result":{}}\n')
    assert [p["id"] for p in second] == [2]
    assert demux.pending_bytes == 0


def test_partial_line_is_held_until_newline():
    demux = LineDemultiplexer()
    assert demux.feed(b'{"id":7,') == []
    assert demux.feed(b'"result":null}') == []
    assert demux.feed(b"\n") == [{"id": 7, "result": None}]


def test_malformed_and_blank_lines_are_skipped():
    demux = LineDemultiplexer()
    payloads = demux.feed(b'not json\n\n   \n{"id":3,"result":{}}\n[1,2]\n')
    assert payloads == [{"id": 3, "result": {}}]


def test_multibyte_character_split_between_chunks():
    demux = LineDemultiplexer()
    data = '{"id":1,"result":"café"}\n'.encode("utf-8")
    cut = data.index(b"\xc3") + 1
    assert demux.feed(data[:cut]) == []
    assert demux.feed(data[cut:]) == [{"id": 1, "result": "café"}]


def test_reset_drops_partial_line():
    demux = LineDemultiplexer()
    demux.feed(b'{"id":1')
    assert demux.reset() == b'{"id":1'
    assert demux.pending_bytes == 0


def test_oversized_line_is_dropped_and_next_line_still_parses():
    demux = LineDemultiplexer(max_line_bytes=64)
    assert demux.feed(b'{"id":1,"result":"' + b"z" * 100) == []
    assert demux.pending_bytes == 0
    assert demux.feed(b"z" * 100) == []
    assert demux.pending_bytes == 0
    payloads = demux.feed(b'"}\n{"id":2,"result":{}}\n')
    assert [p["id"] for p in payloads] == [2]
    assert demux.pending_bytes == 0
