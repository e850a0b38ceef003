from revu.analysis import SearchReplaceBlock
from revu.search_replace import process_search_replace_blocks


def test_single_block_expands_one_line_into_two():
    result = process_search_replace_blocks("a\nb\nc", [SearchReplaceBlock(search="b", replace="x\ny")])

    assert result.success
    assert result.applied_blocks == 1
    assert result.errors == []
    assert result.original_start_line == 1
    assert result.original_end_line == 1
    assert result.replacement_content == "x\ny"


def test_multiple_blocks_cover_span_between_them():
    content = "a\nb\nc\nd\ne"
    blocks = [
        SearchReplaceBlock(search="b", replace="B"),
        SearchReplaceBlock(search="d", replace="D1\nD2"),
    ]

    result = process_search_replace_blocks(content, blocks)

    assert result.success
    assert result.applied_blocks == 2
    assert (result.original_start_line, result.original_end_line) == (1, 3)
    # Unchanged line "c" between the blocks is part of the suggestion.
    assert result.replacement_content == "B\nc\nD1\nD2"


def test_shrinking_replacement_keeps_original_span():
    content = "start\none\ntwo\nthree\nend"
    result = process_search_replace_blocks(
        content, [SearchReplaceBlock(search="one\ntwo\nthree", replace="merged")]
    )

    assert (result.original_start_line, result.original_end_line) == (1, 3)
    assert result.replacement_content == "merged"


def test_indentation_drift_still_applies():
    content = "def f():\n    return 1\n"
    result = process_search_replace_blocks(content, [SearchReplaceBlock(search="return 1", replace="    return 2")])

    assert result.success
    assert result.original_start_line == 1
    assert result.replacement_content == "    return 2"


def test_unmatched_block_is_reported():
    result = process_search_replace_blocks("a\nb", [SearchReplaceBlock(search="zzz", replace="y")])

    assert not result.success
    assert result.applied_blocks == 0
    assert len(result.errors) == 1
    assert "block 1 failed to match" in result.errors[0]
    assert result.replacement_content is None
    assert result.original_start_line is None


def test_out_of_order_block_is_not_applied():
    blocks = [
        SearchReplaceBlock(search="c", replace="C"),
        SearchReplaceBlock(search="a", replace="A"),
    ]

    result = process_search_replace_blocks("a\nb\nc", blocks)

    assert not result.success
    assert result.applied_blocks == 1
    assert len(result.errors) == 1
    assert "block 2" in result.errors[0]
    assert result.replacement_content == "C"


def test_no_blocks():
    result = process_search_replace_blocks("a", [])
    assert not result.success
    assert result.applied_blocks == 0
    assert result.replacement_content is None
