"""Tests for reciprocal rank fusion."""

import pytest

from retrieval.core import Document, multi_rrf_fusion, reciprocal_rank_fusion


def _doc(doc_id, content="", score=0.0, **extra):
    return Document(id=doc_id, content=content, score=score, metadata=extra)


def test_rrf_rewards_documents_in_both_lists():
    keyword = [_doc("a"), _doc("b")]
    vector = [_doc("b"), _doc("c")]

    fused = reciprocal_rank_fusion(keyword, vector)

    assert [d["id"] for d in fused] == ["b", "a", "c"]
    assert fused[0]["score"] == pytest.approx(1 / 62 + 1 / 61)


def test_rrf_first_list_fields_win():
    keyword = [_doc("x", content="from keyword", score=183.0, source="kw")]
    vector = [_doc("x", content="from vector", score=0.9, source="vec")]

    fused = reciprocal_rank_fusion(keyword, vector)

    assert len(fused) == 1
    assert fused[0]["content"] == "from keyword"
    assert fused[0]["metadata"] == {"source": "kw"}
    assert fused[0]["score"] == pytest.approx(2 / 61)


def test_rrf_does_not_mutate_inputs():
    keyword = [_doc("a", score=5.0)]

    reciprocal_rank_fusion(keyword, [])

    assert keyword[0]["score"] == 5.0


def test_rrf_custom_k():
    fused = reciprocal_rank_fusion([_doc("a")], [_doc("b"), _doc("a")], k=10)

    scores = {d["id"]: d["score"] for d in fused}
    assert scores["a"] == pytest.approx(1 / 11 + 1 / 12)
    assert scores["b"] == pytest.approx(1 / 11)


def test_rrf_empty_lists():
    assert reciprocal_rank_fusion([], []) == []


def test_multi_rrf_accumulates_across_queries():
    results = [
        [_doc("a"), _doc("b")],
        [_doc("b"), _doc("c")],
        [_doc("b")],
    ]

    fused = multi_rrf_fusion(results)

    assert [d["id"] for d in fused] == ["b", "a", "c"]
    assert fused[0]["score"] == pytest.approx(1 / 62 + 1 / 61 + 1 / 61)


def test_multi_rrf_no_input():
    assert multi_rrf_fusion([]) == []
    assert multi_rrf_fusion([[], []]) == []


def test_multi_rrf_single_list_keeps_order():
    fused = multi_rrf_fusion([[_doc("a"), _doc("b"), _doc("c")]])

    assert [d["id"] for d in fused] == ["a", "b", "c"]
    assert fused[2]["score"] == pytest.approx(1 / 63)


def test_shared_top_document_default_k():
    fused = reciprocal_rank_fusion([_doc("a")], [_doc("a")])

    assert fused[0]["score"] == pytest.approx(2 / 61)
    assert fused[0]["score"] == pytest.approx(0.0328, abs=1e-4)


def test_multi_rrf_score_grows_with_list_membership():
    lists = [[_doc("x"), _doc("a")], [_doc("y"), _doc("a")], [_doc("z"), _doc("a")]]

    scores = [
        next(d["score"] for d in multi_rrf_fusion(lists[:n]) if d["id"] == "a")
        for n in range(1, 4)
    ]

    assert scores[0] < scores[1] < scores[2]
