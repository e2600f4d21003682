import logging

import pytest

from semantic_chunker.modules.chunk_builder import ChunkBuilder, overlap_seed, verify_chunks
from semantic_chunker.modules.metadata import marker_numbers
from semantic_chunker.modules.models import (
    Chunk,
    ChunkingOptions,
    ChunkMetadata,
    PositionInText,
)
from semantic_chunker.modules.output_writer import serialize_chunks
from semantic_chunker.modules.sample_data import sample_elements
from semantic_chunker.utils import ChunkingInvariantError, ElementValidationError

SMALL = ChunkingOptions(target_chunk_size=100, max_chunk_size=150, overlap_size=30, min_chunk_size=50)


def small_builder():
    return ChunkBuilder(SMALL)


def test_empty_input_gives_no_chunks():
    result = ChunkBuilder().build_with_report([])
    assert result.chunks == []
    assert result.elements_processed == 0


def test_images_only_stream_gives_single_empty_chunk(stream):
    stream.image("a.png").image("b.png", label="Fig B")
    result = ChunkBuilder().build_with_report(stream.elements)
    assert len(result.chunks) == 1
    chunk = result.chunks[0]
    assert chunk.text == ""
    assert chunk.images == ()
    assert chunk.metadata.image_markers == 0
    assert result.excluded_images == 2


def test_size_flush_seeds_next_chunk_with_word_aligned_overlap(stream, make_sentence):
    for word in ("alpha", "bravo", "charlie", "delta"):
        stream.text(make_sentence(60, word))
    chunks = small_builder().build(stream.elements)

    assert len(chunks) == 3
    assert chunks[0].text == make_sentence(60, "alpha") + "\n\n" + make_sentence(60, "bravo")
    assert chunks[1].text == "bravo bravo bravo bravo bravo.\n\n" + make_sentence(60, "charlie")
    for previous, current in zip(chunks, chunks[1:]):
        seed = current.text.split("\n\n", 1)[0]
        assert previous.text.endswith(seed)
        assert 0 < len(seed) <= SMALL.overlap_size
        assert not seed[0].isspace()


def test_non_final_chunks_respect_size_bounds(stream, make_sentence):
    lengths = [50, 90, 110, 64, 75, 101, 58, 88, 110, 52, 97, 70]
    for i, length in enumerate(lengths):
        stream.text(make_sentence(length, f"w{i}"))
    chunks = small_builder().build(stream.elements)

    assert len(chunks) > 3
    for chunk in chunks[:-1]:
        assert SMALL.min_chunk_size <= len(chunk.text) <= SMALL.max_chunk_size


def test_below_minimum_chunk_absorbs_element_past_ceiling(stream, make_sentence):
    stream.text(make_sentence(40)).text(make_sentence(140, "bravo"))
    chunks = small_builder().build(stream.elements)
    assert len(chunks) == 1
    assert len(chunks[0].text) == 40 + 2 + 140


def test_oversized_atomic_element_is_emitted_whole(stream, make_sentence, caplog):
    big = make_sentence(200, "bravo")
    stream.text(make_sentence(100)).text(big).text(make_sentence(60, "charlie"))
    with caplog.at_level(logging.WARNING):
        result = small_builder().build_with_report(stream.elements)

    assert [len(c.text) > SMALL.max_chunk_size for c in result.chunks] == [False, True, False]
    # The overlap seed is dropped rather than pushing the chunk further past the ceiling.
    assert result.chunks[1].text == big
    assert result.oversized_chunks == (1,)
    assert "oversized" in caplog.text


def test_tab_change_flushes_without_overlap(stream, make_sentence):
    stream.text("Short intro.", tab="A").text(make_sentence(60, "bravo"), tab="B")
    stream.text(make_sentence(60, "charlie"), tab="B")
    chunks = small_builder().build(stream.elements)

    assert [c.metadata.tab_section for c in chunks] == ["A", "B"]
    assert chunks[0].text == "Short intro."
    assert chunks[1].text.startswith(make_sentence(60, "bravo"))


def test_chunks_never_span_tabs(make_sentence, stream):
    for tab in ("A", "B", "C"):
        for word in ("one", "two", "three", "four"):
            stream.text(make_sentence(70, f"{tab}{word}"), tab=tab)
    chunks = small_builder().build(stream.elements)

    for chunk in chunks:
        tab = chunk.metadata.tab_section
        foreign = {"A", "B", "C"} - {tab}
        assert not any(f"{other}one" in chunk.text or f"{other}four" in chunk.text for other in foreign)


def test_image_opening_a_chunk_is_excluded(stream):
    stream.image("cover.png").text("Welcome to the guide.").image("fig.png")
    result = ChunkBuilder().build_with_report(stream.elements)

    images = result.chunks[0].images
    assert [i.image_ref for i in images] == ["fig.png"]
    assert images[0].number == 1
    assert result.excluded_images == 1
    assert "[IMAGE_PLACEHOLDER_1]" in result.chunks[0].text


def test_image_after_tab_change_is_excluded(stream):
    stream.text("First tab text.", tab="A").image("b.png", tab="B").text("Second tab text.", tab="B")
    chunks = ChunkBuilder().build(stream.elements)
    assert len(chunks) == 2
    assert all(chunk.images == () for chunk in chunks)


def test_context_is_sticky_for_images(stream):
    stream.text("OH RISE PRICING").text("details...").image("img.png")
    image = ChunkBuilder().build(stream.elements)[0].images[0]
    assert (image.state, image.section, image.topic) == ("OH", "RISE", "PRICING")
    assert image.context_text == "details..."


def test_consecutive_unlabeled_images_are_grouped(stream):
    stream.text("intro").image("a.png").image("b.png").image("c.png", label="Fig A")
    chunk = ChunkBuilder().build(stream.elements)[0]

    first, second, labeled = chunk.images
    assert first.context_text == second.context_text == "intro"
    assert first.position_in_text == PositionInText.AFTER_SENTENCE
    assert second.position_in_text == PositionInText.CONSECUTIVE_AFTER
    assert labeled.label == "Fig A"
    assert labeled.position_in_text == PositionInText.AFTER_SENTENCE
    assert [i.number for i in chunk.images] == [1, 2, 3]
    assert chunk.text == "intro [IMAGE_PLACEHOLDER_1] [IMAGE_PLACEHOLDER_2] [IMAGE_PLACEHOLDER_3]"


def test_labeled_image_starts_a_new_group(stream):
    stream.text("Intro.").image("a.png").image("b.png", label="Fig B").image("c.png")
    images = ChunkBuilder().build(stream.elements)[0].images
    assert [i.position_in_text for i in images] == [PositionInText.AFTER_SENTENCE] * 3


def test_mid_chunk_image_position_depends_on_sentence_end(stream):
    stream.text("Look at the chart").image("a.png").text("See below.").image("b.png")
    stream.text("More text follows here.")
    images = ChunkBuilder().build(stream.elements)[0].images
    assert images[0].position_in_text == PositionInText.MIDDLE_PARAGRAPH
    assert images[1].position_in_text == PositionInText.AFTER_SENTENCE


def test_image_before_flush_is_trailing_and_not_repeated(stream, make_sentence):
    stream.text(" ".join(["alpha"] * 10)).image("a.png").text(make_sentence(100, "bravo"))
    chunks = small_builder().build(stream.elements)

    assert len(chunks) == 2
    assert chunks[0].images[0].position_in_text == PositionInText.AFTER_SENTENCE
    assert "[IMAGE_PLACEHOLDER_1]" not in chunks[1].text
    assert chunks[1].images == ()


def test_placeholder_parity_and_numbering_on_sample():
    result = ChunkBuilder().build_with_report(sample_elements())
    numbers = []
    for chunk in result.chunks:
        assert list(marker_numbers(chunk.text)) == [i.number for i in chunk.images]
        assert chunk.metadata.image_markers == len(chunk.images)
        numbers.extend(i.number for i in chunk.images)
    assert numbers == list(range(1, len(numbers) + 1))
    assert [c.chunk_id for c in result.chunks] == list(range(len(result.chunks)))


def test_sample_stream_layout():
    result = ChunkBuilder().build_with_report(sample_elements())
    ohio, maryland, new_jersey = result.chunks

    assert result.excluded_images == 1
    assert sum(len(c.images) for c in result.chunks) == 11
    assert ohio.metadata.states == ("OH",)
    assert set(ohio.metadata.topics) == {"PRICING", "DELIVERY_DATE"}
    assert [i.position_in_text.value for i in ohio.images] == [
        "after_sentence", "after_sentence", "after_sentence", "consecutive_after",
    ]
    assert maryland.metadata.tab_section == "Maryland Operations"
    assert maryland.images[0].topic == "BATCH_SUB"
    battery = [i for i in new_jersey.images if i.topic == "BATTERIES"]
    assert len(battery) == 3
    assert {(i.state, i.section) for i in battery} == {("NJ", "GENERAL")}


def test_rebuild_is_byte_identical():
    builder = ChunkBuilder()
    first = serialize_chunks(builder.build(sample_elements()))
    second = serialize_chunks(builder.build(sample_elements()))
    assert first == second
    assert serialize_chunks(ChunkBuilder().build(sample_elements())) == first


def test_non_element_input_is_rejected_with_index(stream):
    stream.text("ok")
    with pytest.raises(ElementValidationError) as exc:
        ChunkBuilder().build(stream.elements + [{"kind": "table"}])
    assert exc.value.index == 1


def test_sequence_index_must_increase(stream):
    from semantic_chunker.modules.models import TextElement

    elements = [TextElement("a", 3), TextElement("b", 3)]
    with pytest.raises(ElementValidationError) as exc:
        ChunkBuilder().build(elements)
    assert exc.value.index == 1


def test_overlap_seed_skips_partial_words_and_markers():
    assert overlap_seed("one two three", 7) == "three"
    assert overlap_seed("one two three", 8) == "three"
    assert overlap_seed("alpha [IMAGE_PLACEHOLDER_4] tail words", 30) == "tail words"
    assert overlap_seed("anything", 0) == ""


def test_verify_chunks_fails_loudly_on_marker_mismatch():
    metadata = ChunkMetadata((), (), (), 1, False, 0, 10, 2, None, 1)
    bad = Chunk(chunk_id=0, text="x [IMAGE_PLACEHOLDER_1]", images=(), metadata=metadata)
    with pytest.raises(ChunkingInvariantError):
        verify_chunks([bad])


def test_invalid_options_raise():
    with pytest.raises(ValueError):
        ChunkingOptions(target_chunk_size=100, max_chunk_size=80)
    with pytest.raises(ValueError):
        ChunkingOptions(overlap_size=900)


def test_image_markers_count_toward_the_ceiling(stream, make_sentence):
    stream.text(make_sentence(100)).text(make_sentence(40, "bravo")).image("a.png").image("b.png")
    stream.text(make_sentence(60, "charlie"))
    result = small_builder().build_with_report(stream.elements)

    chunks = result.chunks
    assert chunks[0].text == make_sentence(100)
    assert chunks[0].images == ()
    assert [i.number for i in chunks[1].images] == [1, 2]
    for chunk in chunks[:-1]:
        assert len(chunk.text) <= SMALL.max_chunk_size
    assert result.oversized_chunks == ()


def test_markers_that_cannot_fit_are_reported_oversized(stream, make_sentence, caplog):
    stream.text(make_sentence(140)).image("a.png").image("b.png").text(make_sentence(60, "bravo"))
    with caplog.at_level(logging.WARNING):
        result = small_builder().build_with_report(stream.elements)

    first = result.chunks[0]
    assert len(result.chunks) == 2
    assert len(first.text) == 140 + 2 * len(" [IMAGE_PLACEHOLDER_1]")
    assert result.oversized_chunks == (0,)
    for chunk in result.chunks:
        assert len(chunk.text) <= SMALL.max_chunk_size or chunk.chunk_id in result.oversized_chunks
    assert "oversized" in caplog.text


def test_literal_placeholder_text_is_neutralized(stream):
    stream.text("Markers look like [IMAGE_PLACEHOLDER_1] in output.").image("real.png")
    result = ChunkBuilder().build_with_report(stream.elements)

    chunk = result.chunks[0]
    assert chunk.text == "Markers look like (IMAGE_PLACEHOLDER_1) in output. [IMAGE_PLACEHOLDER_1]"
    assert [i.number for i in chunk.images] == [1]
    assert chunk.metadata.image_markers == 1
