import pytest

from multimodal.domain.context.context_window import ActiveWindow, ContextWindowManager
from multimodal.domain.errors import CapacityMisconfigurationError
from multimodal.domain.models.embedding import Embedding
from multimodal.domain.models.media import Modality


def embedding(owner_id: str, modality: Modality = Modality.IMAGE) -> Embedding:
    return Embedding.from_vector([0.1, 0.2, 0.3], owner_id=owner_id, modality=modality)


def test_single_slot_window_keeps_latest():
    windows = ContextWindowManager(max_images=1)
    e1, e2 = embedding("e1"), embedding("e2")

    windows.admit(e1)
    windows.admit(e2)

    active = windows.active_embeddings(Modality.IMAGE)
    assert len(active) == 1
    assert active[0] is e2


def test_window_keeps_most_recent_in_admission_order():
    window = ActiveWindow(Modality.IMAGE, 3)
    admitted = [embedding(f"e{n}") for n in range(10)]

    for item in admitted:
        window.admit(item)
        assert len(window) <= 3

    survivors = window.items()
    assert len(survivors) == 3
    assert all(kept is expected for kept, expected in zip(survivors, admitted[-3:]))


def test_admit_returns_evicted_entry():
    window = ActiveWindow(Modality.AUDIO, 1)
    first, second = embedding("a1", Modality.AUDIO), embedding("a2", Modality.AUDIO)

    assert window.admit(first) is None
    assert window.admit(second) is first


def test_readmission_is_not_deduplicated():
    windows = ContextWindowManager(max_images=4)
    item = embedding("e1")

    windows.admit(item)
    windows.admit(item)

    active = windows.active_embeddings(Modality.IMAGE)
    assert len(active) == 2
    assert active[0] is active[1] is item


def test_embeddings_go_to_their_modality_window():
    windows = ContextWindowManager(max_images=2, max_audio=2)
    picture, clip = embedding("img"), embedding("clip", Modality.AUDIO)

    windows.admit(picture)
    windows.admit(clip)

    assert windows.active_embeddings(Modality.IMAGE) == (picture,)
    assert windows.active_embeddings(Modality.AUDIO) == (clip,)
    assert windows.contains(clip)
    assert not windows.contains(embedding("other"))


def test_clear_empties_both_windows():
    windows = ContextWindowManager()
    windows.admit(embedding("img"))
    windows.admit(embedding("clip", Modality.AUDIO))

    windows.clear()

    assert windows.active_embeddings(Modality.IMAGE) == ()
    assert windows.active_embeddings(Modality.AUDIO) == ()


def test_default_limits():
    windows = ContextWindowManager()
    assert windows.max_count(Modality.IMAGE) == 4
    assert windows.max_count(Modality.AUDIO) == 2


@pytest.mark.parametrize("max_images, max_audio", [(0, 2), (4, 0), (-3, 2)])
def test_non_positive_limits_are_rejected(max_images, max_audio):
    with pytest.raises(CapacityMisconfigurationError):
        ContextWindowManager(max_images=max_images, max_audio=max_audio)
