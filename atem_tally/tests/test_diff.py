from atem_tally.engine.diff import compute_delta
from atem_tally.models.source_key import SourceKey, TallyRole


def test_delta_lists_only_changed_keys():
    kept = SourceKey(0, TallyRole.PROGRAM, 1)
    gone = SourceKey(0, TallyRole.PREVIEW_DURING_TRANSITION, 2)
    new = SourceKey(0, TallyRole.UPSTREAM_KEYER_FILL, 3)

    delta = compute_delta({kept, gone}, {kept, new})

    assert delta.to_activate == {new}
    assert delta.to_deactivate == {gone}


def test_identical_sets_give_empty_delta():
    keys = {SourceKey(1, TallyRole.PROGRAM, 4)}
    assert compute_delta(keys, set(keys)).is_empty


def test_same_source_in_another_role_is_a_different_key():
    program = SourceKey(0, TallyRole.PROGRAM, 5)
    keyer = SourceKey(0, TallyRole.UPSTREAM_KEYER_FILL, 5)

    delta = compute_delta({program}, {keyer})

    assert delta.to_activate == {keyer}
    assert delta.to_deactivate == {program}
