import pytest

from atem_tally.dispatch.addressing import TallyAddressing, template_fields, validate_template
from atem_tally.models.source_key import SourceKey, TallyRole


def test_default_address_collapses_roles():
    addressing = TallyAddressing()
    keys = [
        SourceKey(0, TallyRole.PROGRAM, 4),
        SourceKey(1, TallyRole.PREVIEW_DURING_TRANSITION, 4),
        SourceKey(0, TallyRole.DOWNSTREAM_KEYER_FILL, 4),
    ]
    assert {addressing.address_for(key) for key in keys} == {"/exec/1/4"}


def test_strict_address_uses_scope():
    addressing = TallyAddressing(strict_me=True)
    assert addressing.address_for(SourceKey(1, TallyRole.PROGRAM, 4)) == "/exec/1/M1/4"
    assert addressing.address_for(SourceKey(0, TallyRole.DOWNSTREAM_KEYER_FILL, 4)) == "/exec/1/D0/4"


def test_custom_strict_template_can_use_role():
    addressing = TallyAddressing(strict_template="/tally/{index}/{role}/{source}", strict_me=True)
    key = SourceKey(2, TallyRole.UPSTREAM_KEYER_FILL, 9)
    assert addressing.address_for(key) == "/tally/2/upstream_keyer_fill/9"


def test_reset_addresses_cover_every_scope_in_strict_mode():
    addressing = TallyAddressing(strict_me=True)
    assert addressing.reset_addresses(5, me_indices=[0, 1], dsk_indices=[0]) == [
        "/exec/1/M0/5",
        "/exec/1/M1/5",
        "/exec/1/D0/5",
    ]
    assert TallyAddressing().reset_addresses(5, me_indices=[0, 1]) == ["/exec/1/5"]


def test_template_fields():
    assert template_fields("/a/{scope}/{source}") == {"scope", "source"}


@pytest.mark.parametrize(
    "template,strict",
    [
        ("/exec/1/", False),
        ("/exec/{bank}/{source}", True),
        ("exec/{source}", False),
        ("/exec/{scope}/{source}", False),
    ],
)
def test_invalid_templates_rejected(template, strict):
    with pytest.raises(ValueError):
        validate_template(template, strict=strict)


def test_addressing_validates_on_construction():
    with pytest.raises(ValueError):
        TallyAddressing(template="/exec/{role}/{source}")
